import asyncio
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict

from pages_builder.ai.generator import ContentGenerator
from pages_builder.core.artifacts import build_artifact_set
from pages_builder.core.config import Settings
from pages_builder.core.errors import AuthError
from pages_builder.core.logger import logger
from pages_builder.core.model import NotificationPayload, TaskRequest
from pages_builder.core.publisher import Publisher


Notifier = Callable[[str, Dict[str, Any]], Awaitable[bool]]


class TaskLocks:
    """One asyncio.Lock per task id, dropped once nobody holds or waits on it."""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str):
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class TaskOrchestrator:
    """
    Runs one task end to end: generate -> publish -> notify.

    authenticate() is the only part executed before the HTTP response goes out;
    run() happens afterwards and never raises.
    """

    def __init__(self, settings: Settings, generator: ContentGenerator, publisher: Publisher, notifier: Notifier):
        self.settings = settings
        self.generator = generator
        self.publisher = publisher
        self.notifier = notifier
        self.locks = TaskLocks()

    def authenticate(self, secret: Any) -> None:
        """An unset or empty SHARED_SECRET rejects every request."""
        expected = self.settings.SHARED_SECRET
        if not expected or not isinstance(secret, str) or secret != expected:
            logger.warning("==========Invalid secret received, sending 403==========")
            raise AuthError("Invalid secret")

    async def run(self, client_task: TaskRequest) -> None:
        async with self.locks.hold(client_task.task):
            try:
                await self._run(client_task)
            except Exception as e:
                logger.error(
                    f"[FATAL] Background job failed | Task={client_task.task} | Round={client_task.round} | Error: {e}",
                    exc_info=True,
                )

    async def _run(self, client_task: TaskRequest) -> None:
        logger.info(f"Background job started | Task={client_task.task} | Round={client_task.round} | Email={client_task.email}")
        repo_name = client_task.task
        owner = self.settings.GITHUB_USERNAME or ""

        app_html = await self.generator.generate(client_task.brief)
        files = build_artifact_set(repo_name, client_task.brief, app_html, owner)

        result = await self.publisher.publish(repo_name, files, is_revision=client_task.is_revision)
        logger.info(f"=====Published=====\n{result.model_dump_json(indent=2)}\n===============")

        payload = NotificationPayload(
            email=client_task.email,
            task=client_task.task,
            round=client_task.round,
            nonce=client_task.nonce,
            repo_url=result.repo_url,
            commit_sha=result.commit_sha,
            pages_url=result.pages_url,
        )
        await self.notifier(client_task.evaluation_url, payload.model_dump())
        logger.info(f"Background job completed | Task={client_task.task} | Round={client_task.round}")

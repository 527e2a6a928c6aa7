"""
Publishes a task's files to its GitHub repository and turns on Pages
"""
import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from pages_builder.core.artifacts import pages_url
from pages_builder.core.config import Settings
from pages_builder.core.errors import NotFoundError, PublishError, RepositoryExists, ShaConflict
from pages_builder.core.github import GithubStore
from pages_builder.core.logger import logger
from pages_builder.core.model import FileContent, PublishResult


class PublishMode(Enum):
    CREATE = "create"
    REVISE = "revise"


class StepStatus(Enum):
    OK = "ok"
    RECOVERABLE = "recoverable"
    FATAL = "fatal"


@dataclass(frozen=True)
class StepResult:
    """Outcome of a best-effort step. Only FATAL stops the publish."""
    status: StepStatus
    reason: str = ""
    error: Optional[BaseException] = None

    @classmethod
    def ok(cls, reason: str = "") -> "StepResult":
        return cls(StepStatus.OK, reason)

    @classmethod
    def recoverable(cls, reason: str) -> "StepResult":
        return cls(StepStatus.RECOVERABLE, reason)

    @classmethod
    def fatal(cls, error: BaseException) -> "StepResult":
        return cls(StepStatus.FATAL, str(error), error)

    def raise_if_fatal(self) -> None:
        if self.status is StepStatus.FATAL:
            raise self.error


class Publisher:
    """
    Idempotent create-or-update of a task repository.

    A task id maps to exactly one repository. CREATE mode makes the repository,
    pins the `main` branch and enables Pages; REVISE mode only commits files.
    A CREATE against an existing repository switches to REVISE.
    """

    def __init__(self, settings: Settings, store: GithubStore, sleep=asyncio.sleep):
        self.store = store
        self.branch = settings.DEFAULT_BRANCH
        self.settle_seconds = settings.PAGES_SETTLE_SECONDS
        self.sleep = sleep

    async def _call(self, func, *args, **kwargs):
        return await asyncio.to_thread(func, *args, **kwargs)

    async def publish(self, repo_name: str, files: Sequence[FileContent], is_revision: bool) -> PublishResult:
        if not files:
            raise ValueError(f"publish({repo_name}): no files to commit")

        mode = PublishMode.REVISE if is_revision else PublishMode.CREATE
        logger.info(f"Starting GitHub publish | repo={repo_name} | mode={mode.value} | files={len(files)}")

        if mode is PublishMode.CREATE:
            mode = await self._create_repository(repo_name)

        if mode is PublishMode.CREATE:
            outcome = await self._ensure_branch(repo_name)
            self._log_step("ensure_branch", repo_name, outcome)
            outcome.raise_if_fatal()

        commit_sha = None
        for file in files:
            commit_sha = await self._commit_file(repo_name, file, mode)
            logger.info(f"Committed {file.path} | repo={repo_name} | commit={commit_sha}")

        if mode is PublishMode.CREATE:
            outcome = await self._enable_pages(repo_name)
            self._log_step("enable_pages", repo_name, outcome)
            outcome.raise_if_fatal()

        # Pages builds asynchronously on GitHub's side
        await self.sleep(self.settle_seconds)

        return PublishResult(
            repo_url=self.store.repository_url(repo_name),
            commit_sha=commit_sha,
            pages_url=pages_url(self.store.owner, repo_name),
        )

    async def _create_repository(self, repo_name: str) -> PublishMode:
        try:
            await self._call(self.store.create_repository, repo_name)
        except RepositoryExists:
            logger.warning(f"Repository {repo_name} already exists for {self.store.owner}; continuing as revision")
            return PublishMode.REVISE
        return PublishMode.CREATE

    async def _ensure_branch(self, repo_name: str) -> StepResult:
        """Point `main` at the default branch tip when the default branch is something else."""
        try:
            default_branch = await self._call(self.store.default_branch, repo_name)
            if default_branch == self.branch:
                return StepResult.ok(f"default branch is already '{self.branch}'")

            sha = await self._call(self.store.get_branch_sha, repo_name, default_branch)
            try:
                await self._call(self.store.get_branch_sha, repo_name, self.branch)
                return StepResult.ok(f"'{self.branch}' already exists")
            except NotFoundError:
                pass
            await self._call(self.store.create_branch, repo_name, self.branch, sha)
            return StepResult.ok(f"created '{self.branch}' from '{default_branch}' at {sha}")
        except PublishError as e:
            return StepResult.recoverable(f"could not prepare '{self.branch}': {e}")
        except Exception as e:
            return StepResult.fatal(e)

    async def _enable_pages(self, repo_name: str) -> StepResult:
        try:
            state = await self._call(self.store.enable_pages, repo_name, self.branch, "/")
        except PublishError as e:
            return StepResult.recoverable(f"could not enable GitHub Pages automatically: {e}")
        except Exception as e:
            return StepResult.fatal(e)
        return StepResult.ok(state)

    async def _current_sha(self, repo_name: str, file: FileContent, mode: PublishMode) -> Optional[str]:
        if mode is PublishMode.REVISE:
            sha = await self._call(self.store.get_file_sha, repo_name, file.path)
        else:
            try:
                sha = await self._call(self.store.get_file_sha, repo_name, file.path, self.branch)
            except PublishError as e:
                logger.warning(f"Could not check existing file {file.path} on branch {self.branch}: {e}")
                sha = None
        if sha:
            logger.info(f"Found existing file {file.path} with sha {sha}")
        return sha

    async def _refetch_sha(self, repo_name: str, file_path: str, branch: Optional[str]) -> Optional[str]:
        """Look on the target branch first, then on the default branch."""
        try:
            sha = await self._call(self.store.get_file_sha, repo_name, file_path, branch or self.branch)
        except PublishError as e:
            logger.warning(f"Could not re-read {file_path} on branch {branch or self.branch}: {e}")
            sha = None
        if not sha:
            sha = await self._call(self.store.get_file_sha, repo_name, file_path)
        return sha

    async def _commit_file(self, repo_name: str, file: FileContent, mode: PublishMode) -> str:
        branch = self.branch if mode is PublishMode.CREATE else None
        sha = await self._current_sha(repo_name, file, mode)
        prefix = "Initial" if mode is PublishMode.CREATE else "Revise"
        message = file.commit_message or f"{prefix} commit: {file.path}"

        try:
            return await self._call(self.store.put_file, repo_name, file.path, file.content, message, branch, sha)
        except ShaConflict as conflict:
            if sha:
                raise
            try:
                current = await self._refetch_sha(repo_name, file.path, branch)
                if not current:
                    raise conflict
                logger.info(f"Retrying commit for {file.path} with sha {current}")
                return await self._call(self.store.put_file, repo_name, file.path, file.content, message, branch, current)
            except PublishError as retry_error:
                if retry_error is conflict:
                    raise
                raise conflict from retry_error

    @staticmethod
    def _log_step(step: str, repo_name: str, outcome: StepResult) -> None:
        if outcome.status is StepStatus.OK:
            logger.info(f"{step}({repo_name}): {outcome.reason}")
        elif outcome.status is StepStatus.RECOVERABLE:
            logger.warning(f"{step}({repo_name}): {outcome.reason}")
        else:
            logger.error(f"{step}({repo_name}): fatal: {outcome.reason}")

from contextlib import contextmanager
from typing import Iterator, Optional, Union

import requests
from github import Auth, Github, GithubException, UnknownObjectException
from github.GithubObject import NotSet
from github.Repository import Repository

from pages_builder.core.config import Settings
from pages_builder.core.errors import NotFoundError, PublishError, RepositoryExists, ShaConflict
from pages_builder.core.logger import logger


def _error_message(err: GithubException) -> str:
    data = err.data if isinstance(err.data, dict) else {}
    message = str(data.get("message") or "")
    for detail in data.get("errors") or []:
        if isinstance(detail, dict) and detail.get("message"):
            message += f" {detail['message']}"
    return message.strip() or str(err)


def _is_name_taken(err: GithubException) -> bool:
    data = err.data if isinstance(err.data, dict) else {}
    if "name already exists" in str(data.get("message") or ""):
        return True
    return any(
        isinstance(detail, dict) and ("already exists" in str(detail.get("message") or "") or detail.get("field") == "name")
        for detail in data.get("errors") or []
    )


def translate_github_error(err: GithubException, action: str) -> PublishError:
    """
    Map a PyGithub exception onto the publish error taxonomy.

    Returns:
        NotFoundError     - 404
        RepositoryExists  - 422 because the repository name is taken
        ShaConflict       - 409/422 complaining about the file sha
        PublishError      - anything else
    """
    message = _error_message(err)
    if isinstance(err, UnknownObjectException) or err.status == 404:
        return NotFoundError(action, err.status, message)
    if err.status == 422 and _is_name_taken(err):
        return RepositoryExists(action, err.status, message)
    if err.status in (409, 422) and "sha" in message.lower():
        return ShaConflict(action, err.status, message)
    return PublishError(action, err.status, message)


class GithubStore:
    """
    Repository operations used by the publisher, one PyGithub session per call.

    All methods are blocking; the publisher runs them in worker threads.
    GithubException never escapes, it is translated with translate_github_error.
    """

    def __init__(self, settings: Settings):
        self.token = settings.GITHUB_PAT
        self.owner = settings.GITHUB_USERNAME or ""
        self.api_url = settings.GITHUB_API_URL.rstrip("/")

    @contextmanager
    def _session(self, action: str) -> Iterator[Github]:
        g = Github(auth=Auth.Token(self.token), base_url=self.api_url)
        try:
            yield g
        except GithubException as e:
            logger.debug(f"GitHub API error on {action}: {e.status} - {_error_message(e)}")
            raise translate_github_error(e, action) from e
        finally:
            g.close()

    def _repo(self, g: Github, repo_name: str) -> Repository:
        return g.get_repo(f"{self.owner}/{repo_name}")

    def repository_url(self, repo_name: str) -> str:
        return f"https://github.com/{self.owner}/{repo_name}"

    def create_repository(self, repo_name: str) -> None:
        with self._session(f"create_repository({repo_name})") as g:
            g.get_user().create_repo(
                name=repo_name,
                description="Single page app generated from a task brief",
                private=False,
                auto_init=False,
            )
        logger.info(f"create_repository({repo_name}): created")

    def default_branch(self, repo_name: str) -> str:
        with self._session(f"default_branch({repo_name})") as g:
            return self._repo(g, repo_name).default_branch

    def get_branch_sha(self, repo_name: str, branch: str) -> str:
        with self._session(f"get_branch_sha({repo_name}, {branch})") as g:
            return self._repo(g, repo_name).get_git_ref(f"heads/{branch}").object.sha

    def create_branch(self, repo_name: str, branch: str, sha: str) -> None:
        with self._session(f"create_branch({repo_name}, {branch})") as g:
            self._repo(g, repo_name).create_git_ref(ref=f"refs/heads/{branch}", sha=sha)
        logger.info(f"create_branch({repo_name}): '{branch}' -> {sha}")

    def get_file_sha(self, repo_name: str, file_path: str, ref: Optional[str] = None) -> Optional[str]:
        """Blob sha of file_path, or None when the file does not exist."""
        try:
            with self._session(f"get_file_sha({repo_name}, {file_path})") as g:
                contents = self._repo(g, repo_name).get_contents(file_path, ref=ref or NotSet)
        except NotFoundError:
            return None
        if isinstance(contents, list):
            # a directory lives at this path
            return None
        return contents.sha

    def put_file(
        self,
        repo_name: str,
        file_path: str,
        content: Union[str, bytes],
        message: str,
        branch: Optional[str] = None,
        sha: Optional[str] = None,
    ) -> str:
        """Create or update file_path and return the new commit sha."""
        with self._session(f"put_file({repo_name}, {file_path})") as g:
            repo = self._repo(g, repo_name)
            if sha:
                result = repo.update_file(file_path, message, content, sha, branch=branch or NotSet)
            else:
                result = repo.create_file(file_path, message, content, branch=branch or NotSet)
        return result["commit"].sha

    def enable_pages(self, repo_name: str, branch: str = "main", path: str = "/") -> str:
        """
        Enable GitHub Pages for a repository.

        Returns:
            "enabled" or "already enabled"; any other outcome raises PublishError
        """
        action = f"enable_pages({repo_name})"
        url = f"{self.api_url}/repos/{self.owner}/{repo_name}/pages"
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28"
        }
        data = {"source": {"branch": branch, "path": path}}

        try:
            response = requests.post(url, headers=headers, json=data, timeout=10)
        except requests.RequestException as e:
            raise PublishError(action, None, str(e)) from e

        if response.status_code == 201:
            logger.info(f"{action}: enabled")
            return "enabled"
        if response.status_code == 409:
            logger.info(f"{action}: already enabled")
            return "already enabled"
        raise PublishError(action, response.status_code, response.text[:200])

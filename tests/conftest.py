import itertools
from typing import Dict, List, Optional

import pytest

from pages_builder.core.config import Settings
from pages_builder.core.errors import NotFoundError, PublishError, RepositoryExists, ShaConflict
from pages_builder.core.model import FileContent


def make_settings(**overrides) -> Settings:
    values = dict(
        SHARED_SECRET="S",
        GITHUB_PAT="ghp_test",
        GITHUB_USERNAME="octocat",
        OPENAI_API_KEY="sk-test",
        OPENAI_BASE_URL="https://llm.test/v1",
        PAGES_SETTLE_SECONDS=0,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeStore:
    """
    In-memory stand-in for GithubStore.

    Every call is appended to `calls` as (method, repo, *details) so tests can
    assert on the exact sequence of remote operations.
    """

    def __init__(self, owner: str = "octocat"):
        self.owner = owner
        self.repos: Dict[str, dict] = {}
        self.calls: List[tuple] = []
        self.pages_error: Optional[Exception] = None
        self.branch_error: Optional[Exception] = None
        self.stale_reads: set = set()
        self._commits = itertools.count(1)

    def repository_url(self, repo_name: str) -> str:
        return f"https://github.com/{self.owner}/{repo_name}"

    def _get(self, repo_name: str) -> dict:
        if repo_name not in self.repos:
            raise NotFoundError(f"repo({repo_name})", 404, "Not Found")
        return self.repos[repo_name]

    def add_repo(self, repo_name: str, default_branch: str = "main", files: Optional[Dict[str, str]] = None):
        self.repos[repo_name] = {
            "default_branch": default_branch,
            "branches": {default_branch: "base-sha"} if files else {},
            "files": {path: (f"blob-{path}-0", content) for path, content in (files or {}).items()},
            "pages": False,
        }

    def create_repository(self, repo_name: str) -> None:
        self.calls.append(("create_repository", repo_name))
        if repo_name in self.repos:
            raise RepositoryExists(f"create_repository({repo_name})", 422, "name already exists on this account")
        self.add_repo(repo_name)

    def default_branch(self, repo_name: str) -> str:
        self.calls.append(("default_branch", repo_name))
        if self.branch_error:
            raise self.branch_error
        return self._get(repo_name)["default_branch"]

    def get_branch_sha(self, repo_name: str, branch: str) -> str:
        self.calls.append(("get_branch_sha", repo_name, branch))
        branches = self._get(repo_name)["branches"]
        if branch not in branches:
            raise NotFoundError(f"get_branch_sha({repo_name}, {branch})", 404, "Not Found")
        return branches[branch]

    def create_branch(self, repo_name: str, branch: str, sha: str) -> None:
        self.calls.append(("create_branch", repo_name, branch, sha))
        self._get(repo_name)["branches"][branch] = sha

    def get_file_sha(self, repo_name: str, file_path: str, ref: Optional[str] = None) -> Optional[str]:
        self.calls.append(("get_file_sha", repo_name, file_path, ref))
        if file_path in self.stale_reads:
            self.stale_reads.discard(file_path)
            return None
        entry = self._get(repo_name)["files"].get(file_path)
        return entry[0] if entry else None

    def put_file(self, repo_name, file_path, content, message, branch=None, sha=None) -> str:
        self.calls.append(("put_file", repo_name, file_path, sha))
        files = self._get(repo_name)["files"]
        current = files.get(file_path)
        if current and sha != current[0]:
            raise ShaConflict(f"put_file({repo_name}, {file_path})", 422, 'Invalid request. "sha" wasn\'t supplied.')
        if not current and sha:
            raise PublishError(f"put_file({repo_name}, {file_path})", 422, "sha given for a new file")
        commit = f"commit-{next(self._commits)}"
        files[file_path] = (f"blob-{commit}", content)
        return commit

    def enable_pages(self, repo_name: str, branch: str = "main", path: str = "/") -> str:
        self.calls.append(("enable_pages", repo_name, branch, path))
        if self.pages_error:
            raise self.pages_error
        self._get(repo_name)["pages"] = True
        return "enabled"

    def committed_paths(self) -> List[str]:
        return [call[2] for call in self.calls if call[0] == "put_file"]


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def files() -> List[FileContent]:
    return [
        FileContent(path="index.html", content="<!DOCTYPE html><p>app</p>"),
        FileContent(path="README.md", content="# t1"),
        FileContent(path="LICENSE", content="MIT License"),
    ]

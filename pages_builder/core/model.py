from pydantic import BaseModel, Field
from typing import Optional


class TaskRequest(BaseModel):
    """
    Body of POST /api-endpoint, built only after the secret has been checked.
    Every field has a default so a minimal body is still a valid task.
    """
    secret: str = ""
    brief: str = ""
    task: str = Field("", description="Unique task id, also the repository name")
    email: Optional[str] = None
    round: int = 1
    nonce: Optional[str] = None
    evaluation_url: str = ""

    @property
    def is_revision(self) -> bool:
        return self.round == 2


class FileContent(BaseModel):
    """
    One file of the generated artifact set, committed as UTF-8
    """
    path: str = Field(..., description="file path") # index.html
    content: str = Field(..., description="file content") # <!DOCTYPE html>...
    commit_message: Optional[str] = None


class PublishResult(BaseModel):
    repo_url: str
    commit_sha: str
    pages_url: str


class NotificationPayload(BaseModel):
    email: Optional[str] = None
    task: str
    round: int
    nonce: Optional[str] = None
    repo_url: str
    commit_sha: str
    pages_url: str

from pydantic import BaseModel, ConfigDict, HttpUrl
from typing import List, Optional

class Attachment(BaseModel):
    name: str
    url: str  # data: URIs and http(s) links, never dereferenced

class BuildRequest(BaseModel):
    secret: str
    email: str
    task: str
    round: int
    nonce: Optional[str] = None
    brief: str
    checks: List[str] = []
    evaluation_url: HttpUrl
    attachments: List[Attachment] = []

class RepositoryRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    repo_url: str
    commit_sha: str
    pages_url: str

class NotificationPayload(RepositoryRecord):
    email: str
    task: str
    round: int
    nonce: Optional[str] = None

class FailurePayload(BaseModel):
    email: str
    task: str
    round: int
    nonce: Optional[str] = None
    status: str = "failed"
    stage: str
    error: str

class AckResponse(BaseModel):
    message: str

class ErrorResponse(BaseModel):
    error: str

"""Data models for the lint reviewer."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, TypedDict

from pydantic import BaseModel, ConfigDict

REVIEW_EVENT_COMMENT = "COMMENT"


class CommitState(StrEnum):
    """Commit status states we publish."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


class ReviewCommentPayload(TypedDict):
    """GitHub review comment structure."""

    path: str
    position: int
    body: str


@dataclass(frozen=True)
class ProposedComment:
    """An inline comment we intend to post, positioned within a file's patch."""

    body: str
    path: str
    position: int

    def to_payload(self) -> ReviewCommentPayload:
        return {"path": self.path, "position": self.position, "body": self.body}


@dataclass(frozen=True)
class Review:
    """A batch of inline comments attached to one commit of a pull request."""

    commit_id: str
    comments: tuple[ProposedComment, ...] = field(default_factory=tuple)
    event: str = REVIEW_EVENT_COMMENT

    def to_payload(self) -> dict[str, Any]:
        return {
            "commit_id": self.commit_id,
            "event": self.event,
            "comments": [comment.to_payload() for comment in self.comments],
        }


# Inbound webhook payload. Only the fields we read are modeled.


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class RepositoryOwner(_Payload):
    login: str


class Repository(_Payload):
    name: str
    owner: RepositoryOwner | None = None


class PullRequestHead(_Payload):
    ref: str
    sha: str


class PullRequest(_Payload):
    head: PullRequestHead


class PullRequestEvent(_Payload):
    """A `pull_request` webhook event."""

    action: str
    number: int
    repository: Repository
    pull_request: PullRequest

    @property
    def repo(self) -> str:
        return self.repository.name

    @property
    def owner(self) -> str | None:
        return self.repository.owner.login if self.repository.owner else None

    @property
    def branch(self) -> str:
        return self.pull_request.head.ref

    @property
    def head_sha(self) -> str:
        return self.pull_request.head.sha

"""Pull request event data models."""

from typing import Any, Dict, Optional

from pydantic import BaseModel

from .review import ReviewContext


class UserInfo(BaseModel):
    """GitHub account that authored or triggered an event."""

    login: str
    id: Optional[int] = None
    type: Optional[str] = None


class RepositoryInfo(BaseModel):
    """Repository the pull request belongs to."""

    name: str
    full_name: str
    owner: str
    private: bool = False


class PullRequestInfo(BaseModel):
    """Pull request fields extracted from a ``pull_request`` webhook payload."""

    number: int
    title: str
    body: Optional[str] = None
    state: str
    draft: bool = False

    source_branch: str
    target_branch: str
    source_repo: Optional[str] = None
    target_repo: Optional[str] = None
    head_sha: Optional[str] = None

    author: UserInfo
    commits: int = 0
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0

    repository: RepositoryInfo
    sender: UserInfo

    html_url: Optional[str] = None
    diff_url: Optional[str] = None
    patch_url: Optional[str] = None

    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_review_context(self) -> ReviewContext:
        return ReviewContext(
            title=self.title,
            author=self.author.login,
            source_branch=self.source_branch,
            target_branch=self.target_branch,
            pr_number=self.number,
            repository=self.repository.full_name,
            head_sha=self.head_sha,
        )


def _user(data: Dict[str, Any]) -> UserInfo:
    return UserInfo(login=data["login"], id=data.get("id"), type=data.get("type"))


def extract_pull_request_info(payload: Dict[str, Any]) -> PullRequestInfo:
    """
    Extract the pull request fields the review pipeline needs.

    Raises ``KeyError``/``TypeError`` when a required object or field is
    missing; callers translate that into an internal error.
    """
    pull_request = payload["pull_request"]
    repository = payload["repository"]
    sender = payload["sender"]
    head = pull_request["head"]
    base = pull_request["base"]

    return PullRequestInfo(
        number=pull_request["number"],
        title=pull_request["title"],
        body=pull_request.get("body"),
        state=pull_request["state"],
        draft=bool(pull_request.get("draft", False)),
        source_branch=head["ref"],
        target_branch=base["ref"],
        source_repo=(head.get("repo") or {}).get("full_name"),
        target_repo=(base.get("repo") or {}).get("full_name"),
        head_sha=head.get("sha"),
        author=_user(pull_request["user"]),
        commits=pull_request.get("commits") or 0,
        additions=pull_request.get("additions") or 0,
        deletions=pull_request.get("deletions") or 0,
        changed_files=pull_request.get("changed_files") or 0,
        repository=RepositoryInfo(
            name=repository["name"],
            full_name=repository["full_name"],
            owner=repository["owner"]["login"],
            private=bool(repository.get("private", False)),
        ),
        sender=_user(sender),
        html_url=pull_request.get("html_url"),
        diff_url=pull_request.get("diff_url"),
        patch_url=pull_request.get("patch_url"),
        created_at=pull_request.get("created_at"),
        updated_at=pull_request.get("updated_at"),
    )

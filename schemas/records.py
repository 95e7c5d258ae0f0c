"""
Pydantic schemas for decoded source payloads and ingested records
"""

import enum
from typing import List, Optional

from pydantic import BaseModel, Field, validator

STACKOVERFLOW_PERMALINK = "https://stackoverflow.com/q/{question_id}"


# ============================================================================
# Stack Exchange payloads
# ============================================================================

class QAReply(BaseModel):
    """One answer attached to a question"""

    answer_id: int
    body: str = ""


class QuestionPayload(BaseModel):
    question_id: int
    title: str = ""
    body: str = ""


class QuestionsPage(BaseModel):
    """Body of GET /questions"""

    items: List[QuestionPayload]


class AnswersPage(BaseModel):
    """Body of GET /questions/{id}/answers"""

    items: List[QAReply]


class QAThread(BaseModel):
    """
    A question and up to five of its most recent answers.

    Stored insert-if-absent: a question_id (or answer_id) that is already in
    the destination table is left untouched.
    """

    question_id: int
    title: str = ""
    body: str = ""
    answers: List[QAReply] = Field(default_factory=list)

    @property
    def link(self) -> str:
        return STACKOVERFLOW_PERMALINK.format(question_id=self.question_id)


# ============================================================================
# GitHub payloads
# ============================================================================

class IssuePayload(BaseModel):
    number: int
    body: Optional[str] = None

    @validator("body", always=True)
    def empty_body(cls, v):
        """GitHub sends null for issues without a description"""
        return v or ""


class CommentPayload(BaseModel):
    body: Optional[str] = None

    @validator("body", always=True)
    def empty_body(cls, v):
        return v or ""


class IssuesPage(BaseModel):
    """Body of GET /repos/{owner}/{repo}/issues"""

    items: List[IssuePayload]


class CommentsPage(BaseModel):
    """Body of GET /repos/{owner}/{repo}/issues/{number}/comments"""

    items: List[CommentPayload]


class RepoItemKind(str, enum.Enum):
    """Role of a repository item, stored as its single label"""
    QUESTION = "Question"
    ANSWER = "Answer"


class RepoItem(BaseModel):
    """An issue (Question) or an issue comment (Answer)"""

    kind: RepoItemKind
    body: str = ""

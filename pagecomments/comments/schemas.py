"""Pydantic schemas for the comment endpoints."""

from pydantic import BaseModel, ConfigDict, Field

from .models import PublishedComment


class CommentForm(BaseModel):
    """Form fields of a comment submission.

    Everything defaults to empty so that missing fields reach the service's
    own validation and its error messages.
    """

    model_config = ConfigDict(extra="ignore")

    url: str = ""
    comment_author: str = ""
    comment_author_email: str = ""
    comment_author_url: str = ""
    comment_content: str = ""


class CommentResponse(BaseModel):
    """Approved comment, author and content HTML-escaped."""

    id: str = Field(..., description="Comment id (Unix timestamp)")
    author: str
    content: str

    @classmethod
    def from_comment(cls, comment: PublishedComment) -> "CommentResponse":
        return cls(id=comment.id, author=comment.author, content=comment.content)


class ThreadStatusResponse(BaseModel):
    """Whether a thread accepts comments."""

    host: str
    path: str
    enabled: bool

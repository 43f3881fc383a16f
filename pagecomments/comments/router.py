"""Comment API endpoints.

- GET  /comments/?url=...         approved comments of the page's thread
- POST /comments/                 form submission, redirects to the page
- GET  /comments/status?url=...   whether the page accepts comments
"""

from typing import Annotated

from fastapi import APIRouter, Form, Query, Request, status
from fastapi.responses import RedirectResponse

from pagecomments.core.context import set_thread
from pagecomments.core.middleware import client_ip

from .dependencies import CommentServiceDep, handle_comment_error
from .exceptions import CommentError
from .models import Thread, create_submission
from .schemas import CommentForm, CommentResponse, ThreadStatusResponse


router = APIRouter(prefix="/comments", tags=["comments"])


def _thread_from_query(url: str) -> Thread:
    try:
        thread = Thread.from_url(url)
    except CommentError as e:
        raise handle_comment_error(e) from e
    set_thread(str(thread))
    return thread


@router.get(
    "/",
    response_model=list[CommentResponse],
    summary="List approved comments",
)
async def list_comments(
    comment_service: CommentServiceDep,
    url: Annotated[str, Query()] = "",
) -> list[CommentResponse]:
    """Get the approved comments of a page, oldest first.

    Author and content come back HTML-escaped.
    """
    thread = _thread_from_query(url)
    try:
        comments = await comment_service.list_comments(thread)
    except CommentError as e:
        raise handle_comment_error(e) from e

    return [CommentResponse.from_comment(c) for c in comments]


@router.post(
    "/",
    status_code=status.HTTP_302_FOUND,
    response_class=RedirectResponse,
    summary="Submit comment",
)
async def submit_comment(
    request: Request,
    form: Annotated[CommentForm, Form()],
    comment_service: CommentServiceDep,
) -> RedirectResponse:
    """Store a comment and send the browser back to the page.

    The comment shows up once Akismet (or a moderator) approves it.
    """
    try:
        submission = create_submission(
            url=form.url,
            comment_author=form.comment_author,
            comment_content=form.comment_content,
            comment_author_email=form.comment_author_email,
            comment_author_url=form.comment_author_url,
            user_ip=client_ip(request) or "",
            user_agent=request.headers.get("user-agent", ""),
            referrer=request.headers.get("referer", ""),
        )
        await comment_service.submit(submission)
    except CommentError as e:
        raise handle_comment_error(e) from e

    return RedirectResponse(
        submission.record.permalink, status_code=status.HTTP_302_FOUND
    )


@router.get(
    "/status",
    response_model=ThreadStatusResponse,
    summary="Check whether a page accepts comments",
)
async def thread_status(
    comment_service: CommentServiceDep,
    url: Annotated[str, Query()] = "",
) -> ThreadStatusResponse:
    thread = _thread_from_query(url)
    try:
        enabled = await comment_service.is_enabled(thread)
    except CommentError as e:
        raise handle_comment_error(e) from e

    return ThreadStatusResponse(host=thread.host, path=thread.path, enabled=enabled)

"""FastAPI dependencies for the comment endpoints."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .exceptions import CommentError
from .service import CommentService


async def get_comment_service(request: Request) -> CommentService:
    """Get comment service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "comment_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Comment service not available",
        )
    return app_state.comment_service


CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]


STATUS_MAP = {
    "invalid_input": status.HTTP_400_BAD_REQUEST,
    "invalid_url": status.HTTP_400_BAD_REQUEST,
    "missing_host": status.HTTP_400_BAD_REQUEST,
    "comments_not_enabled": status.HTTP_400_BAD_REQUEST,
    "comment_not_found": status.HTTP_404_NOT_FOUND,
    "allocation_contention": status.HTTP_503_SERVICE_UNAVAILABLE,
    "classifier_unavailable": status.HTTP_502_BAD_GATEWAY,
    "classifier_protocol_error": status.HTTP_502_BAD_GATEWAY,
}


def handle_comment_error(error: CommentError) -> HTTPException:
    """Convert comment errors to HTTP exceptions.

    Unknown codes, backend failures included, become 500.
    """
    status_code = STATUS_MAP.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return HTTPException(
        status_code=status_code,
        detail=error.message,
    )

"""Common dependencies for Channel Service."""

from fastapi import HTTPException, Request, status

from .config import settings


async def get_current_user_id(request: Request) -> str:
    """Get current user ID from authentication middleware.

    This is set by the AuthMiddleware after validating the JWT token.
    """
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return str(user_id)


def get_pagination_params(
    limit: int = settings.default_page_size,
    offset: int = 0,
) -> dict:
    """Get pagination parameters.

    Args:
        limit: Number of items to return (default 50, max 100)
        offset: Number of items to skip (default 0)

    Returns:
        Dict with pagination parameters
    """
    if limit < 1:
        limit = 1
    if limit > settings.max_page_size:
        limit = settings.max_page_size

    if offset < 0:
        offset = 0

    return {
        "limit": limit,
        "offset": offset,
    }

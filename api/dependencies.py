"""Shared FastAPI dependencies: the services container and the caller."""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from logger import get_logger

logger = get_logger()


def get_services(request: Request):
    return request.app.state.services


def get_current_user(
    authorization: Optional[str] = Header(None),
    services=Depends(get_services),
) -> str:
    """Resolve the bearer token to a user ID.

    Tokens are looked up in the configured token table.

    Raises:
        HTTPException: 401 when the header is missing or the token unknown.
    """
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization required")

    token = authorization.removeprefix("Bearer ").strip()
    user_id = services.config.api_tokens.get(token)
    if user_id is None:
        logger.warning("Rejected request with an unknown token")
        raise HTTPException(status_code=401, detail="Invalid authentication")
    return user_id

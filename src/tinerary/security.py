from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import APIKeyHeader

from .config import get_api_key

API_KEY_HEADER_NAME = "X-API-Key"
USER_ID_HEADER_NAME = "X-User-Id"

api_key_header = APIKeyHeader(name=API_KEY_HEADER_NAME, auto_error=False)


async def verify_api_key(
    api_key: Annotated[str | None, Depends(api_key_header)],
) -> str | None:
    expected_key = get_api_key()
    if not expected_key or api_key != expected_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )
    return api_key


async def optional_user_id(
    x_user_id: Annotated[str | None, Header(alias=USER_ID_HEADER_NAME)] = None,
) -> str | None:
    """The calling user's id as forwarded by the web tier, if any."""
    if x_user_id is None:
        return None
    x_user_id = x_user_id.strip()
    return x_user_id or None


RequireApiKey = Annotated[str, Depends(verify_api_key)]
OptionalUserId = Annotated[str | None, Depends(optional_user_id)]

import hmac
import os
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

security = HTTPBearer(auto_error=False)

async def get_admin(credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)]):
    """
    Guards install administration with a static bearer token (ADMIN_API_TOKEN).
    When the variable is unset the check is skipped, which is meant for local dev.
    """
    expected = os.getenv("ADMIN_API_TOKEN", "")
    if not expected:
        return None

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    if not hmac.compare_digest(credentials.credentials.encode(), expected.encode()):
        raise credentials_exception
    return credentials.credentials

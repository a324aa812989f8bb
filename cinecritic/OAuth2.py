import logging
from datetime import datetime, timezone, timedelta
from typing import Optional

from jose import jwt, JWTError
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from .config import settings
from .exceptions import Unauthenticated
from .models import User
from .schemas import TokenResponseData

logger = logging.getLogger(__name__)

TOKEN_COOKIE_NAME = "access_token"

# Bearer header is optional here so the cookie set at login can be used instead
oauth2_bearer = OAuth2PasswordBearer(tokenUrl="/logins/token", auto_error=False)

# Create Access Token
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    payload = data.copy()
    expires = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload.update({"exp": expires})
    encoded_jwt = jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt

# Verify Access Token
def verify_access_token(token: str) -> TokenResponseData:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        id: str = payload.get("id")
        email: str = payload.get("email")
        if not id or not email:
            raise Unauthenticated("Invalid or expired token")
        return TokenResponseData(id=id, email=email)
    except JWTError as e:
        logger.debug("Token decoding error: %s", e)
        raise Unauthenticated("Invalid or expired token")


def _token_from_request(request: Request, bearer: Optional[str]) -> Optional[str]:
    return bearer or request.cookies.get(TOKEN_COOKIE_NAME)


async def get_current_user(request: Request, token: Optional[str] = Depends(oauth2_bearer)) -> User:
    token = _token_from_request(request, token)
    if not token:
        raise Unauthenticated()

    token_data = verify_access_token(token)

    user = await User.get(token_data.id)
    if not user:
        raise Unauthenticated("User not found")
    return user


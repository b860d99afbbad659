from datetime import datetime, timedelta, UTC
from typing import Optional

from jose import JWTError, jwt

from campus_resources.configs.settings import settings


SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES


class InvalidTokenError(ValueError):
    pass


"""
Builds a signed JWT for the given identity.
    - `uid` is the opaque account id issued by the identity provider.
    - Tokens are issued by the external auth service; this helper exists so
      scripts and tests can mint compatible ones.
"""
def create_access_token(uid: str, email: str = "", expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": uid, "email": email, "type": "access", "exp": expire}
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        raise InvalidTokenError("Invalid or expired token") from e
    if not payload.get("sub"):
        raise InvalidTokenError("Invalid token: missing subject")
    return payload

import uuid
from datetime import timedelta, datetime, timezone
from typing import Iterable
from jose import jwt
from .config import SECRET_KEY, ALGORITHM, JWT_ISSUER, JWT_AUDIENCE

ACCESS_TOKEN_EXPIRE_MINUTES = 15


def create_access_token(subject: str | int, *, roles: Iterable[str] = ("CUSTOMER",)) -> str:
    """Mint an access token the way the external auth service does (local tooling and tests)."""
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(subject),
        "iat": int(now.timestamp()),
        "nbf": int(now.timestamp()),
        "exp": int(expire.timestamp()),
        "jti": str(uuid.uuid4()),
        "typ": "access",
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "roles": list(roles)
    }
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(
        token,
        SECRET_KEY,
        algorithms=[ALGORITHM],
        issuer=JWT_ISSUER,
        audience=JWT_AUDIENCE,
        options={"verify_aud": True, "leeway": 5}
    )

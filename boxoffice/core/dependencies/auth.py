from typing import Annotated
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from pydantic import ValidationError
from boxoffice.core.security import decode_access_token
from boxoffice.domain.auth.schemas import TokenPayload, Purchaser
from boxoffice.domain.exceptions import Unauthorized, Forbidden
from boxoffice.core.ctx import AUTH_ROLES_CTX, PURCHASER_ID_CTX


oauth2_bearer = OAuth2PasswordBearer(tokenUrl="/auth/login")


async def get_token_payload(token: Annotated[str, Depends(oauth2_bearer)]) -> TokenPayload:
    try:
        raw_payload = decode_access_token(token)
    except JWTError:
        raise Unauthorized("Invalid authentication credentials", ctx={"reason": "invalid_token"})
    if raw_payload.get("typ") != "access":
        raise Unauthorized("Invalid token type", ctx={"reason": "invalid_type"})
    try:
        return TokenPayload.model_validate(raw_payload)
    except ValidationError:
        raise Unauthorized("Invalid authentication credentials", ctx={"reason": "invalid_payload"})


def get_current_purchaser(*allowed_roles: str):
    allowed = set(allowed_roles)

    async def _inner(payload: Annotated[TokenPayload, Depends(get_token_payload)]) -> Purchaser:
        roles = frozenset(payload.roles)
        AUTH_ROLES_CTX.set(tuple(sorted(roles)))
        PURCHASER_ID_CTX.set(payload.sub)

        if allowed and roles.isdisjoint(allowed):
            raise Forbidden("Permission denied", ctx={"required": sorted(allowed), "user_roles": sorted(roles)})
        return Purchaser(id=payload.sub, roles=roles)
    return _inner

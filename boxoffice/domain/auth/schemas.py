from typing import Literal, NamedTuple
from pydantic import BaseModel, ConfigDict


class TokenPayload(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sub: str
    iat: int
    nbf: int
    exp: int
    jti: str | None = None
    typ: Literal["access"] | None = None
    iss: str | None = None
    aud: str | list[str] | None = None
    roles: list[str] = []


class Purchaser(NamedTuple):
    id: str
    roles: frozenset[str]

from pydantic import BaseModel, Field

from sima.schemas.common import InputModel


class TokenPair(BaseModel):
    accessToken: str
    refreshToken: str


class UserLogin(InputModel):
    usuario: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=100)


class ChangeOwnPasswordIn(InputModel):
    actual: str = Field(..., min_length=8, max_length=100)
    nueva: str = Field(..., min_length=8, max_length=100)


class AdminChangePasswordIn(InputModel):
    nueva: str = Field(..., min_length=8, max_length=100)

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from sima.schemas.common import InputModel

Role = Literal["admin", "usuario"]


class UserBase(InputModel):
    usuario: str = Field(..., min_length=3, max_length=50)
    nombre: str = Field(..., min_length=2, max_length=100)
    apellido: str = Field(..., min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    rol: Role
    activo: bool = True


class UserCreate(UserBase):
    pass


class UserUpdate(UserBase):
    pass


class ProfileUpdate(InputModel):
    nombre: str = Field(..., min_length=2, max_length=100)
    apellido: str = Field(..., min_length=2, max_length=100)
    email: Optional[EmailStr] = None


class UserOut(BaseModel):
    id: int
    usuario: str
    nombre: str
    apellido: str
    email: Optional[str] = None
    rol: str
    activo: bool
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class UserCreatedOut(BaseModel):
    id: int
    tempPassword: str
    message: str

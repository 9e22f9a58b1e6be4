from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from sima.schemas.common import InputModel


class PersonaIn(InputModel):
    nombre: str = Field(..., min_length=2, max_length=100)
    apellido: str = Field(..., min_length=2, max_length=100)
    dni: str = Field(..., pattern=r"^[0-9]{7,9}$")
    fecha_nacimiento: Optional[date] = None
    nacionalidad: Optional[str] = Field(None, max_length=100)
    direccion: Optional[str] = Field(None, max_length=500)
    telefono: Optional[str] = Field(None, pattern=r"^[+0-9][0-9\s\-()]{6,19}$")
    email: Optional[EmailStr] = None
    observaciones: Optional[str] = Field(None, max_length=2000)
    comisaria: Optional[str] = Field(None, max_length=200)

    @field_validator("dni", mode="before")
    @classmethod
    def dni_as_text(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class PersonaOut(BaseModel):
    id: int
    nombre: str
    apellido: str
    dni: str
    fecha_nacimiento: Optional[date] = None
    nacionalidad: Optional[str] = None
    direccion: Optional[str] = None
    telefono: Optional[str] = None
    email: Optional[str] = None
    observaciones: Optional[str] = None
    comisaria: Optional[str] = None
    foto_principal: Optional[str] = None
    fotos_adicionales: list[str] = []
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }

    @field_validator("fotos_adicionales", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return v or []


class ComisariaCount(BaseModel):
    comisaria: Optional[str] = None
    count: int


class PersonaStats(BaseModel):
    total_personas: int
    personas_por_comisaria: list[ComisariaCount]
    registros_ultimos_30_dias: int

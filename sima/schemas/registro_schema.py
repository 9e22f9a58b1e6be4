from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from sima.schemas.common import InputModel
from sima.schemas.persona_schema import PersonaOut


class RegistroIn(InputModel):
    persona_id: int = Field(..., gt=0)
    tipo_delito: str = Field(..., min_length=2, max_length=100)
    lugar: Optional[str] = Field(None, max_length=200)
    estado: Optional[str] = Field(None, max_length=100)
    juzgado: Optional[str] = Field(None, max_length=100)
    detalle: Optional[str] = Field(None, max_length=2000)


class RegistroOut(BaseModel):
    id: int
    persona_id: int
    tipo_delito: str
    lugar: Optional[str] = None
    estado: Optional[str] = None
    juzgado: Optional[str] = None
    detalle: Optional[str] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class RegistroDetailOut(RegistroOut):
    persona: Optional[PersonaOut] = None


class PersonaDetailOut(PersonaOut):
    registros_delictuales: list[RegistroOut] = []
    total_registros: int = 0

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from sima.db.base import Base


class RegistroDelictual(Base):
    __tablename__ = "registros_delictuales"

    id = Column(Integer, primary_key=True, index=True)
    persona_id = Column(Integer, ForeignKey("personas_registradas.id", ondelete="CASCADE"),
                        nullable=False, index=True)
    tipo_delito = Column(String(100), nullable=False)
    lugar = Column(String(200), nullable=True)
    estado = Column(String(100), nullable=True)
    juzgado = Column(String(100), nullable=True)
    detalle = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True)
    updated_by = Column(Integer, ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    persona = relationship("PersonaRegistrada", back_populates="registros")

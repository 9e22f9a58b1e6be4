from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, func, text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import relationship

from sima.db.base import Base


class PersonaRegistrada(Base):
    __tablename__ = "personas_registradas"
    __table_args__ = (
        # A DNI may be reused once the previous holder is soft-deleted.
        Index("uq_personas_dni_activos", "dni", unique=True,
              postgresql_where=text("deleted_at IS NULL")),
        Index("ix_personas_apellido", "apellido"),
        Index("ix_personas_comisaria", "comisaria"),
    )

    id = Column(Integer, primary_key=True, index=True)
    nombre = Column(String(100), nullable=False)
    apellido = Column(String(100), nullable=False)
    dni = Column(String(9), nullable=False)
    fecha_nacimiento = Column(Date, nullable=True)
    nacionalidad = Column(String(100), nullable=True)
    direccion = Column(String(500), nullable=True)
    telefono = Column(String(20), nullable=True)
    email = Column(String(254), nullable=True)
    observaciones = Column(Text, nullable=True)
    comisaria = Column(String(200), nullable=True)
    foto_principal = Column(String(255), nullable=True)
    fotos_adicionales = Column(ARRAY(String(255)), nullable=False, server_default="{}")
    created_by = Column(Integer, ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True)
    updated_by = Column(Integer, ForeignKey("usuarios.id", ondelete="SET NULL"), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    registros = relationship("RegistroDelictual", back_populates="persona", passive_deletes=True)

    def __repr__(self):
        return f"<PersonaRegistrada(dni={self.dni}, apellido={self.apellido})>"

"""initial schema: usuarios, personas, registros, audit

Revision ID: 0001
Revises:
Create Date: 2026-10-19 10:00:00.000000
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns():
    return [
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('usuarios.id', ondelete='SET NULL'), nullable=True),
        sa.Column('updated_by', sa.Integer(), sa.ForeignKey('usuarios.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS pg_trgm")

    op.create_table(
        'usuarios',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('usuario', sa.String(length=50), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('nombre', sa.String(length=100), nullable=False),
        sa.Column('apellido', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=True),
        sa.Column('rol', sa.String(length=20), nullable=False, server_default='usuario'),
        sa.Column('activo', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('token_version', sa.Integer(), nullable=False, server_default='0'),
        *_audit_columns(),
        sa.CheckConstraint("rol IN ('admin', 'usuario')", name='ck_usuarios_rol'),
    )
    op.create_index(op.f('ix_usuarios_id'), 'usuarios', ['id'])

    op.create_table(
        'personas_registradas',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nombre', sa.String(length=100), nullable=False),
        sa.Column('apellido', sa.String(length=100), nullable=False),
        sa.Column('dni', sa.String(length=9), nullable=False),
        sa.Column('fecha_nacimiento', sa.Date(), nullable=True),
        sa.Column('nacionalidad', sa.String(length=100), nullable=True),
        sa.Column('direccion', sa.String(length=500), nullable=True),
        sa.Column('telefono', sa.String(length=20), nullable=True),
        sa.Column('email', sa.String(length=254), nullable=True),
        sa.Column('observaciones', sa.Text(), nullable=True),
        sa.Column('comisaria', sa.String(length=200), nullable=True),
        sa.Column('foto_principal', sa.String(length=255), nullable=True),
        sa.Column('fotos_adicionales', postgresql.ARRAY(sa.String(length=255)), nullable=False, server_default='{}'),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *_audit_columns(),
    )
    op.create_index(op.f('ix_personas_registradas_id'), 'personas_registradas', ['id'])
    op.create_index('ix_personas_apellido', 'personas_registradas', ['apellido'])
    op.create_index('ix_personas_comisaria', 'personas_registradas', ['comisaria'])
    op.create_index(
        'uq_personas_dni_activos', 'personas_registradas', ['dni'],
        unique=True, postgresql_where=sa.text('deleted_at IS NULL'),
    )
    # Trigram indexes back the ILIKE '%term%' searches.
    for column in ('nombre', 'apellido', 'dni'):
        op.execute(
            f"CREATE INDEX ix_personas_{column}_trgm ON personas_registradas "
            f"USING gin ({column} gin_trgm_ops)"
        )

    op.create_table(
        'registros_delictuales',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('persona_id', sa.Integer(),
                  sa.ForeignKey('personas_registradas.id', ondelete='CASCADE'), nullable=False),
        sa.Column('tipo_delito', sa.String(length=100), nullable=False),
        sa.Column('lugar', sa.String(length=200), nullable=True),
        sa.Column('estado', sa.String(length=100), nullable=True),
        sa.Column('juzgado', sa.String(length=100), nullable=True),
        sa.Column('detalle', sa.Text(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *_audit_columns(),
    )
    op.create_index(op.f('ix_registros_delictuales_id'), 'registros_delictuales', ['id'])
    op.create_index(op.f('ix_registros_delictuales_persona_id'), 'registros_delictuales', ['persona_id'])
    op.execute(
        "CREATE INDEX ix_registros_tipo_delito_trgm ON registros_delictuales "
        "USING gin (tipo_delito gin_trgm_ops)"
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('usuarios.id', ondelete='SET NULL'), nullable=True),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('entity', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('payload', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f('ix_audit_logs_id'), 'audit_logs', ['id'])
    op.create_index('ix_audit_logs_entity', 'audit_logs', ['entity', 'entity_id'])
    op.create_index('ix_audit_logs_user_created', 'audit_logs', ['user_id', 'created_at'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.execute("DROP INDEX IF EXISTS ix_registros_tipo_delito_trgm")
    op.drop_table('registros_delictuales')
    for column in ('nombre', 'apellido', 'dni'):
        op.execute(f"DROP INDEX IF EXISTS ix_personas_{column}_trgm")
    op.drop_index('uq_personas_dni_activos', table_name='personas_registradas')
    op.drop_table('personas_registradas')
    op.drop_table('usuarios')

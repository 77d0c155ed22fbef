"""Create roles_personas, personas and registros_entrada_salida.

Revision ID: 3b9f2c71a0d4
Revises:
Create Date: 2026-10-19 09:12:40.118204
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '3b9f2c71a0d4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'roles_personas',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nombre', sa.String(50), nullable=False, unique=True),
    )

    op.create_table(
        'personas',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tipo_documento', sa.String(10)),
        sa.Column('documento', sa.String(30), nullable=False),
        sa.Column('nombres', sa.String(100), nullable=False),
        sa.Column('apellidos', sa.String(100)),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles_personas.id')),
        sa.Column('estado', sa.String(20), nullable=False),
        sa.Column('codigo_qr', sa.String(120)),
        sa.Column('fecha_expiracion', sa.DateTime()),
        sa.Column('zona', sa.String(100)),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
    )
    with op.batch_alter_table('personas') as batch:
        batch.create_index('ix_personas_documento', ['documento'])
        batch.create_index('ix_personas_codigo_qr', ['codigo_qr'])

    op.create_table(
        'registros_entrada_salida',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('person_id', sa.Integer(), sa.ForeignKey('personas.id'), nullable=False),
        sa.Column('tipo', sa.String(20), nullable=False),
        sa.Column('fecha_entrada', sa.DateTime()),
        sa.Column('fecha_salida', sa.DateTime()),
        sa.Column('ubicacion', sa.String(80)),
        sa.Column('codigo_qr', sa.String(120)),
        sa.Column('automatica', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime()),
    )
    with op.batch_alter_table('registros_entrada_salida') as batch:
        batch.create_index('ix_registros_entrada_salida_person_id', ['person_id'])
        batch.create_index('ix_registro_persona_entrada', ['person_id', 'fecha_entrada'])


def downgrade():
    op.drop_table('registros_entrada_salida')
    op.drop_table('personas')
    op.drop_table('roles_personas')

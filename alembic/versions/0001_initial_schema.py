"""Initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18T10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Actores y unidades organizacionales
    op.create_table('super_users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username')
    )
    op.create_index(op.f('ix_super_users_id'), 'super_users', ['id'], unique=False)
    op.create_index(op.f('ix_super_users_email'), 'super_users', ['email'], unique=True)

    op.create_table('direcciones',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nombre', sa.String(length=200), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('nombre')
    )
    op.create_index(op.f('ix_direcciones_id'), 'direcciones', ['id'], unique=False)

    op.create_table('directivos',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nombre_completo', sa.String(length=200), nullable=False),
        sa.Column('cargo', sa.String(length=150), nullable=False),
        sa.Column('direccion_id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['direccion_id'], ['direcciones.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_directivos_id'), 'directivos', ['id'], unique=False)
    op.create_index(op.f('ix_directivos_email'), 'directivos', ['email'], unique=True)

    op.create_table('personal',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nombre_completo', sa.String(length=200), nullable=False),
        sa.Column('puesto', sa.String(length=150), nullable=False),
        sa.Column('direccion_id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('foto_perfil', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['direccion_id'], ['direcciones.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_personal_id'), 'personal', ['id'], unique=False)
    op.create_index(op.f('ix_personal_email'), 'personal', ['email'], unique=True)

    # Actividades y comunicados
    op.create_table('actividades',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('titulo', sa.String(length=255), nullable=False),
        sa.Column('descripcion', sa.Text(), nullable=True),
        sa.Column('tipo_actividad', sa.String(length=100), nullable=False),
        sa.Column('fecha_inicio', sa.Date(), nullable=False),
        sa.Column('fecha_fin', sa.Date(), nullable=True),
        sa.Column('direccion_id', sa.Integer(), nullable=False),
        sa.Column('creado_por_id', sa.Integer(), nullable=False),
        sa.Column('creado_por_tipo', sa.String(length=20), nullable=False),
        sa.Column('estado', sa.String(length=20), nullable=False),
        sa.Column('fecha_creacion', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('fecha_fin IS NULL OR fecha_fin >= fecha_inicio', name='check_actividad_fecha_fin'),
        sa.ForeignKeyConstraint(['direccion_id'], ['direcciones.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_actividades_id'), 'actividades', ['id'], unique=False)

    op.create_table('actividad_imagenes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('actividad_id', sa.Integer(), nullable=False),
        sa.Column('nombre_archivo', sa.String(length=255), nullable=False),
        sa.Column('ruta_archivo', sa.String(length=255), nullable=False),
        sa.Column('tipo_mime', sa.String(length=100), nullable=True),
        sa.Column('tamano', sa.Integer(), nullable=True),
        sa.Column('fecha_subida', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['actividad_id'], ['actividades.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_actividad_imagenes_id'), 'actividad_imagenes', ['id'], unique=False)

    op.create_table('comunicados',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('titulo', sa.String(length=255), nullable=False),
        sa.Column('contenido', sa.Text(), nullable=False),
        sa.Column('link_externo', sa.String(length=500), nullable=True),
        sa.Column('publicado_por_id', sa.Integer(), nullable=True),
        sa.Column('estado', sa.String(length=20), nullable=False),
        sa.Column('fecha_publicacion', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['publicado_por_id'], ['super_users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_comunicados_id'), 'comunicados', ['id'], unique=False)
    op.create_index(op.f('ix_comunicados_fecha_publicacion'), 'comunicados', ['fecha_publicacion'], unique=False)

    # Tareas
    op.create_table('tareas',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('titulo', sa.String(length=255), nullable=False),
        sa.Column('descripcion', sa.Text(), nullable=True),
        sa.Column('fecha_entrega', sa.Date(), nullable=False),
        sa.Column('creado_por_id', sa.Integer(), nullable=False),
        sa.Column('creado_por_tipo', sa.String(length=20), nullable=False),
        sa.Column('fecha_creacion', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tareas_id'), 'tareas', ['id'], unique=False)
    op.create_index(op.f('ix_tareas_fecha_entrega'), 'tareas', ['fecha_entrega'], unique=False)

    op.create_table('tareas_asignaciones',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tarea_id', sa.Integer(), nullable=False),
        sa.Column('usuario_id', sa.Integer(), nullable=False),
        sa.Column('usuario_tipo', sa.String(length=20), nullable=False),
        sa.Column('estado', sa.String(length=20), nullable=False),
        sa.Column('comentarios', sa.Text(), nullable=True),
        sa.Column('fecha_completado', sa.DateTime(), nullable=True),
        sa.Column('fecha_asignacion', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['tarea_id'], ['tareas.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tareas_asignaciones_id'), 'tareas_asignaciones', ['id'], unique=False)
    op.create_index('idx_asignacion_usuario', 'tareas_asignaciones', ['usuario_id', 'usuario_tipo', 'estado'], unique=False)

    op.create_table('tareas_archivos',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tarea_id', sa.Integer(), nullable=False),
        sa.Column('nombre_original', sa.String(length=255), nullable=False),
        sa.Column('nombre_archivo', sa.String(length=255), nullable=False),
        sa.Column('ruta_archivo', sa.String(length=255), nullable=False),
        sa.Column('tipo_mime', sa.String(length=100), nullable=True),
        sa.Column('tamano', sa.Integer(), nullable=True),
        sa.Column('fecha_subida', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['tarea_id'], ['tareas.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tareas_archivos_id'), 'tareas_archivos', ['id'], unique=False)

    op.create_table('tareas_historial',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tarea_id', sa.Integer(), nullable=False),
        sa.Column('usuario_id', sa.Integer(), nullable=False),
        sa.Column('usuario_tipo', sa.String(length=20), nullable=False),
        sa.Column('accion', sa.String(length=30), nullable=False),
        sa.Column('descripcion', sa.Text(), nullable=True),
        sa.Column('fecha', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['tarea_id'], ['tareas.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tareas_historial_id'), 'tareas_historial', ['id'], unique=False)
    op.create_index(op.f('ix_tareas_historial_fecha'), 'tareas_historial', ['fecha'], unique=False)


def downgrade():
    for table in (
        'tareas_historial',
        'tareas_archivos',
        'tareas_asignaciones',
        'tareas',
        'comunicados',
        'actividad_imagenes',
        'actividades',
        'personal',
        'directivos',
        'direcciones',
        'super_users',
    ):
        op.drop_table(table)

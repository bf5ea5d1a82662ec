"""Create initial tables

Revision ID: 3c1e5a7b9d20
Revises:
Create Date: 2026-02-11 10:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c1e5a7b9d20"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Create templates table
    op.create_table(
        "templates",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_templates_id"), "templates", ["id"], unique=False)

    # Create registros table
    op.create_table(
        "registros",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("template_id", sa.Integer(), nullable=True),
        sa.Column("nombre", sa.String(), nullable=False),
        sa.Column("nombre_normalizado", sa.String(), nullable=False),
        sa.Column("categoria", sa.String(length=20), nullable=False),
        sa.Column("token", sa.String(length=64), nullable=False),
        sa.Column("codigo_acceso", sa.String(length=12), nullable=True),
        sa.Column("correo", sa.String(), nullable=True),
        sa.Column("departamento", sa.String(), nullable=True),
        sa.Column("invitation_status", sa.String(length=20), nullable=True),
        sa.Column("invitation_sent_at", sa.DateTime(), nullable=True),
        sa.Column("invitation_opened_at", sa.DateTime(), nullable=True),
        sa.Column("invitation_reserved_at", sa.DateTime(), nullable=True),
        sa.Column("invitation_expires_at", sa.DateTime(), nullable=True),
        sa.Column("invitation_last_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["template_id"], ["templates.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_registros_id"), "registros", ["id"], unique=False)
    op.create_index(op.f("ix_registros_token"), "registros", ["token"], unique=True)
    op.create_index(op.f("ix_registros_template_id"), "registros", ["template_id"], unique=False)
    op.create_index(op.f("ix_registros_codigo_acceso"), "registros", ["codigo_acceso"], unique=False)
    op.create_index(op.f("ix_registros_correo"), "registros", ["correo"], unique=False)
    op.create_index(
        op.f("ix_registros_nombre_normalizado"), "registros", ["nombre_normalizado"], unique=False
    )

    # Create assignments table
    # La PK (seat_id, template_id) impide dos filas para el mismo asiento y la
    # restricción única (template_id, registro_id) impide que un registro tenga
    # dos asientos en el mismo evento
    op.create_table(
        "assignments",
        sa.Column("seat_id", sa.String(length=32), nullable=False),
        sa.Column("template_id", sa.Integer(), nullable=False),
        sa.Column("nombre_invitado", sa.String(), nullable=False),
        sa.Column("categoria", sa.String(length=20), nullable=False),
        sa.Column("registro_id", sa.Integer(), nullable=True),
        sa.Column("from_slot", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("assigned_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["template_id"], ["templates.id"]),
        sa.ForeignKeyConstraint(["registro_id"], ["registros.id"]),
        sa.PrimaryKeyConstraint("seat_id", "template_id"),
        sa.UniqueConstraint(
            "template_id", "registro_id", name="uq_assignments_template_registro"
        ),
    )
    op.create_index(op.f("ix_assignments_registro_id"), "assignments", ["registro_id"], unique=False)

    # Create event_quotas table
    op.create_table(
        "event_quotas",
        sa.Column("template_id", sa.Integer(), nullable=False),
        sa.Column("categoria", sa.String(length=20), nullable=False),
        sa.Column("cupo_total", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["template_id"], ["templates.id"]),
        sa.PrimaryKeyConstraint("template_id", "categoria"),
    )

    # Create invitation_campaigns table
    op.create_table(
        "invitation_campaigns",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("template_id", sa.Integer(), nullable=False),
        sa.Column("subject", sa.String(), nullable=True),
        sa.Column("mode", sa.String(length=20), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=True),
        sa.Column("total", sa.Integer(), nullable=True),
        sa.Column("sent", sa.Integer(), nullable=True),
        sa.Column("failed", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["template_id"], ["templates.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_invitation_campaigns_id"), "invitation_campaigns", ["id"], unique=False)
    op.create_index(
        op.f("ix_invitation_campaigns_template_id"),
        "invitation_campaigns",
        ["template_id"],
        unique=False,
    )

    # Create audit_logs table
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("template_id", sa.Integer(), nullable=True),
        sa.Column("actor_type", sa.String(length=20), nullable=False),
        sa.Column("actor_id", sa.String(), nullable=True),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("entity", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.String(), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_audit_logs_id"), "audit_logs", ["id"], unique=False)
    op.create_index(op.f("ix_audit_logs_template_id"), "audit_logs", ["template_id"], unique=False)

    # Create admin_users table
    op.create_table(
        "admin_users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("hashed_password", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("is_super_admin", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("last_login", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_admin_users_id"), "admin_users", ["id"], unique=False)
    op.create_index(op.f("ix_admin_users_email"), "admin_users", ["email"], unique=True)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("admin_users")
    op.drop_table("audit_logs")
    op.drop_table("invitation_campaigns")
    op.drop_table("event_quotas")
    op.drop_table("assignments")
    op.drop_table("registros")
    op.drop_table("templates")

"""initial analytics schema

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

_STATUSES = ("OPEN", "IN_PROGRESS", "WAITING_ON_REQUESTER", "RESOLVED", "CLOSED", "PENDING_APPROVAL")
_PRIORITIES = ("LOW", "MEDIUM", "HIGH", "URGENT")


def upgrade() -> None:
    ticket_status = postgresql.ENUM(*_STATUSES, name="ticket_status")
    ticket_priority = postgresql.ENUM(*_PRIORITIES, name="ticket_priority")
    ticket_status_col = postgresql.ENUM(*_STATUSES, name="ticket_status", create_type=False)
    ticket_priority_col = postgresql.ENUM(*_PRIORITIES, name="ticket_priority", create_type=False)

    bind = op.get_bind()
    ticket_status.create(bind, checkfirst=True)
    ticket_priority.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "tickets",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("ticket_number", sa.String(length=32), nullable=False, unique=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("status", ticket_status_col, nullable=False),
        sa.Column("priority", ticket_priority_col, nullable=False),
        sa.Column("category", sa.String(length=120), nullable=True),
        sa.Column("subcategory", sa.String(length=120), nullable=True),
        sa.Column("domain", sa.String(length=32), nullable=False, server_default="IT"),
        sa.Column("project_code", sa.String(length=64), nullable=True),
        sa.Column("project_name", sa.String(length=255), nullable=True),
        sa.Column("requester_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["requester_id"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_tickets_domain_created_at", "tickets", ["domain", "created_at"])
    op.create_index(op.f("ix_tickets_project_code"), "tickets", ["project_code"])

    op.create_table(
        "ticket_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("ticket_id", sa.String(length=36), nullable=False),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["ticket_id"], ["tickets.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_ticket_events_ticket_id_type", "ticket_events", ["ticket_id", "type"])

    op.create_table(
        "ticket_assignments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("ticket_id", sa.String(length=36), nullable=False),
        sa.Column("engineer_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("unassigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["ticket_id"], ["tickets.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["engineer_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_ticket_assignments_ticket_id", "ticket_assignments", ["ticket_id"])
    op.create_index("ix_ticket_assignments_engineer_id", "ticket_assignments", ["engineer_id"])

    op.create_table(
        "sla_config",
        sa.Column("priority", sa.String(length=16), primary_key=True, nullable=False),
        sa.Column("target_minutes", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "ticket_metrics_daily",
        sa.Column("day", sa.Date(), primary_key=True, nullable=False),
        sa.Column("opened", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("resolved", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sla_breached", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("mtta_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("mttr_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("ticket_metrics_daily")
    op.drop_table("sla_config")
    op.drop_index("ix_ticket_assignments_engineer_id", table_name="ticket_assignments")
    op.drop_index("ix_ticket_assignments_ticket_id", table_name="ticket_assignments")
    op.drop_table("ticket_assignments")
    op.drop_index("ix_ticket_events_ticket_id_type", table_name="ticket_events")
    op.drop_table("ticket_events")
    op.drop_index(op.f("ix_tickets_project_code"), table_name="tickets")
    op.drop_index("ix_tickets_domain_created_at", table_name="tickets")
    op.drop_table("tickets")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    sa.Enum(*_PRIORITIES, name="ticket_priority").drop(bind, checkfirst=True)
    sa.Enum(*_STATUSES, name="ticket_status").drop(bind, checkfirst=True)

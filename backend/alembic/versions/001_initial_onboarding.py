"""Initial migration: create agent, user, sms_message, agent_manager,
agent_action_progress and resource tables

Revision ID: 001_initial
Revises:
Create Date: 2026-01-05 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create agent table
    op.create_table(
        "agent",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("first_name", sa.String(), nullable=False),
        sa.Column("last_name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("agency_name", sa.String(), nullable=True),
        sa.Column("direct_upline", sa.String(), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("date_started", sa.Date(), nullable=True),
        sa.Column("phase", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_agent_email", "agent", ["email"])
    op.create_index("ix_agent_phase", "agent", ["phase"])

    # Create user table
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("user_type", sa.String(), nullable=False),
        sa.Column("twilio_account_sid", sa.String(), nullable=True),
        sa.Column("twilio_auth_token", sa.String(), nullable=True),
        sa.Column("twilio_phone_number", sa.String(), nullable=True),
        sa.Column("master_code", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    # Create sms_message table (string columns are NOT NULL, default '')
    op.create_table(
        "sms_message",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("agent_id", sa.String(), nullable=False),
        sa.Column("direction", sa.String(), nullable=False),
        sa.Column("body", sa.String(), nullable=False, server_default=""),
        sa.Column("from_number", sa.String(), nullable=False, server_default=""),
        sa.Column("to_number", sa.String(), nullable=False, server_default=""),
        sa.Column("manager_email", sa.String(), nullable=False, server_default=""),
        sa.Column("twilio_sid", sa.String(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["agent_id"],
            ["agent.id"],
        ),
    )
    op.create_index("ix_sms_message_agent_id", "sms_message", ["agent_id"])
    op.create_index("ix_sms_message_manager_email", "sms_message", ["manager_email"])
    op.create_index("ix_sms_message_created_at", "sms_message", ["created_at"])

    # Create agent_manager table
    op.create_table(
        "agent_manager",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("agent_id", sa.String(), nullable=False),
        sa.Column("manager_email", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["agent_id"],
            ["agent.id"],
        ),
        sa.UniqueConstraint("agent_id", "manager_email", name="uq_agent_manager"),
    )
    op.create_index("ix_agent_manager_agent_id", "agent_manager", ["agent_id"])
    op.create_index("ix_agent_manager_manager_email", "agent_manager", ["manager_email"])

    # Create agent_action_progress table
    op.create_table(
        "agent_action_progress",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("agent_id", sa.String(), nullable=False),
        sa.Column("phase", sa.String(), nullable=False),
        sa.Column("action_key", sa.String(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["agent_id"],
            ["agent.id"],
        ),
        sa.UniqueConstraint("agent_id", "phase", "action_key", name="uq_agent_phase_action"),
    )
    op.create_index("ix_agent_action_progress_agent_id", "agent_action_progress", ["agent_id"])

    # Create resource table
    op.create_table(
        "resource",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("file_url", sa.String(), nullable=True),
        sa.Column("phases", sa.JSON(), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("resource")
    op.drop_index("ix_agent_action_progress_agent_id", table_name="agent_action_progress")
    op.drop_table("agent_action_progress")
    op.drop_index("ix_agent_manager_manager_email", table_name="agent_manager")
    op.drop_index("ix_agent_manager_agent_id", table_name="agent_manager")
    op.drop_table("agent_manager")
    op.drop_index("ix_sms_message_created_at", table_name="sms_message")
    op.drop_index("ix_sms_message_manager_email", table_name="sms_message")
    op.drop_index("ix_sms_message_agent_id", table_name="sms_message")
    op.drop_table("sms_message")
    op.drop_index("ix_user_email", table_name="user")
    op.drop_table("user")
    op.drop_index("ix_agent_phase", table_name="agent")
    op.drop_index("ix_agent_email", table_name="agent")
    op.drop_table("agent")

"""initial_legal_desk_schema

Create users, form configuration and submission tables.

Revision ID: 5d2a9c31e7b4
Revises:
Create Date: 2026-10-19 09:30:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = "5d2a9c31e7b4"
down_revision = None
branch_labels = None
depends_on = None


def _submission_fk():
    return sa.ForeignKeyConstraint(["submission_id"], ["submissions.id"], ondelete="CASCADE")


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing_tables = set(inspector.get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("email", sa.String(length=200), nullable=False),
            sa.Column("role", sa.String(length=30), nullable=False, server_default="INITIATOR"),
            sa.Column("department", sa.String(length=120), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("form_ids", sa.JSON(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_users_email", "users", ["email"], unique=True)
        op.create_index("ix_users_role", "users", ["role"])

    if "form_configs" not in existing_tables:
        op.create_table(
            "form_configs",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("form_id", sa.Integer(), nullable=False),
            sa.Column("form_name", sa.String(length=120), nullable=False),
            sa.Column("instructions", sa.Text(), nullable=False, server_default=""),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("form_id"),
        )

    if "form_config_docs" not in existing_tables:
        op.create_table(
            "form_config_docs",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("config_id", sa.Integer(), nullable=False),
            sa.Column("label", sa.String(length=255), nullable=False),
            sa.Column("type", sa.String(length=40), nullable=False, server_default="Common"),
            sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
            sa.ForeignKeyConstraint(["config_id"], ["form_configs.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_form_config_docs_config_id", "form_config_docs", ["config_id"])

    if "submissions" not in existing_tables:
        op.create_table(
            "submissions",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("submission_no", sa.String(length=40), nullable=False),
            sa.Column("form_id", sa.Integer(), nullable=False, server_default="1"),
            sa.Column("form_name", sa.String(length=120), nullable=False),
            sa.Column("status", sa.String(length=30), nullable=False, server_default="PENDING_APPROVAL"),
            sa.Column("lo_stage", sa.String(length=30), nullable=True),
            sa.Column("legal_gm_stage", sa.String(length=30), nullable=True),
            sa.Column("initiator_id", sa.String(length=36), nullable=False),
            sa.Column("assigned_legal_officer", sa.String(length=36), nullable=True),
            sa.Column("court_officer_id", sa.String(length=36), nullable=True),
            sa.Column("bum_id", sa.String(length=36), nullable=True),
            sa.Column("fbp_id", sa.String(length=36), nullable=True),
            sa.Column("cluster_head_id", sa.String(length=36), nullable=True),
            sa.Column("title", sa.String(length=255), nullable=False),
            sa.Column("company_code", sa.String(length=30), nullable=False),
            sa.Column("sap_cost_center", sa.String(length=50), nullable=True),
            sa.Column("scope_of_agreement", sa.Text(), nullable=True),
            sa.Column("term", sa.String(length=120), nullable=True),
            sa.Column("value", sa.String(length=60), nullable=True),
            sa.Column("remarks", sa.Text(), nullable=True),
            sa.Column("initiator_comments", sa.Text(), nullable=True),
            sa.Column("form_data", sa.JSON(), nullable=False),
            sa.Column("due_date", sa.DateTime(), nullable=True),
            sa.Column("parent_id", sa.String(length=36), nullable=True),
            sa.Column("is_resubmission", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["parent_id"], ["submissions.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("submission_no"),
        )
        for column in ("form_id", "status", "initiator_id", "assigned_legal_officer",
                       "parent_id", "created_at"):
            op.create_index(f"ix_submissions_{column}", "submissions", [column])

    if "submission_parties" not in existing_tables:
        op.create_table(
            "submission_parties",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("submission_id", sa.String(length=36), nullable=False),
            sa.Column("type", sa.String(length=40), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False, server_default=""),
            _submission_fk(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_submission_parties_submission_id", "submission_parties", ["submission_id"])

    if "submission_documents" not in existing_tables:
        op.create_table(
            "submission_documents",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("submission_id", sa.String(length=36), nullable=False),
            sa.Column("label", sa.String(length=255), nullable=False),
            sa.Column("type", sa.String(length=40), nullable=False, server_default="Common"),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="NONE"),
            sa.Column("file_url", sa.String(length=500), nullable=True),
            sa.Column("comment", sa.Text(), nullable=True),
            sa.Column("uploaded_at", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            _submission_fk(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("submission_id", "label", name="uq_submission_document_label"),
        )
        op.create_index("ix_submission_documents_submission_id", "submission_documents", ["submission_id"])

    if "submission_approvals" not in existing_tables:
        op.create_table(
            "submission_approvals",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("submission_id", sa.String(length=36), nullable=False),
            sa.Column("role", sa.String(length=30), nullable=False),
            sa.Column("approver_name", sa.String(length=255), nullable=False, server_default=""),
            sa.Column("approver_email", sa.String(length=255), nullable=False, server_default=""),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDING"),
            sa.Column("comment", sa.Text(), nullable=True),
            sa.Column("action_date", sa.DateTime(), nullable=True),
            _submission_fk(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("submission_id", "role", name="uq_submission_approval_role"),
        )
        op.create_index("ix_submission_approvals_submission_id", "submission_approvals", ["submission_id"])

    if "submission_special_approvers" not in existing_tables:
        op.create_table(
            "submission_special_approvers",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("submission_id", sa.String(length=36), nullable=False),
            sa.Column("approver_email", sa.String(length=255), nullable=False),
            sa.Column("approver_name", sa.String(length=255), nullable=False, server_default=""),
            sa.Column("department", sa.String(length=120), nullable=False, server_default="Special Approver"),
            sa.Column("assigned_by", sa.String(length=30), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDING"),
            sa.Column("comment", sa.Text(), nullable=True),
            sa.Column("action_date", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            _submission_fk(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            "ix_submission_special_approvers_submission_id",
            "submission_special_approvers", ["submission_id"],
        )

    if "submission_comments" not in existing_tables:
        op.create_table(
            "submission_comments",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("submission_id", sa.String(length=36), nullable=False),
            sa.Column("author_name", sa.String(length=255), nullable=False),
            sa.Column("author_role", sa.String(length=30), nullable=False),
            sa.Column("text", sa.Text(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            _submission_fk(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_submission_comments_submission_id", "submission_comments", ["submission_id"])


def downgrade():
    for table in (
        "submission_comments",
        "submission_special_approvers",
        "submission_approvals",
        "submission_documents",
        "submission_parties",
        "submissions",
        "form_config_docs",
        "form_configs",
        "users",
    ):
        op.drop_table(table)

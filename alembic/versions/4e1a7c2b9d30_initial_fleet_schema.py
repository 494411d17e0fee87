"""initial fleet schema

Revision ID: 4e1a7c2b9d30
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "4e1a7c2b9d30"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "equipments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("sequence_number", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("equipment_type", sa.String(length=30), nullable=False),
        sa.Column("serial_number", sa.String(length=120), nullable=True),
        sa.Column("sisant_registration", sa.String(length=120), nullable=True),
        sa.Column("manufacturer", sa.String(length=120), nullable=True),
        sa.Column("model", sa.String(length=120), nullable=True),
        sa.Column("status", sa.String(length=30), nullable=False),
        sa.Column("acquisition_date", sa.Date(), nullable=True),
        sa.Column("value", sa.Float(), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("responsible_user", sa.String(length=200), nullable=True),
        sa.Column("observations", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_equipments_sequence_number"), "equipments", ["sequence_number"], unique=True)
    op.create_index(op.f("ix_equipments_name"), "equipments", ["name"], unique=False)
    op.create_index(op.f("ix_equipments_equipment_type"), "equipments", ["equipment_type"], unique=False)
    op.create_index(op.f("ix_equipments_status"), "equipments", ["status"], unique=False)

    op.create_table(
        "accessory_catalog",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("brand", sa.String(length=120), nullable=False),
        sa.Column("category", sa.String(length=120), nullable=False),
        sa.Column("subcategory", sa.String(length=120), nullable=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("model_compatibility", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_accessory_catalog_brand"), "accessory_catalog", ["brand"], unique=False)
    op.create_index(op.f("ix_accessory_catalog_category"), "accessory_catalog", ["category"], unique=False)
    op.create_index(op.f("ix_accessory_catalog_name"), "accessory_catalog", ["name"], unique=False)

    op.create_table(
        "equipment_accessories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("parent_equipment_id", sa.Integer(), nullable=False),
        sa.Column("accessory_type", sa.String(length=20), nullable=False),
        sa.Column("accessory_catalog_id", sa.Integer(), nullable=True),
        sa.Column("accessory_equipment_id", sa.Integer(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["parent_equipment_id"], ["equipments.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["accessory_catalog_id"], ["accessory_catalog.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["accessory_equipment_id"], ["equipments.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "(accessory_type = 'catalog' AND accessory_catalog_id IS NOT NULL AND accessory_equipment_id IS NULL)"
            " OR (accessory_type = 'equipment' AND accessory_equipment_id IS NOT NULL AND accessory_catalog_id IS NULL)",
            name="ck_equipment_accessories_one_target",
        ),
        sa.CheckConstraint("quantity >= 1", name="ck_equipment_accessories_quantity"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_equipment_accessories_parent_equipment_id"), "equipment_accessories", ["parent_equipment_id"], unique=False
    )
    op.create_index(
        op.f("ix_equipment_accessories_accessory_catalog_id"), "equipment_accessories", ["accessory_catalog_id"], unique=False
    )
    op.create_index(
        op.f("ix_equipment_accessories_accessory_equipment_id"), "equipment_accessories", ["accessory_equipment_id"], unique=False
    )

    op.create_table(
        "equipment_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("original_equipment_id", sa.Integer(), nullable=False),
        sa.Column("sequence_number", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("equipment_type", sa.String(length=30), nullable=False),
        sa.Column("serial_number", sa.String(length=120), nullable=True),
        sa.Column("sisant_registration", sa.String(length=120), nullable=True),
        sa.Column("manufacturer", sa.String(length=120), nullable=True),
        sa.Column("model", sa.String(length=120), nullable=True),
        sa.Column("status", sa.String(length=30), nullable=True),
        sa.Column("acquisition_date", sa.Date(), nullable=True),
        sa.Column("value", sa.Float(), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("observations", sa.Text(), nullable=True),
        sa.Column("responsible_user", sa.String(length=200), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_by", sa.String(length=200), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_equipment_history_original_equipment_id"), "equipment_history", ["original_equipment_id"], unique=False
    )
    op.create_index(op.f("ix_equipment_history_sequence_number"), "equipment_history", ["sequence_number"], unique=False)
    op.create_index(op.f("ix_equipment_history_deleted_at"), "equipment_history", ["deleted_at"], unique=False)

    op.create_table(
        "equipment_sequence",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("last_sequence_number", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "user_roles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=200), nullable=False),
        sa.Column("role", sa.String(length=30), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )
    op.create_index(op.f("ix_user_roles_user_id"), "user_roles", ["user_id"], unique=False)
    op.create_index(op.f("ix_user_roles_role"), "user_roles", ["role"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("user_id", sa.String(length=200), nullable=True),
        sa.Column("client_ip", sa.String(length=64), nullable=True),
        sa.Column("action", sa.String(length=200), nullable=False),
        sa.Column("outcome", sa.String(length=20), nullable=False),
        sa.Column("resource", sa.String(length=200), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_audit_logs_ts"), "audit_logs", ["ts"], unique=False)
    op.create_index(op.f("ix_audit_logs_action"), "audit_logs", ["action"], unique=False)
    op.create_index(op.f("ix_audit_logs_outcome"), "audit_logs", ["outcome"], unique=False)

    op.create_table(
        "server_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("level", sa.String(length=20), nullable=False),
        sa.Column("logger", sa.String(length=200), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("meta", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_server_logs_ts"), "server_logs", ["ts"], unique=False)
    op.create_index(op.f("ix_server_logs_level"), "server_logs", ["level"], unique=False)

    # Seed the single counter row so the first allocation does not have to.
    conn = op.get_bind()
    conn.execute(
        sa.text(
            "INSERT INTO equipment_sequence (id, last_sequence_number, created_at, updated_at) "
            "VALUES (1, 0, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)"
        )
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_server_logs_level"), table_name="server_logs")
    op.drop_index(op.f("ix_server_logs_ts"), table_name="server_logs")
    op.drop_table("server_logs")

    op.drop_index(op.f("ix_audit_logs_outcome"), table_name="audit_logs")
    op.drop_index(op.f("ix_audit_logs_action"), table_name="audit_logs")
    op.drop_index(op.f("ix_audit_logs_ts"), table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index(op.f("ix_user_roles_role"), table_name="user_roles")
    op.drop_index(op.f("ix_user_roles_user_id"), table_name="user_roles")
    op.drop_table("user_roles")

    op.drop_table("equipment_sequence")

    op.drop_index(op.f("ix_equipment_history_deleted_at"), table_name="equipment_history")
    op.drop_index(op.f("ix_equipment_history_sequence_number"), table_name="equipment_history")
    op.drop_index(op.f("ix_equipment_history_original_equipment_id"), table_name="equipment_history")
    op.drop_table("equipment_history")

    op.drop_index(op.f("ix_equipment_accessories_accessory_equipment_id"), table_name="equipment_accessories")
    op.drop_index(op.f("ix_equipment_accessories_accessory_catalog_id"), table_name="equipment_accessories")
    op.drop_index(op.f("ix_equipment_accessories_parent_equipment_id"), table_name="equipment_accessories")
    op.drop_table("equipment_accessories")

    op.drop_index(op.f("ix_accessory_catalog_name"), table_name="accessory_catalog")
    op.drop_index(op.f("ix_accessory_catalog_category"), table_name="accessory_catalog")
    op.drop_index(op.f("ix_accessory_catalog_brand"), table_name="accessory_catalog")
    op.drop_table("accessory_catalog")

    op.drop_index(op.f("ix_equipments_status"), table_name="equipments")
    op.drop_index(op.f("ix_equipments_equipment_type"), table_name="equipments")
    op.drop_index(op.f("ix_equipments_name"), table_name="equipments")
    op.drop_index(op.f("ix_equipments_sequence_number"), table_name="equipments")
    op.drop_table("equipments")

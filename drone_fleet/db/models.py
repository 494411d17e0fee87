from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from drone_fleet.db.base import Base


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


EQUIPMENT_TYPES = (
    "drone",
    "battery",
    "propeller",
    "camera",
    "gimbal",
    "charger",
    "case",
    "remote",
    "sensor",
    "other",
)
EQUIPMENT_TYPE_LABELS = {
    "drone": "Drone",
    "battery": "Battery",
    "propeller": "Propeller",
    "camera": "Camera",
    "gimbal": "Gimbal",
    "charger": "Charger",
    "case": "Case",
    "remote": "Remote Controller",
    "sensor": "Sensor",
    "other": "Other",
}
EQUIPMENT_STATUSES = ("active", "inactive", "maintenance")
ACCESSORY_TYPES = ("catalog", "equipment")
APP_ROLES = ("admin", "user")


# -------- Fleet equipment --------


class Equipment(Base):
    __tablename__ = "equipments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sequence_number: Mapped[int] = mapped_column(Integer, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200), index=True)
    equipment_type: Mapped[str] = mapped_column(String(30), index=True)
    serial_number: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    sisant_registration: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    manufacturer: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    model: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    status: Mapped[str] = mapped_column(String(30), default="active", index=True)
    acquisition_date: Mapped[Optional[dt.date]] = mapped_column(Date, nullable=True)
    value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    responsible_user: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    observations: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class AccessoryCatalogEntry(Base):
    __tablename__ = "accessory_catalog"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    brand: Mapped[str] = mapped_column(String(120), index=True)
    category: Mapped[str] = mapped_column(String(120), index=True)
    subcategory: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    name: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    model_compatibility: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class EquipmentAccessoryLink(Base):
    __tablename__ = "equipment_accessories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    parent_equipment_id: Mapped[int] = mapped_column(ForeignKey("equipments.id", ondelete="CASCADE"), index=True)
    accessory_type: Mapped[str] = mapped_column(String(20), default="catalog")
    accessory_catalog_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("accessory_catalog.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    accessory_equipment_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("equipments.id", ondelete="CASCADE"), nullable=True, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    catalog_entry: Mapped[Optional[AccessoryCatalogEntry]] = relationship(
        "AccessoryCatalogEntry", foreign_keys=[accessory_catalog_id], lazy="selectin"
    )
    accessory_equipment: Mapped[Optional[Equipment]] = relationship(
        "Equipment", foreign_keys=[accessory_equipment_id], lazy="selectin"
    )

    __table_args__ = (
        CheckConstraint(
            "(accessory_type = 'catalog' AND accessory_catalog_id IS NOT NULL AND accessory_equipment_id IS NULL)"
            " OR (accessory_type = 'equipment' AND accessory_equipment_id IS NOT NULL AND accessory_catalog_id IS NULL)",
            name="ck_equipment_accessories_one_target",
        ),
        CheckConstraint("quantity >= 1", name="ck_equipment_accessories_quantity"),
    )


class EquipmentHistoryRecord(Base):
    __tablename__ = "equipment_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # No FK: the referenced row is gone by the time anyone reads this.
    original_equipment_id: Mapped[int] = mapped_column(Integer, index=True)
    sequence_number: Mapped[int] = mapped_column(Integer, index=True)
    name: Mapped[str] = mapped_column(String(200))
    equipment_type: Mapped[str] = mapped_column(String(30))
    serial_number: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    sisant_registration: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    manufacturer: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    model: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    acquisition_date: Mapped[Optional[dt.date]] = mapped_column(Date, nullable=True)
    value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    observations: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    responsible_user: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    deleted_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    deleted_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)


class EquipmentSequence(Base):
    __tablename__ = "equipment_sequence"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    last_sequence_number: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


# -------- Roles / audit / logs --------


class UserRole(Base):
    __tablename__ = "user_roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(200), index=True)
    role: Mapped[str] = mapped_column(String(30), index=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ts: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    user_id: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    client_ip: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    action: Mapped[str] = mapped_column(String(200), index=True)
    outcome: Mapped[str] = mapped_column(String(20), default="success", index=True)
    resource: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    # NOTE: "metadata" is a reserved attribute name in SQLAlchemy's Declarative API.
    # The DB column keeps the readable name; the Python attribute is "meta".
    meta: Mapped[Dict[str, Any]] = mapped_column("metadata", JSON, default=dict)


class ServerLog(Base):
    __tablename__ = "server_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ts: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    level: Mapped[str] = mapped_column(String(20), index=True)
    logger: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    message: Mapped[str] = mapped_column(Text)
    meta: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)

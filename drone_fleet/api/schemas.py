from __future__ import annotations

import datetime as dt
from typing import Any, Optional, Union

from pydantic import BaseModel, Field


class EquipmentIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    equipment_type: str = Field(default="drone", max_length=30)
    serial_number: Optional[str] = Field(default=None, max_length=120)
    sisant_registration: Optional[str] = Field(default=None, max_length=120)
    manufacturer: Optional[str] = Field(default=None, max_length=120)
    model: Optional[str] = Field(default=None, max_length=120)
    status: str = Field(default="active", max_length=30)
    acquisition_date: Optional[Union[dt.date, str]] = None
    value: Optional[float] = None
    location: Optional[str] = Field(default=None, max_length=200)
    responsible_user: Optional[str] = Field(default=None, max_length=200)
    observations: Optional[str] = None


class AccessoryLinkIn(BaseModel):
    accessory_type: str = Field(default="catalog", max_length=20)
    accessory_catalog_id: Optional[int] = None
    # Free-text accessory typed by the operator when the catalog has no match.
    custom_name: Optional[str] = Field(default=None, max_length=200)
    category: Optional[str] = Field(default=None, max_length=120)
    brand: Optional[str] = Field(default=None, max_length=120)
    accessory_equipment_id: Optional[int] = None
    # Checked (>= 1) by the link service.
    quantity: Any = 1
    notes: Optional[str] = None


class CatalogEntryIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    brand: str = Field(min_length=1, max_length=120)
    category: str = Field(min_length=1, max_length=120)
    subcategory: Optional[str] = Field(default=None, max_length=120)
    description: Optional[str] = None
    model_compatibility: Optional[list[str]] = None

"""
Layout Core Models.

Value types for a single-rack layout: the device-type library, devices placed
into U-slots and the rack that holds them.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class DeviceFace(str, Enum):
    """Which side of the rack a device is mounted on."""
    FRONT = "front"
    REAR = "rear"
    BOTH = "both"


class DeviceType(BaseModel):
    """
    A library entry describing a kind of device.
    Placed devices reference it by slug.
    """
    slug: str = Field(..., min_length=1)
    u_height: float = Field(1.0, gt=0)
    model: Optional[str] = None
    manufacturer: Optional[str] = None
    category: Optional[str] = None
    colour: Optional[str] = None
    is_full_depth: bool = True
    meta: Dict[str, Any] = Field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.model or self.slug


class PlacedDevice(BaseModel):
    """A device instance mounted in the rack."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    device_type: str = Field(..., min_length=1)
    position: float = Field(..., ge=1)  # bottom U, 1-indexed
    face: DeviceFace = DeviceFace.FRONT
    name: Optional[str] = None


class Rack(BaseModel):
    name: str = "Racky McRackface"
    height: int = Field(42, ge=1, le=100)
    width: Literal[10, 19] = 19
    desc_units: bool = False
    starting_unit: int = Field(1, ge=1)
    form_factor: str = "4-post-cabinet"
    devices: List[PlacedDevice] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("rack name must not be blank")
        return v


# Rack fields that settings updates may touch; devices go through their own ops.
RACK_SETTINGS_FIELDS: FrozenSet[str] = frozenset(
    name for name in Rack.model_fields if name != "devices"
)

# Device-type fields that may change after creation; slug is the identity.
DEVICE_TYPE_UPDATE_FIELDS: FrozenSet[str] = frozenset(
    name for name in DeviceType.model_fields if name != "slug"
)


class Layout(BaseModel):
    """The editable document: one rack plus the device-type library it uses."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str = "Untitled layout"
    rack: Rack = Field(default_factory=Rack)
    device_types: List[DeviceType] = Field(default_factory=list)

"""Placement and resize validation for rack layouts."""
from __future__ import annotations

import math
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field

from rack_engines.layout_core.models import DeviceFace, DeviceType, PlacedDevice, Rack

URange = Tuple[float, float]


class ResizeValidation(BaseModel):
    allowed: bool
    conflicts: List[PlacedDevice] = Field(default_factory=list)


def device_u_range(position: float, height: float) -> URange:
    """(bottom, top) U positions occupied by a device, inclusive."""
    return position, position + height - 1


def ranges_overlap(a: URange, b: URange) -> bool:
    # Touching edges count as overlap.
    return a[0] <= b[1] and a[1] >= b[0]


def faces_collide(
    face_a: DeviceFace,
    face_b: DeviceFace,
    full_depth_a: bool = True,
    full_depth_b: bool = True,
) -> bool:
    if face_a == DeviceFace.BOTH or face_b == DeviceFace.BOTH:
        return True
    if face_a == face_b:
        return True
    # Opposite faces only share a slot when both devices are half-depth.
    return full_depth_a or full_depth_b


def _find_type(device_types: Iterable[DeviceType], slug: str) -> Optional[DeviceType]:
    for dt in device_types:
        if dt.slug == slug:
            return dt
    return None


def can_place_device(
    rack: Rack,
    device_types: List[DeviceType],
    u_height: float,
    position: float,
    exclude_index: Optional[int] = None,
    face: DeviceFace = DeviceFace.FRONT,
    is_full_depth: bool = True,
) -> bool:
    """
    Check whether a device of `u_height` fits at `position`.

    `exclude_index` skips one placed device, used when checking a move.
    Placed devices whose type is not in the library are ignored.
    """
    if position < 1:
        return False
    if position + u_height - 1 > rack.height:
        return False

    new_range = device_u_range(position, u_height)
    for i, placed in enumerate(rack.devices):
        if exclude_index is not None and i == exclude_index:
            continue
        dt = _find_type(device_types, placed.device_type)
        if not dt:
            continue
        existing_range = device_u_range(placed.position, dt.u_height)
        if ranges_overlap(new_range, existing_range) and faces_collide(
            face, placed.face, is_full_depth, dt.is_full_depth
        ):
            return False
    return True


def can_resize_rack_to(rack: Rack, new_height: int, device_types: List[DeviceType]) -> ResizeValidation:
    """Growing is always allowed; shrinking is blocked by devices above the new top."""
    if new_height >= rack.height:
        return ResizeValidation(allowed=True)

    conflicts = []
    for placed in rack.devices:
        dt = _find_type(device_types, placed.device_type)
        u_height = dt.u_height if dt else 1
        top = math.ceil(placed.position + u_height - 1)
        if top > new_height:
            conflicts.append(placed)

    return ResizeValidation(allowed=not conflicts, conflicts=conflicts)

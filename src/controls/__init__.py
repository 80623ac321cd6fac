"""
Controls Package
=================
Operator controls for monitored equipment.
"""

from .models import (
    ControlKind,
    ControlValueError,
    ButtonControl,
    ToggleControl,
    SliderControl,
    InputControl,
    EquipmentControl,
    apply_control_value,
    snap_slider_value,
)
from .panel import ControlPanel

__all__ = [
    "ControlKind",
    "ControlValueError",
    "ButtonControl",
    "ToggleControl",
    "SliderControl",
    "InputControl",
    "EquipmentControl",
    "apply_control_value",
    "snap_slider_value",
    "ControlPanel",
]

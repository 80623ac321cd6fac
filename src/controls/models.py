"""
Equipment Controls - Data Models
=================================
Pydantic models for operator controls on a piece of equipment.

Each control kind carries a value of its own type; ``EquipmentControl`` is
the tagged union over all kinds, discriminated by ``kind``.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from visualization.geometry import clamp, clamp_percentage


class ControlKind(str, Enum):
    """Supported control widgets."""
    BUTTON = "button"
    TOGGLE = "toggle"
    SLIDER = "slider"
    INPUT = "input"


class ControlValueError(ValueError):
    """A control value update was rejected."""


class ControlBase(BaseModel):
    id: str = Field(..., description="Unique control identifier")
    name: str
    enabled: bool = True
    description: str = ""


class ButtonControl(ControlBase):
    """Momentary action; each press flips the stored value."""
    kind: Literal["button"] = "button"
    value: bool = False


class ToggleControl(ControlBase):
    kind: Literal["toggle"] = "toggle"
    value: bool = False


class SliderControl(ControlBase):
    """Bounded numeric setting, optionally snapped to ``step``."""
    kind: Literal["slider"] = "slider"
    value: float = 0.0
    min: float = 0.0
    max: float = 100.0
    step: Optional[float] = Field(None, gt=0)

    @field_validator("max")
    @classmethod
    def _max_above_min(cls, v: float, info) -> float:
        lower = info.data.get("min")
        if lower is not None and v <= lower:
            raise ValueError("max must be greater than min")
        return v

    @property
    def fill_percentage(self) -> float:
        """Filled share of the track, in percent."""
        return clamp_percentage(self.value, self.min, self.max)


class InputControl(ControlBase):
    kind: Literal["input"] = "input"
    value: str = ""


EquipmentControl = Annotated[
    Union[ButtonControl, ToggleControl, SliderControl, InputControl],
    Field(discriminator="kind"),
]


def snap_slider_value(control: SliderControl, value: float) -> float:
    """Clamp ``value`` into the slider range and snap it to the nearest step."""
    if control.step:
        steps = round((value - control.min) / control.step)
        value = round(control.min + steps * control.step, 10)
    return clamp(value, control.min, control.max)


def apply_control_value(control: EquipmentControl, value: Any = None) -> EquipmentControl:
    """
    Return a copy of ``control`` holding the updated value.

    Args:
        control: Control being operated
        value: New value; ignored for buttons, which flip on press

    Raises:
        ControlValueError: disabled control or value of the wrong type
    """
    if not control.enabled:
        raise ControlValueError(f"Control '{control.id}' is disabled")

    match control:
        case ButtonControl():
            new_value = not control.value
        case ToggleControl():
            if not isinstance(value, bool):
                raise ControlValueError(f"Toggle '{control.id}' expects a boolean, got {value!r}")
            new_value = value
        case SliderControl():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ControlValueError(f"Slider '{control.id}' expects a number, got {value!r}")
            new_value = snap_slider_value(control, float(value))
        case InputControl():
            if not isinstance(value, str):
                raise ControlValueError(f"Input '{control.id}' expects text, got {value!r}")
            new_value = value
        case _:
            raise ControlValueError(f"Unsupported control: {control!r}")

    return control.model_copy(update={"value": new_value})

"""
Equipment Control Tests
========================
Control models, value updates and the async control panel.
"""

import sys
from pathlib import Path

import pytest
from pydantic import TypeAdapter

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from controls import (
    ButtonControl,
    ControlPanel,
    ControlValueError,
    EquipmentControl,
    InputControl,
    SliderControl,
    ToggleControl,
    apply_control_value,
)


class TestControlModels:
    """Tests for the discriminated control union."""

    def test_parse_by_kind(self):
        adapter = TypeAdapter(EquipmentControl)
        control = adapter.validate_python(
            {"kind": "slider", "id": "pitch", "name": "Blade pitch", "value": 12, "min": 0, "max": 30, "step": 0.5}
        )
        assert isinstance(control, SliderControl)
        assert control.value == 12.0

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            TypeAdapter(EquipmentControl).validate_python({"kind": "dial", "id": "x", "name": "X"})

    def test_slider_range_validated(self):
        with pytest.raises(ValueError):
            SliderControl(id="s", name="S", min=10, max=10)

    def test_fill_percentage(self):
        assert SliderControl(id="s", name="S", value=25, min=0, max=50).fill_percentage == 50


class TestApplyControlValue:
    """Tests for per-kind value updates."""

    def test_button_flips(self):
        button = ButtonControl(id="stop", name="Emergency stop")
        pressed = apply_control_value(button)
        assert pressed.value is True
        assert apply_control_value(pressed).value is False
        assert button.value is False

    def test_toggle_requires_bool(self):
        toggle = ToggleControl(id="tracking", name="Sun tracking")
        assert apply_control_value(toggle, True).value is True
        with pytest.raises(ControlValueError):
            apply_control_value(toggle, "on")

    def test_slider_clamps_and_snaps(self):
        slider = SliderControl(id="pitch", name="Pitch", min=0, max=30, step=0.5)
        assert apply_control_value(slider, 12.3).value == pytest.approx(12.5)
        assert apply_control_value(slider, 45).value == 30
        assert apply_control_value(slider, -3).value == 0

    def test_slider_rejects_bool(self):
        with pytest.raises(ControlValueError):
            apply_control_value(SliderControl(id="s", name="S"), True)

    def test_input_text(self):
        field = InputControl(id="label", name="Label")
        assert apply_control_value(field, "Inverter 4").value == "Inverter 4"

    def test_disabled_control(self):
        with pytest.raises(ControlValueError):
            apply_control_value(ToggleControl(id="t", name="T", enabled=False), True)


class TestControlPanel:
    """Tests for committing changes through the async handler."""

    @pytest.mark.asyncio
    async def test_accepted_change_is_committed(self, panel_controls):
        calls = []

        async def handler(control_id, value):
            calls.append((control_id, value))
            return True

        panel = ControlPanel(panel_controls, handler)
        assert await panel.change("pitch", 14.2)
        assert panel.value("pitch") == pytest.approx(14.0)
        assert calls == [("pitch", pytest.approx(14.0))]
        assert not panel.is_pending("pitch")

    @pytest.mark.asyncio
    async def test_rejected_change_keeps_value(self, panel_controls):
        async def handler(control_id, value):
            return False

        panel = ControlPanel(panel_controls, handler)
        assert not await panel.change("tracking", False)
        assert panel.value("tracking") is True

    @pytest.mark.asyncio
    async def test_handler_failure_keeps_value(self, panel_controls):
        async def handler(control_id, value):
            raise ConnectionError("device offline")

        panel = ControlPanel(panel_controls, handler)
        assert not await panel.change("stop")
        assert panel.value("stop") is False
        assert not panel.is_pending("stop")

    @pytest.mark.asyncio
    async def test_unknown_control(self, panel_controls):
        async def handler(control_id, value):
            return True

        with pytest.raises(ControlValueError):
            await ControlPanel(panel_controls, handler).change("missing", 1)


# Fixtures

@pytest.fixture
def panel_controls():
    """Controls of a single wind turbine."""
    return [
        ButtonControl(id="stop", name="Emergency stop"),
        ToggleControl(id="tracking", name="Yaw tracking", value=True),
        SliderControl(id="pitch", name="Blade pitch", value=10, min=0, max=30, step=1),
    ]


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])

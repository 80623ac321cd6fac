"""
Equipment Control Panel
========================
Holds the current value of each control and forwards operator changes to an
async handler (e.g. a device API).

A change is committed only when the handler accepts it; a rejected or failed
change leaves the previous value in place.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Sequence, Set, Union

from loguru import logger

from .models import ControlValueError, EquipmentControl, apply_control_value

ControlValue = Union[bool, float, str]
ControlHandler = Callable[[str, ControlValue], Awaitable[bool]]


class ControlPanel:
    """Current control values plus in-flight change tracking."""

    def __init__(self, controls: Sequence[EquipmentControl], handler: ControlHandler):
        """
        Initialize control panel.

        Args:
            controls: Controls shown on the panel
            handler: Async callback ``(control_id, value) -> accepted``
        """
        self._controls: Dict[str, EquipmentControl] = {c.id: c for c in controls}
        self.handler = handler
        self.pending: Set[str] = set()

    @property
    def controls(self) -> List[EquipmentControl]:
        return list(self._controls.values())

    def get(self, control_id: str) -> EquipmentControl:
        try:
            return self._controls[control_id]
        except KeyError:
            raise ControlValueError(f"Unknown control '{control_id}'") from None

    def value(self, control_id: str) -> ControlValue:
        return self.get(control_id).value

    def is_pending(self, control_id: str) -> bool:
        return control_id in self.pending

    async def change(self, control_id: str, value: Any = None) -> bool:
        """
        Send a new value for one control.

        Returns:
            True if the handler accepted the change and it was committed

        Raises:
            ControlValueError: unknown/disabled control or invalid value
        """
        control = self.get(control_id)
        if control_id in self.pending:
            logger.warning(f"Control '{control_id}' already has a change in flight")
            return False

        updated = apply_control_value(control, value)
        self.pending.add(control_id)
        try:
            accepted = await self.handler(control_id, updated.value)
        except Exception as e:
            logger.error(f"Control change failed for '{control_id}': {e}")
            accepted = False
        finally:
            self.pending.discard(control_id)

        if accepted:
            self._controls[control_id] = updated
            logger.info(f"Control '{control.name}' set to {updated.value!r}")
        else:
            logger.debug(f"Control '{control_id}' change rejected")
        return accepted

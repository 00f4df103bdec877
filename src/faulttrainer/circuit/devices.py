"""Device state seen by the energy propagator.

The propagator never inspects device objects directly.  It asks a
:class:`DeviceStateProvider` about a device id, so any host representation can
take part as long as it answers the three capability queries below.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

__all__ = [
    "Breaker",
    "BreakerState",
    "Device",
    "DeviceRegistry",
    "DeviceStateProvider",
    "GfciOutlet",
    "LightSwitch",
    "describe_state",
]

logger = logging.getLogger(__name__)


@runtime_checkable
class DeviceStateProvider(Protocol):
    def is_breaker_on(self, device_id: str) -> bool: ...

    def is_switch_on(self, device_id: str) -> bool: ...

    def is_gfci_tripped(self, device_id: str) -> bool: ...


class BreakerState(str, Enum):
    ON = "on"
    OFF = "off"
    TRIPPED = "tripped"


@dataclass
class Breaker:
    amps: int = 20
    state: BreakerState = BreakerState.ON

    def turn_on(self) -> None:
        self.state = BreakerState.ON

    def turn_off(self) -> None:
        self.state = BreakerState.OFF

    def trip(self) -> None:
        self.state = BreakerState.TRIPPED

    def toggle(self) -> None:
        # A tripped handle resets straight to on.
        if self.state is BreakerState.ON:
            self.turn_off()
        else:
            self.turn_on()


@dataclass
class LightSwitch:
    is_on: bool = True

    def turn_on(self) -> None:
        self.is_on = True

    def turn_off(self) -> None:
        self.is_on = False

    def toggle(self) -> None:
        self.is_on = not self.is_on


@dataclass
class GfciOutlet:
    """GFCI receptacle.  A faulty unit neither trips on TEST nor resets."""

    tripped: bool = False
    faulty: bool = False

    def test(self) -> bool:
        if self.faulty:
            logger.debug("GFCI test pressed on a faulty unit; no trip")
            return False
        self.tripped = True
        return True

    def reset(self) -> bool:
        if self.faulty:
            logger.debug("GFCI reset pressed on a faulty unit; stays tripped")
            return False
        self.tripped = False
        return True


Device = Breaker | LightSwitch | GfciOutlet


class DeviceRegistry:
    """In-memory :class:`DeviceStateProvider` backed by the concrete devices."""

    def __init__(self) -> None:
        self._devices: dict[str, Device] = {}

    def register(self, device_id: str, device: Device) -> Device:
        self._devices[device_id] = device
        return device

    def get(self, device_id: str) -> Device | None:
        return self._devices.get(device_id)

    def ids(self) -> list[str]:
        return list(self._devices)

    def items(self) -> list[tuple[str, Device]]:
        return list(self._devices.items())

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._devices

    def __len__(self) -> int:
        return len(self._devices)

    def is_breaker_on(self, device_id: str) -> bool:
        device = self._devices.get(device_id)
        if not isinstance(device, Breaker):
            logger.debug("No breaker registered as %s; treating as on", device_id)
            return True
        return device.state is BreakerState.ON

    def is_switch_on(self, device_id: str) -> bool:
        device = self._devices.get(device_id)
        if not isinstance(device, LightSwitch):
            logger.debug("No switch registered as %s; treating as on", device_id)
            return True
        return device.is_on

    def is_gfci_tripped(self, device_id: str) -> bool:
        device = self._devices.get(device_id)
        if not isinstance(device, GfciOutlet):
            logger.debug("No GFCI registered as %s; treating as not tripped", device_id)
            return False
        return device.tripped


def describe_state(device: Device | None) -> str | None:
    if isinstance(device, Breaker):
        return device.state.value
    if isinstance(device, LightSwitch):
        return "on" if device.is_on else "off"
    if isinstance(device, GfciOutlet):
        return "tripped" if device.tripped else "ready"
    return None

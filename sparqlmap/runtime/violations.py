"""
Constraint violations and listener registry.

Loading data that breaks a property's declared cardinality (a functional
property with several values, a mandatory property with none) is not an
error: the load goes on and registered listeners are told about it.
Listeners are called synchronously, in registration order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

LOG = logging.getLogger("runtime.violations")


class ViolationKind(str, Enum):
    MISSING_VALUE = "missing_value"  # mandatory property unbound
    MULTIPLE_VALUES = "multiple_values"  # functional property with several values


@dataclass(frozen=True)
class ConstraintViolation:
    kind: ViolationKind
    entity_uri: str
    property_name: str
    message: str = ""

    def __str__(self) -> str:
        return f"{self.kind.value} on <{self.entity_uri}>.{self.property_name}: {self.message}"


class ViolationListener(Protocol):
    def handle_violation(self, violation: ConstraintViolation) -> None: ...


class ViolationRegistry:
    """Ordered set of violation listeners."""

    def __init__(self) -> None:
        self._listeners: list[ViolationListener] = []

    def add(self, listener: ViolationListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove(self, listener: ViolationListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def notify(self, violation: ConstraintViolation) -> None:
        LOG.warning("Constraint violation: %s", violation)
        for listener in list(self._listeners):
            listener.handle_violation(violation)

    def __len__(self) -> int:
        return len(self._listeners)

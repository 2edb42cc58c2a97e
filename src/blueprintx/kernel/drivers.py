"""Architecture drivers: architecture name -> ordered generation layers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict


class UnknownArchitectureError(RuntimeError):
    """Architecture is not registered."""

    def __init__(self, architecture: str, available: tuple[str, ...]) -> None:
        """Create lookup failure.

        Args:
            architecture: Requested architecture name.
            available: Registered architecture names.
        """
        listing = ", ".join(available) or "none"
        super().__init__(
            f"Architecture '{architecture}' is not configured (available: {listing})."
        )
        self.architecture = architecture
        self.available = available


class ArchitectureDriver(BaseModel):
    """Layer layout of one architecture."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    layers: tuple[str, ...]
    metadata: dict[str, Any] = {}


class DriverManager:
    """Registry of architecture drivers."""

    def __init__(self, drivers: Mapping[str, ArchitectureDriver]) -> None:
        """Store drivers keyed by architecture name."""
        self._drivers = dict(drivers)

    def resolve(self, architecture: str) -> ArchitectureDriver:
        """Return the driver for ``architecture``.

        Raises:
            UnknownArchitectureError: If the architecture is not registered.
        """
        driver = self._drivers.get(architecture)
        if driver is None:
            raise UnknownArchitectureError(architecture, self.available())
        return driver

    def available(self) -> tuple[str, ...]:
        """Return registered architecture names in registration order."""
        return tuple(self._drivers)

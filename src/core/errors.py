"""Registry exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class RegistryError(Exception):
    """Base exception for all registry failures."""


class RegistryConfigError(RegistryError):
    """Raised for invalid runtime configuration."""


class RegistryAcquisitionError(RegistryError):
    """Raised when a source cannot be fetched or times out."""

    def __init__(self, message: str, source_name: str | None = None) -> None:
        super().__init__(message)
        self.source_name = source_name


class RegistryIngestError(RegistryError):
    """Raised for structural source errors such as empty or garbled files."""

    def __init__(self, message: str, source_name: str | None = None) -> None:
        super().__init__(message)
        self.source_name = source_name


class RegistryLinkError(RegistryError):
    """Raised when loaded entity sets cannot be reconciled."""

    def __init__(self, message: str, source_name: str | None = None) -> None:
        super().__init__(message)
        self.source_name = source_name


class RegistryStoreError(RegistryError):
    """Raised for snapshot store and lookup failures."""


class RegistryDependencyError(RegistryError):
    """Raised when an optional runtime dependency is missing."""


class RegistryRowError(RegistryError):
    """Raised by row decoders for one malformed row.

    Attributes:
        reason: Machine-readable reject reason.
    """

    def __init__(self, reason: str, detail: str) -> None:
        super().__init__(f"{reason}: {detail}")
        self.reason = reason
        self.detail = detail

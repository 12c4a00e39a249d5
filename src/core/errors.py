"""Recorder exception hierarchy.

This module defines traceable persistence errors with clear boundaries.
Init-time failures are fatal; all other failures are raised per call.
"""

from __future__ import annotations


class RecorderError(Exception):
    """Base exception for all recorder failures."""


class RecorderConfigError(RecorderError):
    """Raised for invalid runtime configuration."""


class RecorderStoreError(RecorderError):
    """Raised for snapshot store failures."""


class StoreConnectionError(RecorderStoreError):
    """Raised when the backing database cannot be opened or closed."""


class SchemaError(RecorderStoreError):
    """Raised when schema creation fails during init."""


class PrepareError(RecorderStoreError):
    """Raised when an operation cannot be compiled or looked up."""


class StoreLifecycleError(RecorderStoreError):
    """Raised when the store is used before init or initialized twice."""


class CodecError(RecorderStoreError):
    """Base class for nested attribute encode/decode failures."""


class EncodeError(CodecError):
    """Raised when a nested attribute cannot be serialized to text."""

    def __init__(self, field_name: str, value: object, reason: str) -> None:
        super().__init__(
            f"Cannot encode field '{field_name}' value {value!r}: {reason}. "
            "Pass JSON-compatible values for nested attributes."
        )
        self.field_name = field_name
        self.value = value


class DecodeError(CodecError):
    """Raised when stored text cannot be parsed back into a nested attribute."""

    def __init__(self, field_name: str, text: str, reason: str) -> None:
        super().__init__(
            f"Cannot decode field '{field_name}' from {text!r}: {reason}. "
            "The stored row is corrupt or was written by an incompatible version."
        )
        self.field_name = field_name
        self.text = text


class ScanError(RecorderStoreError):
    """Raised when a result row does not match the expected columns or types."""

    def __init__(
        self, operation: str, reason: str, params: tuple[object, ...] = ()
    ) -> None:
        super().__init__(
            f"Cannot scan result of '{operation}' with params {params!r}: {reason}."
        )
        self.operation = operation
        self.params = params


class NotFoundError(RecorderStoreError):
    """Raised when a query expecting data matched zero rows."""

    def __init__(self, operation: str, params: tuple[object, ...]) -> None:
        super().__init__(
            f"No rows found for '{operation}' with params {params!r}. "
            "Record a snapshot before querying it."
        )
        self.operation = operation
        self.params = params


class ExecError(RecorderStoreError):
    """Raised when an insert or update statement fails."""

    def __init__(self, operation: str, key: object, reason: str) -> None:
        super().__init__(f"Failed to execute '{operation}' for key {key!r}: {reason}.")
        self.operation = operation
        self.key = key

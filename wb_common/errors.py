"""Shared error taxonomy for workload-bench."""

from __future__ import annotations

from typing import Any, Mapping, TypeVar


def _normalize_context_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return normalize_context(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_context_value(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def normalize_context(context: Mapping[str, Any]) -> dict[str, Any]:
    """Return a JSON-friendly copy of an error context mapping."""
    return {key: _normalize_context_value(val) for key, val in context.items()}


class WBError(Exception):
    """Base error type for failures that are reported rather than crashed on.

    Anything raised out of a workload run that is not a ``WBError`` is treated
    as a fault by the controller.
    """

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.context = normalize_context(context or {})
        if cause is not None:
            self.__cause__ = cause

    @property
    def error_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.error_type, "message": str(self), "context": self.context}


class ConfigurationError(WBError):
    """Failure due to invalid configuration or missing build provenance."""


class RemoteRequestError(WBError):
    """Failure talking to a remote HTTP service."""


class WorkloadLoadError(WBError):
    """Failure opening or parsing a workload file."""


class WorkloadExecutionError(WBError):
    """Failure while executing a workload against the target."""


class AssetError(WorkloadExecutionError):
    """Failure fetching or verifying a workload asset."""


T = TypeVar("T", bound=WBError)


def wrap_error(
    error_cls: type[T],
    message: str,
    *,
    context: Mapping[str, Any] | None = None,
    cause: Exception | None = None,
) -> T:
    """Create a typed WBError with optional context and cause."""
    return error_cls(message, context=context, cause=cause)

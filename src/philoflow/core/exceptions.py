from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


class PhiloflowError(Exception):
    """Base exception for philoflow."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def with_context(self, **values: Any) -> "PhiloflowError":
        """Add context entries not already set, returning self for re-raising."""
        for key, value in values.items():
            if value is not None and key not in self.context:
                self.context[key] = value
        return self

    def __str__(self) -> str:
        message = super().__str__()
        if not self.context:
            return message
        details = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{message} [{details}]"

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": Exception.__str__(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class MalformedSpanError(PhiloflowError, ValueError):
    """Raised when a location cannot be parsed or two layer spans overlap improperly."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        PhiloflowError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class UnknownCoordinateError(PhiloflowError, IndexError):
    """Raised when a location falls outside the extent of the base text."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        PhiloflowError.__init__(self, message, context=context)
        IndexError.__init__(self, message)


class UnsupportedPartError(PhiloflowError, TypeError):
    """Raised when a part is not of the kind a component can process."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        PhiloflowError.__init__(self, message, context=context)
        TypeError.__init__(self, message)


class UnregisteredRendererError(PhiloflowError, LookupError):
    """Raised when no renderer is bound to a part's type/role."""

    def __init__(
        self,
        type_id: str,
        role_id: Optional[str] = None,
        *,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        ctx.setdefault("type_id", type_id)
        if role_id:
            ctx.setdefault("role_id", role_id)
        role = f" (role {role_id})" if role_id else ""
        message = f"No renderer registered for part type {type_id}{role}"
        PhiloflowError.__init__(self, message, context=ctx)
        LookupError.__init__(self, message)
        self.type_id = type_id
        self.role_id = role_id


class TemplateFillError(PhiloflowError, ValueError):
    """Raised when a template references values missing from the context."""

    def __init__(
        self,
        missing: list[str],
        *,
        template: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        ctx.setdefault("missing", list(missing))
        message = "Unresolved template placeholders: " + ", ".join(missing)
        PhiloflowError.__init__(self, message, context=ctx)
        ValueError.__init__(self, message)
        self.missing = list(missing)
        self.template = template


class ComposerStateError(PhiloflowError, RuntimeError):
    """Raised when a composer is used outside its open/compose/close lifecycle."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        PhiloflowError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


class ConfigurationError(PhiloflowError):
    """Raised for invalid rendering settings or unknown component tags."""


__all__ = [
    "PhiloflowError",
    "MalformedSpanError",
    "UnknownCoordinateError",
    "UnsupportedPartError",
    "UnregisteredRendererError",
    "TemplateFillError",
    "ComposerStateError",
    "ConfigurationError",
]

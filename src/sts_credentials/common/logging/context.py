"""Log context variables injected into every formatted record."""

from contextvars import ContextVar
from typing import Dict, Optional

_provider_id: ContextVar[Optional[str]] = ContextVar("provider_id", default=None)
_component: ContextVar[Optional[str]] = ContextVar("component", default=None)


def set_log_context(
    provider_id: Optional[str] = None,
    component: Optional[str] = None,
) -> None:
    """
    Set context values for subsequent log records in this context.

    Only non-None arguments are applied.
    """
    if provider_id is not None:
        _provider_id.set(provider_id)
    if component is not None:
        _component.set(component)


def get_log_context() -> Dict[str, Optional[str]]:
    """Return the current context values."""
    return {
        "provider_id": _provider_id.get(),
        "component": _component.get(),
    }


def clear_log_context() -> None:
    """Reset all context values."""
    _provider_id.set(None)
    _component.set(None)

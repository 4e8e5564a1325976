"""Dependencies that are used in the API endpoints."""

from typing import get_type_hints

from fastapi import Depends, Request

from quotakeeper.core import container as container_mod
from quotakeeper.core.container import Container
from quotakeeper.core.logging import ContextualLogger, logger
from quotakeeper.db.session import get_db

__all__ = ["Inject", "get_container", "get_db", "get_request_logger"]


def get_container() -> Container:
    """Get the DI container. Initialized at startup."""
    c = container_mod.container
    if c is None:
        raise RuntimeError("Container not initialized. Call initialize_container() first.")
    return c


async def get_request_logger(request: Request) -> ContextualLogger:
    """Logger bound to the current request ID."""
    return logger.with_context(request_id=getattr(request.state, "request_id", None))


# ---------------------------------------------------------------------------
# Protocol Injection
# ---------------------------------------------------------------------------

# Cache of protocol_type → Container field name, built once at first call.
_INJECT_CACHE: dict[type, str] = {}


def _resolve_field_name(protocol_type: type) -> str:
    """Find which Container field matches the given protocol type.

    Uses get_type_hints() to introspect the Container dataclass.
    Result is cached so the lookup happens at most once per protocol type.
    """
    if not _INJECT_CACHE:
        for name, hint in get_type_hints(Container).items():
            _INJECT_CACHE[hint] = name

    field_name = _INJECT_CACHE.get(protocol_type)
    if field_name is None:
        available = list(_INJECT_CACHE.values())
        raise TypeError(
            f"No binding for {protocol_type.__name__} in Container. Available fields: {available}"
        )
    return field_name


def Inject(protocol_type: type):  # noqa: N802 - uppercase to match FastAPI convention
    """Resolve a protocol implementation from the DI container.

    Works like ``Depends()`` but looks up the implementation by protocol type
    instead of requiring the caller to know about the Container internals.

    Usage in FastAPI endpoints::

        from quotakeeper.api.deps import Inject
        from quotakeeper.domains.usage.protocols import UsageServiceProtocol


        @router.get("/{account_id}")
        async def get_usage(
            account_id: UUID,
            usage_service: UsageServiceProtocol = Inject(UsageServiceProtocol),
        ):
            ...
    """
    field_name = _resolve_field_name(protocol_type)

    def _resolve(c: Container = Depends(get_container)):
        return getattr(c, field_name)

    return Depends(_resolve)

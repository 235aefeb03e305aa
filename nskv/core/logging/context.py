"""
Logging context management using contextvars for automatic propagation.

The namespace (key prefix) and the running operation are set once per task
and picked up by every ContextLogger created afterwards.
"""

from contextvars import ContextVar

_namespace_context: ContextVar[str | None] = ContextVar("namespace", default=None)
_operation_context: ContextVar[str | None] = ContextVar("operation", default=None)


def set_log_context(
    namespace: str | None = None,
    operation: str | None = None,
) -> None:
    """
    Set the logging context for the current async context.

    Args:
        namespace: Key prefix of the keyspace being worked on
        operation: Name of the running operation (scan, purge, drain, ...)
    """
    if namespace is not None:
        _namespace_context.set(namespace)
    if operation is not None:
        _operation_context.set(operation)


def get_current_namespace_context() -> str | None:
    """Get the current namespace from context variables."""
    return _namespace_context.get()


def get_current_operation_context() -> str | None:
    """Get the current operation from context variables."""
    return _operation_context.get()


def clear_log_context() -> None:
    """
    Clear the logging context.

    Context is isolated per task already; this is mostly useful for testing.
    """
    _namespace_context.set(None)
    _operation_context.set(None)


def get_context_info() -> dict[str, str | None]:
    """
    Get current context information for debugging.

    Returns:
        Dictionary with current namespace and operation
    """
    return {
        "namespace": get_current_namespace_context(),
        "operation": get_current_operation_context(),
    }

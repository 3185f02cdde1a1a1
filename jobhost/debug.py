"""
Debug utilities for binder resolution and binding.
"""
from jobhost.config import is_debug_enabled


class DebugLogger:
    """
    Centralized debug logging for binders.

    Keeps the resolution and binding code free of if statements guarding every message.
    """

    def __init__(self, enabled: bool = False):
        self.enabled = enabled

    def resolving_binder(self, target_type, is_read_only: bool):
        if self.enabled:
            access = "read only" if is_read_only else "read/write"
            print(f"[JOBHOST DEBUG] Resolving {access} binder for {target_type}")

    def cached_binder(self, target_type, binder):
        if self.enabled:
            print(f"[JOBHOST DEBUG] Using cached binder {binder!r} for {target_type}")

    def provider_declined(self, provider, target_type):
        if self.enabled:
            print(f"[JOBHOST DEBUG] {type(provider).__name__} does not bind {target_type}")

    def resolved_binder(self, target_type, binder):
        if self.enabled:
            print(f"[JOBHOST DEBUG] Resolved {target_type} to {binder!r}")

    def missing_table(self, table_name: str, entity_type: type):
        """Log the empty queryable fallback for tables that don't exist."""
        if self.enabled:
            print(f"[JOBHOST DEBUG] Table '{table_name}' does not exist, binding an empty queryable of {entity_type.__name__}")

    def bound_value(self, parameter_name: str, table_name: str, value):
        if self.enabled:
            print(f"[JOBHOST DEBUG] Bound {parameter_name} to table '{table_name}': {value!r}")


# Global debug logger instance
_debug_logger = DebugLogger(is_debug_enabled())


def get_debug_logger() -> DebugLogger:
    """Get the global debug logger instance."""
    return _debug_logger


def set_debug_enabled(enabled: bool):
    """Enable or disable debug logging globally."""
    _debug_logger.enabled = enabled


def create_debug_logger(enabled: bool | None = None) -> DebugLogger:
    """Create a new debug logger. When enabled isn't given the global logger's state is used."""
    return DebugLogger(_debug_logger.enabled if enabled is None else enabled)

from contextvars import ContextVar

import jobhost.registries as r
from jobhost.config import GLOBAL_CONTEXT_VARIABLE, is_global_context_enabled

global_registry: "ContextVar[r.Registry]" = ContextVar("global_registry")


class GlobalContextDisabledError(Exception):
    """Raised when the global context is disabled by the JOBHOST_ENABLE_GLOBAL_CONTEXT environment variable."""


def get_global_registry() -> "r.Registry":
    """Gets the global registry. If no registry exists, creates a new one. Raises GlobalContextDisabledError if the
    JOBHOST_ENABLE_GLOBAL_CONTEXT environment variable is set to False."""
    if not is_global_context_enabled():
        raise GlobalContextDisabledError(
            f"Global context is disabled by {GLOBAL_CONTEXT_VARIABLE}. You must provide a registry to use."
        )

    try:
        registry = global_registry.get()
    except LookupError:
        global_registry.set(
            registry := r.Registry()
        )

    return registry


class GlobalContextMixin:
    """This mixin allows instances to be loaded into a predefined contextvar using a context manager."""
    def __init_subclass__(cls, *, var: ContextVar, **kwargs):
        super().__init_subclass__(**kwargs)
        cls._context_var = var

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._reset_tokens = []

    def __enter__(self):
        self._reset_tokens.append(self._context_var.set(self))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._context_var.reset(self._reset_tokens.pop())

"""
Exception types raised by the binding layer.

Binder providers decline target types they don't handle by returning Nothing, that is never an error. Everything
below is fatal and propagates to the invocation pipeline:

- Configuration errors are raised while resolving a binder for a declared parameter type.
- Resource errors are raised while binding a value for an invocation.

A missing table is not an error at all, it binds to an empty queryable.
"""


class BindingError(Exception):
    """Base exception for every error raised while resolving binders or binding values."""


class BindingConfigurationError(BindingError):
    """Raised when a declared parameter type matches a binder's shape but can't be bound as declared."""
    def __init__(self, message: str, *, target_type: object = None, entity_type: type | None = None):
        self.target_type = target_type
        self.entity_type = entity_type
        super().__init__(message)


class UnsupportedEntityTypeError(BindingConfigurationError):
    """Raised when a queryable's entity type doesn't implement table entity semantics."""
    def __init__(self, entity_type: type, *, target_type: object = None, message: str | None = None):
        if message is None:
            message = (
                "Queryable is only supported on types that implement table entity semantics (partition_key, row_key, "
                f"timestamp, etag, read_entity, write_entity). {_type_name(entity_type)} does not."
            )
        super().__init__(message, target_type=target_type, entity_type=entity_type)


class MissingDefaultConstructorError(BindingConfigurationError):
    """Raised when an entity type can't be constructed without arguments."""
    def __init__(self, entity_type: type, *, target_type: object = None):
        super().__init__(
            f"Table entity type {_type_name(entity_type)} must have a parameterless constructor.",
            target_type=target_type,
            entity_type=entity_type,
        )


class BindingResourceError(BindingError):
    """Raised when the storage resources needed to bind a value can't be resolved."""


class StorageAccountError(BindingResourceError):
    """Raised when a storage account connection string is missing or malformed."""


class NoBinderFoundError(BindingError):
    """Raised when no binder provider accepts a target type."""
    def __init__(self, target_type: object, message: str | None = None):
        self.target_type = target_type
        if message is None:
            message = f"No binder provider can bind parameters of type {_type_name(target_type)}"
        super().__init__(message)


def _type_name(obj: object) -> str:
    return obj.__qualname__ if isinstance(obj, type) else repr(obj)

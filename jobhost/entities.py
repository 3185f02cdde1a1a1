"""
Table entity semantics.

A type can be bound as the entity type of a queryable when it exposes the table entity capability set: the
partition_key, row_key, timestamp & etag attributes and the read_entity & write_entity methods. The check is
structural, subclassing TableEntity is the convenient way to get there but it isn't required.

Example:
    >>> class Order(TableEntity):
    ...     customer: str = ""
    ...     total: float = 0.0
    >>>
    >>> implements_table_entity(Order)
    True
"""
import inspect
from datetime import datetime
from typing import Any, ClassVar, get_origin, Mapping

from jobhost.errors import MissingDefaultConstructorError

TABLE_ENTITY_ATTRIBUTES = ("partition_key", "row_key", "timestamp", "etag")
TABLE_ENTITY_METHODS = ("read_entity", "write_entity")

# Property names the table service manages itself, they never reach read_entity
SYSTEM_PROPERTIES = frozenset({"PartitionKey", "RowKey", "Timestamp", "odata.etag"})


class TableEntity:
    """Base type for table entities. Custom properties are declared as class annotations and are read from and written
    to table properties of the same name."""
    partition_key: str = ""
    row_key: str = ""
    timestamp: datetime | None = None
    etag: str | None = None

    def __init__(self, partition_key: str = "", row_key: str = ""):
        self.partition_key = partition_key
        self.row_key = row_key
        self.timestamp = None
        self.etag = None

    def read_entity(self, properties: Mapping[str, Any]) -> None:
        """Copies the declared properties found in the mapping onto the entity. Unknown properties are ignored."""
        for name in entity_property_names(type(self)):
            if name in properties:
                setattr(self, name, properties[name])

    def write_entity(self) -> dict[str, Any]:
        """Returns the entity as a table property mapping including the partition & row keys."""
        properties = {"PartitionKey": self.partition_key, "RowKey": self.row_key}
        for name in entity_property_names(type(self)):
            properties[name] = getattr(self, name)

        return properties

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented

        return self.write_entity() == other.write_entity()

    def __repr__(self):
        return f"{type(self).__name__}(partition_key={self.partition_key!r}, row_key={self.row_key!r})"


def entity_property_names(entity_type: type) -> tuple[str, ...]:
    """Names of the custom properties an entity type declares through annotations, base classes first. ClassVar
    annotations aren't properties."""
    names = {}
    for base in reversed(entity_type.__mro__):
        for name, annotation in inspect.get_annotations(base).items():
            if name not in TABLE_ENTITY_ATTRIBUTES and not name.startswith("_") and not _is_class_var(annotation):
                names[name] = None

    return tuple(names)


def implements_table_entity(entity_type: object) -> bool:
    """Determines if a type exposes the full table entity capability set."""
    if not isinstance(entity_type, type):
        return False

    return all(
        _declares_attribute(entity_type, name) for name in TABLE_ENTITY_ATTRIBUTES
    ) and all(
        callable(getattr(entity_type, name, None)) for name in TABLE_ENTITY_METHODS
    )


def has_default_constructor(entity_type: type) -> bool:
    """Determines if a type can be instantiated without passing any arguments."""
    if inspect.isabstract(entity_type):
        return False

    try:
        sig = inspect.signature(entity_type)
    except (TypeError, ValueError):
        return False

    return all(
        parameter.default is not parameter.empty
        or parameter.kind in {parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD}
        for parameter in sig.parameters.values()
    )


def verify_default_constructor(entity_type: type, *, target_type: object = None):
    """Raises MissingDefaultConstructorError when the type requires constructor arguments."""
    if not has_default_constructor(entity_type):
        raise MissingDefaultConstructorError(entity_type, target_type=target_type)


def entity_from_properties[T](entity_type: type[T], properties: Mapping[str, Any]) -> T:
    """Creates an entity from a table service entity. The service metadata (etag & timestamp) is read from the mapping's
    metadata attribute when it has one."""
    metadata = getattr(properties, "metadata", None) or {}
    entity = entity_type()
    entity.partition_key = properties.get("PartitionKey", "")
    entity.row_key = properties.get("RowKey", "")
    entity.timestamp = metadata.get("timestamp", properties.get("Timestamp"))
    entity.etag = metadata.get("etag", properties.get("odata.etag"))
    entity.read_entity(
        {name: value for name, value in properties.items() if name not in SYSTEM_PROPERTIES}
    )
    return entity


def _declares_attribute(cls: type, name: str) -> bool:
    return any(
        name in vars(base) or name in inspect.get_annotations(base)
        for base in cls.__mro__
    )


def _is_class_var(annotation: object) -> bool:
    if isinstance(annotation, str):
        return annotation.split("[", 1)[0].strip() in {"ClassVar", "typing.ClassVar", "t.ClassVar"}

    return annotation is ClassVar or get_origin(annotation) is ClassVar

from jobhost.registries import get_registry, Registry
from jobhost.binders import (
    CompositeTableBinderProvider, QueryableTableBinderProvider, TableBinder, TableBinderProvider,
    TableClientBinderProvider,
)
from jobhost.contexts import BindingContext
from jobhost.debug import set_debug_enabled
from jobhost.entities import TableEntity, implements_table_entity
from jobhost.errors import (
    BindingConfigurationError, BindingError, BindingResourceError, MissingDefaultConstructorError,
    NoBinderFoundError, StorageAccountError, UnsupportedEntityTypeError,
)
from jobhost.hooks import hooks
from jobhost.queryables import Queryable
from jobhost.results import BindResult
from jobhost.tables import BindTable, call, Table, table_function

__all__ = [
    "get_registry", "Registry",
    "CompositeTableBinderProvider", "QueryableTableBinderProvider", "TableBinder", "TableBinderProvider",
    "TableClientBinderProvider",
    "BindingContext", "BindResult", "Queryable", "TableEntity", "implements_table_entity", "hooks",
    "BindTable", "call", "Table", "table_function", "set_debug_enabled",
    "BindingConfigurationError", "BindingError", "BindingResourceError", "MissingDefaultConstructorError",
    "NoBinderFoundError", "StorageAccountError", "UnsupportedEntityTypeError",
]

"""
Binders for table storage parameters.

A binder provider looks at the declared type of a parameter and decides if it can bind it. Providers that don't
recognize a type return Nothing so the next provider can try. Once a provider accepts a type it returns a binder that is
reused for every invocation, each call to the binder's bind method produces a fresh BindResult.

Example:
    >>> provider = QueryableTableBinderProvider()
    >>> binder = provider.try_get_binder(Queryable[Order], True).value
    >>> orders = binder.bind(context, Queryable[Order], "Orders").result
    >>> for order in orders:
    ...     print(order.row_key)
"""
from dataclasses import dataclass
from typing import Callable, Iterable, Protocol, get_args, get_origin

from azure.data.tables import TableClient, TableServiceClient
from tramp.optionals import Optional

from jobhost.accounts import get_account, table_exists
from jobhost.contexts import BindingContext
from jobhost.debug import create_debug_logger, DebugLogger
from jobhost.entities import implements_table_entity, verify_default_constructor
from jobhost.errors import UnsupportedEntityTypeError
from jobhost.queryables import EmptyQueryable, Queryable, TableQueryable
from jobhost.results import BindResult


class TableBinder(Protocol):
    def bind(self, context: BindingContext, target_type: object, table_name: str) -> BindResult:
        ...


class TableBinderProvider(Protocol):
    def try_get_binder(self, target_type: object, is_read_only: bool) -> Optional[TableBinder]:
        ...


class QueryableTableBinderProvider:
    """Binds parameters declared as Queryable[T] where T implements table entity semantics. Once a parameter is
    declared as a queryable, an entity type that can't be bound is a configuration error rather than a reason to let
    another provider try."""

    def try_get_binder(self, target_type: object, is_read_only: bool) -> Optional[TableBinder]:
        if get_origin(target_type) is not Queryable:
            return Optional.Nothing()

        entity_type = _get_queryable_item_type(target_type)
        if not implements_table_entity(entity_type):
            raise UnsupportedEntityTypeError(entity_type, target_type=target_type)

        verify_default_constructor(entity_type, target_type=target_type)
        return Optional.Some(self._get_binder_generic(entity_type, is_read_only))

    @classmethod
    def _get_binder_generic(cls, entity_type: type, is_read_only: bool) -> TableBinder:
        # Calls _create_binder[entity_type](entity_type, is_read_only)
        factory = getattr(cls, "_create_binder")
        return factory(entity_type, is_read_only)

    @staticmethod
    def _create_binder[T](entity_type: type[T], is_read_only: bool) -> "QueryableTableBinder[T]":
        return QueryableTableBinder[entity_type](entity_type, is_read_only)

    def __repr__(self):
        return f"{type(self).__name__}()"


@dataclass(frozen=True)
class QueryableTableBinder[T]:
    """Binds a table to a Queryable[T]. Tables that don't exist yet bind to an empty queryable. The service client
    stays open for the queryable to use until the bind result's post action closes it."""
    entity_type: type[T]
    is_read_only: bool = True

    def bind(self, context: BindingContext, target_type: object, table_name: str) -> BindResult:
        account = get_account(context.account_connection_string)
        service_client = account.create_table_service_client()
        table_client = service_client.get_table_client(table_name)
        try:
            queryable = self._create_queryable(service_client, table_client, context)
        except Exception:
            service_client.close()
            raise

        return BindResult(queryable, post_action=service_client.close)

    def _create_queryable(
        self, service_client: TableServiceClient, table_client: TableClient, context: BindingContext
    ) -> Queryable[T]:
        if not table_exists(service_client, table_client.table_name):
            create_debug_logger(context.debug_mode).missing_table(table_client.table_name, self.entity_type)
            return EmptyQueryable[self.entity_type](self.entity_type)

        return TableQueryable[self.entity_type](self.entity_type, table_client)

    def __repr__(self):
        return f"{type(self).__name__}[{self.entity_type.__name__}]"


class TableClientBinderProvider:
    """Binds parameters declared as a TableClient to a client for the named table. The table isn't created or checked
    for existence."""

    def try_get_binder(self, target_type: object, is_read_only: bool) -> Optional[TableBinder]:
        if target_type is TableClient:
            return Optional.Some(TableClientBinder(is_read_only))

        return Optional.Nothing()

    def __repr__(self):
        return f"{type(self).__name__}()"


@dataclass(frozen=True)
class TableClientBinder:
    is_read_only: bool = True

    def bind(self, context: BindingContext, target_type: object, table_name: str) -> BindResult:
        account = get_account(context.account_connection_string)
        service_client = account.create_table_service_client()
        table_client = service_client.get_table_client(table_name)
        return BindResult(table_client, post_action=_close_clients(table_client, service_client))


class CompositeTableBinderProvider:
    """Asks each provider in order for a binder and returns the first one found. Errors raised by a provider stop the
    search."""
    def __init__(self, providers: Iterable[TableBinderProvider] = (), *, debug: DebugLogger | None = None):
        self.providers: list[TableBinderProvider] = list(providers)
        self.debug = debug or create_debug_logger()

    def try_get_binder(self, target_type: object, is_read_only: bool) -> Optional[TableBinder]:
        for provider in self.providers:
            match provider.try_get_binder(target_type, is_read_only):
                case Optional.Some() as binder:
                    return binder

                case _:
                    self.debug.provider_declined(provider, target_type)

        return Optional.Nothing()

    def __repr__(self):
        return f"{type(self).__name__}({self.providers!r})"


def _get_queryable_item_type(queryable_type: object) -> type:
    match get_args(queryable_type):
        case (item_type,):
            return item_type

        case args:
            raise AssertionError(f"Expected exactly one type argument for {queryable_type!r}, found {len(args)}")


def _close_clients(*clients) -> Callable[[], None]:
    # Table clients share their service client's transport, only closing the service client ends the session
    def close():
        for client in clients:
            client.close()

    return close

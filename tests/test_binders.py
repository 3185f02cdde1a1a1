from typing import Iterable

import pytest
from azure.data.tables import TableClient
from tramp.optionals import Optional

from jobhost.binders import (
    CompositeTableBinderProvider, QueryableTableBinder, QueryableTableBinderProvider, TableClientBinder,
    TableClientBinderProvider,
)
from jobhost.contexts import BindingContext
from jobhost.entities import TableEntity
from jobhost.errors import (
    BindingConfigurationError, MissingDefaultConstructorError, StorageAccountError, UnsupportedEntityTypeError,
)
from jobhost.queryables import EmptyQueryable, Queryable, TableQueryable
from jobhost.results import BindResult


class Order(TableEntity):
    customer: str = ""


class NotAnEntity:
    def __init__(self):
        self.name = ""


class NeedsRegion(TableEntity):
    def __init__(self, region: str):
        super().__init__()
        self.region = region


@pytest.fixture
def provider():
    return QueryableTableBinderProvider()


@pytest.mark.parametrize(
    "target_type",
    [Order, Queryable, list[Order], Iterable[Order], EmptyQueryable[Order], TableQueryable[Order], TableClient, int],
)
def test_provider_declines_other_shapes(provider, target_type):
    assert isinstance(provider.try_get_binder(target_type, True), Optional.Nothing)


def test_entity_type_without_table_entity_semantics(provider):
    with pytest.raises(UnsupportedEntityTypeError) as exc_info:
        provider.try_get_binder(Queryable[NotAnEntity], True)

    error = exc_info.value
    assert isinstance(error, BindingConfigurationError)
    assert error.entity_type is NotAnEntity
    assert error.target_type == Queryable[NotAnEntity]
    assert "table entity semantics" in str(error)


def test_entity_type_without_parameterless_constructor(provider):
    with pytest.raises(MissingDefaultConstructorError) as exc_info:
        provider.try_get_binder(Queryable[NeedsRegion], True)

    assert exc_info.value.entity_type is NeedsRegion
    assert "parameterless constructor" in str(exc_info.value)


def test_provider_creates_specialized_binder(provider):
    match provider.try_get_binder(Queryable[Order], False):
        case Optional.Some(binder):
            assert isinstance(binder, QueryableTableBinder)
            assert binder.entity_type is Order
            assert binder.is_read_only is False

        case _:
            pytest.fail("Expected a binder for Queryable[Order]")


def test_resolution_is_repeatable(provider, table_service, context, stored_entity):
    table_service.add_table("Orders", stored_entity(PartitionKey="eu", RowKey="1", customer="Ada"))
    first = provider.try_get_binder(Queryable[Order], True).value
    second = provider.try_get_binder(Queryable[Order], True).value

    assert first == second
    assert first.bind(context, Queryable[Order], "Orders").result.to_list() == (
        second.bind(context, Queryable[Order], "Orders").result.to_list()
    )


def test_missing_table_binds_empty_queryable(provider, table_service, context):
    binder = provider.try_get_binder(Queryable[Order], True).value
    bind_result = binder.bind(context, Queryable[Order], "Orders")

    assert isinstance(bind_result, BindResult)
    assert isinstance(bind_result.result, EmptyQueryable)
    assert bind_result.result.entity_type is Order
    assert list(bind_result.result) == []
    assert table_service.existence_checks == 1
    assert all(client.queries == [] for client in table_service.table_clients)


def test_existing_table_binds_live_query(provider, table_service, context, stored_entity):
    table_service.add_table(
        "Orders",
        stored_entity(PartitionKey="eu", RowKey="1", customer="Ada"),
        stored_entity(PartitionKey="eu", RowKey="2", customer="Grace"),
        stored_entity(PartitionKey="us", RowKey="3", customer="Edsger"),
    )
    binder = provider.try_get_binder(Queryable[Order], True).value
    orders = binder.bind(context, Queryable[Order], "Orders").result

    assert isinstance(orders, TableQueryable)
    assert table_service.page_requests["Orders"] == 0

    results = list(orders.page_size(2))
    assert [(order.partition_key, order.row_key, order.customer) for order in results] == [
        ("eu", "1", "Ada"),
        ("eu", "2", "Grace"),
        ("us", "3", "Edsger"),
    ]
    assert all(isinstance(order, Order) for order in results)
    assert table_service.page_requests["Orders"] == 2


def test_each_bind_creates_an_independent_value(provider, table_service, context):
    table_service.add_table("Orders")
    binder = provider.try_get_binder(Queryable[Order], True).value
    first = binder.bind(context, Queryable[Order], "Orders")
    second = binder.bind(context, Queryable[Order], "Orders")

    assert first is not second
    assert first.result is not second.result
    assert first.result.table_client is not second.result.table_client


@pytest.mark.parametrize("connection_string", ["", "AccountName=orders", "not a connection string"])
def test_malformed_connection_string(provider, table_service, connection_string):
    binder = provider.try_get_binder(Queryable[Order], True).value
    with pytest.raises(StorageAccountError):
        binder.bind(BindingContext(connection_string), Queryable[Order], "Orders")

    assert table_service.table_clients == []


def test_storage_errors_propagate(provider, table_service, context):
    class Unauthorized(Exception):
        ...

    def query_tables(*args, **kwargs):
        raise Unauthorized("403")

    table_service.query_tables = query_tables
    binder = provider.try_get_binder(Queryable[Order], True).value
    with pytest.raises(Unauthorized):
        binder.bind(context, Queryable[Order], "Orders")

    assert table_service.closed


def test_table_client_binder(table_service, context):
    binder = TableClientBinderProvider().try_get_binder(TableClient, False).value
    assert binder == TableClientBinder(False)

    bind_result = binder.bind(context, TableClient, "Orders")
    assert bind_result.result.table_name == "Orders"
    assert not bind_result.result.closed

    assert not table_service.closed

    bind_result.run_post_action()
    assert bind_result.result.closed
    assert table_service.closed


def test_table_client_provider_declines_queryables():
    assert isinstance(TableClientBinderProvider().try_get_binder(Queryable[Order], True), Optional.Nothing)


class TestCompositeProvider:
    def test_first_match_wins(self):
        chain = CompositeTableBinderProvider([TableClientBinderProvider(), QueryableTableBinderProvider()])
        assert isinstance(chain.try_get_binder(Queryable[Order], True).value, QueryableTableBinder)
        assert isinstance(chain.try_get_binder(TableClient, True).value, TableClientBinder)

    def test_declines_when_no_provider_matches(self):
        chain = CompositeTableBinderProvider([TableClientBinderProvider(), QueryableTableBinderProvider()])
        assert isinstance(chain.try_get_binder(list[Order], True), Optional.Nothing)

    def test_configuration_errors_stop_the_chain(self):
        class Fallback:
            called = False

            def try_get_binder(self, target_type, is_read_only):
                self.called = True
                return Optional.Some(TableClientBinder())

        fallback = Fallback()
        chain = CompositeTableBinderProvider([QueryableTableBinderProvider(), fallback])
        with pytest.raises(UnsupportedEntityTypeError):
            chain.try_get_binder(Queryable[NotAnEntity], True)

        assert not fallback.called


@pytest.mark.parametrize("create_table", [True, False])
def test_queryable_post_action_closes_service_client(provider, table_service, context, stored_entity, create_table):
    if create_table:
        table_service.add_table("Orders", stored_entity(PartitionKey="eu", RowKey="1"))

    bind_result = provider.try_get_binder(Queryable[Order], True).value.bind(context, Queryable[Order], "Orders")
    assert len(bind_result.result.to_list()) == (1 if create_table else 0)
    assert not table_service.closed

    bind_result.run_post_action()
    assert table_service.closed

"""
Lazy, read-only views over the entities in a table.

Parameters declared as Queryable[T] are bound to one of two producers that share the same interface: an
EmptyQueryable when the table doesn't exist and a TableQueryable that runs a live query when it does. Neither touches
storage until it is iterated, and every iteration issues a fresh query.

Queryables are immutable, the composition methods return new queryables:

    >>> recent = orders.where("Timestamp ge @since", since=yesterday).select("total").take(10)
    >>> for order in recent:
    ...     print(order.total)
"""
from abc import ABC, abstractmethod
from typing import Any, Iterator

from azure.data.tables import TableClient
from tramp.optionals import Optional

from jobhost.entities import entity_from_properties


class Queryable[T](ABC):
    """A lazily evaluated, read-only sequence of table entities of a single entity type."""
    def __init__(self, entity_type: type[T]):
        self.entity_type = entity_type

    def __iter__(self) -> Iterator[T]:
        for page in self.by_page():
            yield from page

    @abstractmethod
    def by_page(self) -> Iterator[list[T]]:
        """Iterates the results one page at a time. Each page is fetched when the iterator reaches it."""

    @abstractmethod
    def where(self, query_filter: str, **parameters: Any) -> "Queryable[T]":
        """Restricts the results with an OData filter. Filter parameters are referenced as @name in the filter and
        passed as keyword arguments. Multiple filters are combined with 'and'."""

    @abstractmethod
    def select(self, *properties: str) -> "Queryable[T]":
        """Restricts the properties that are fetched for each entity."""

    @abstractmethod
    def take(self, count: int) -> "Queryable[T]":
        """Limits the number of entities the queryable yields."""

    @abstractmethod
    def page_size(self, results_per_page: int) -> "Queryable[T]":
        """Sets how many entities are requested from the table service per round trip."""

    def first(self) -> Optional[T]:
        """Returns Some with the first entity or Nothing when there are no results."""
        for entity in self.take(1):
            return Optional.Some(entity)

        return Optional.Nothing()

    def to_list(self) -> list[T]:
        return list(self)

    def __repr__(self):
        return f"{type(self).__name__}[{self.entity_type.__name__}]()"


class EmptyQueryable[T](Queryable[T]):
    """A queryable that never yields anything and never issues storage requests."""
    def by_page(self) -> Iterator[list[T]]:
        return iter(())

    def where(self, query_filter: str, **parameters: Any) -> "EmptyQueryable[T]":
        return EmptyQueryable(self.entity_type)

    def select(self, *properties: str) -> "EmptyQueryable[T]":
        return EmptyQueryable(self.entity_type)

    def take(self, count: int) -> "EmptyQueryable[T]":
        _validate_count(count)
        return EmptyQueryable(self.entity_type)

    def page_size(self, results_per_page: int) -> "EmptyQueryable[T]":
        _validate_page_size(results_per_page)
        return EmptyQueryable(self.entity_type)


class TableQueryable[T](Queryable[T]):
    """A live query over every entity in a table, converted to the entity type as results arrive. Results that span
    multiple pages are fetched page by page as iteration reaches them."""
    def __init__(
        self,
        entity_type: type[T],
        table_client: TableClient,
        *,
        filters: tuple[str, ...] = (),
        parameters: dict[str, Any] | None = None,
        properties: tuple[str, ...] = (),
        limit: int | None = None,
        results_per_page: int | None = None,
    ):
        super().__init__(entity_type)
        self.table_client = table_client
        self.filters = filters
        self.parameters = dict(parameters or {})
        self.properties = properties
        self.limit = limit
        self.results_per_page = results_per_page

    @property
    def query_filter(self) -> str | None:
        match self.filters:
            case ():
                return None

            case (query_filter,):
                return query_filter

            case _:
                return " and ".join(f"({query_filter})" for query_filter in self.filters)

    def by_page(self) -> Iterator[list[T]]:
        remaining = self.limit
        if remaining == 0:
            return

        for page in self._execute().by_page():
            entities = [entity_from_properties(self.entity_type, properties) for properties in page]
            if remaining is not None:
                entities = entities[:remaining]
                remaining -= len(entities)

            if entities:
                yield entities

            if remaining == 0:
                return

    def where(self, query_filter: str, **parameters: Any) -> "TableQueryable[T]":
        for name, value in parameters.items():
            if name in self.parameters and self.parameters[name] != value:
                raise ValueError(f"Filter parameter @{name} is already bound to {self.parameters[name]!r}")

        return self._copy(filters=self.filters + (query_filter,), parameters=self.parameters | parameters)

    def select(self, *properties: str) -> "TableQueryable[T]":
        return self._copy(properties=self.properties + tuple(p for p in properties if p not in self.properties))

    def take(self, count: int) -> "TableQueryable[T]":
        _validate_count(count)
        limit = count if self.limit is None else min(count, self.limit)
        return self._copy(limit=limit)

    def page_size(self, results_per_page: int) -> "TableQueryable[T]":
        _validate_page_size(results_per_page)
        return self._copy(results_per_page=results_per_page)

    def _execute(self):
        kwargs = {}
        results_per_page = self.results_per_page
        if self.limit is not None:
            results_per_page = min(results_per_page or self.limit, self.limit)

        if results_per_page:
            kwargs["results_per_page"] = results_per_page

        if self.properties:
            kwargs["select"] = list(self.properties)

        if self.filters:
            return self.table_client.query_entities(self.query_filter, parameters=self.parameters, **kwargs)

        return self.table_client.list_entities(**kwargs)

    def _copy(self, **changes) -> "TableQueryable[T]":
        state = {
            "filters": self.filters,
            "parameters": self.parameters,
            "properties": self.properties,
            "limit": self.limit,
            "results_per_page": self.results_per_page,
        }
        return TableQueryable(self.entity_type, self.table_client, **(state | changes))

    def __repr__(self):
        return (
            f"{type(self).__name__}[{self.entity_type.__name__}](table={self.table_client.table_name!r}, "
            f"filter={self.query_filter!r}, limit={self.limit!r})"
        )


def _validate_count(count: int):
    if not isinstance(count, int) or isinstance(count, bool) or count < 0:
        raise ValueError(f"Expected a non-negative integer, got {count!r}")


def _validate_page_size(results_per_page: int):
    _validate_count(results_per_page)
    if results_per_page == 0:
        raise ValueError("Page size must be at least 1")

"""
Table parameter declarations and binding for job functions.

Job functions declare the tables they read by annotating parameters with a Table marker. When the function is called
through a BindingContext every table parameter that wasn't passed explicitly is bound by the registry's binders.

Example:
    >>> @table_function
    ... def count_orders(orders: BindTable[Queryable[Order], Table("Orders")]) -> int:
    ...     return sum(1 for _ in orders)
    >>>
    >>> count_orders.call_using(BindingContext.from_environment("count_orders"))

    Annotated works the same way:

    >>> def count_orders(orders: Annotated[Queryable[Order], Table("Orders")]) -> int:
    ...     ...
"""
import inspect
from dataclasses import dataclass
from functools import update_wrapper
from typing import Annotated, Any, Callable, get_args, get_origin, get_type_hints, overload

import jobhost.registries as r
from jobhost.binders import TableBinder
from jobhost.contexts import BindingContext
from jobhost.debug import create_debug_logger
from jobhost.hooks import Hook
from jobhost.results import BindResult

# Type alias for table parameters using Python 3.12+ syntax
type BindTable[T, Opts: object] = Annotated[T, Opts]


@dataclass(frozen=True)
class Table:
    """Marks a parameter as bound to the named table. Parameters are bound read only unless read_only is False."""
    name: str
    read_only: bool = True

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Table parameters must name a table")


@dataclass(frozen=True)
class TableParameter:
    name: str
    target_type: Any
    table: Table


def extract_table_info(annotation: Any) -> tuple[Any, Table | None]:
    """
    Extract the table marker from a type annotation.

    Args:
        annotation: Type annotation to analyze

    Returns:
        Tuple of (target_type, table) where table is None for parameters that aren't table bound
    """
    match get_origin(annotation):
        case origin if origin is BindTable:
            target_type, table = get_args(annotation)
            if not isinstance(table, Table):
                raise TypeError(f"BindTable expects a Table marker, got {table!r}")

            return target_type, table

        case origin if origin is Annotated:
            target_type, *metadata = get_args(annotation)
            for item in metadata:
                if isinstance(item, Table):
                    return target_type, item

    return annotation, None


def analyze_function_signature(func: Callable[..., Any]) -> dict[str, TableParameter]:
    """Finds the table bound parameters of a function, keyed by parameter name."""
    sig = inspect.signature(func)
    type_hints = get_type_hints(func, include_extras=True)
    parameters = {}
    for name, param in sig.parameters.items():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue

        target_type, table = extract_table_info(type_hints.get(name, param.annotation))
        if table is not None:
            parameters[name] = TableParameter(name, target_type, table)

    return parameters


class TableFunction:
    """Wraps a job function so its table parameters can be bound for an invocation. Calling the wrapper directly calls
    the function without binding anything."""

    def __init__(self, func: Callable[..., Any], *, registry: "r.Registry | None" = None):
        self._func = func
        self._registry = registry
        self._parameters: dict[str, TableParameter] | None = None
        update_wrapper(self, func)

    @property
    def parameters(self) -> dict[str, TableParameter]:
        if self._parameters is None:
            self._parameters = analyze_function_signature(self._func)

        return self._parameters

    def resolve_binders(self) -> dict[str, TableBinder]:
        """Resolves the binder for every table parameter. Configuration errors surface here, without needing an
        invocation, so hosts can validate job functions when they're registered."""
        registry = r.get_registry(self._registry)
        return {
            name: registry.get_binder(parameter.target_type, parameter.table.read_only)
            for name, parameter in self.parameters.items()
        }

    def call_using(self, context: BindingContext, /, *args, **kwargs):
        """Binds every table parameter that wasn't passed and calls the function. Post actions of the bind results run
        once the function has finished, even when it raises."""
        sig = inspect.signature(self._func)
        bound_args = sig.bind_partial(*args, **kwargs)
        bind_results = self._bind_missing_tables(context, bound_args)
        try:
            return self._func(*bound_args.args, **bound_args.kwargs)
        finally:
            for bind_result in bind_results:
                bind_result.run_post_action()

    def _bind_missing_tables(self, context: BindingContext, bound_args: inspect.BoundArguments) -> list[BindResult]:
        registry = r.get_registry(self._registry)
        debug = create_debug_logger(context.debug_mode)
        bind_results = []
        for name, parameter in self.parameters.items():
            if name in bound_args.arguments:
                continue

            binder = registry.get_binder(parameter.target_type, parameter.table.read_only)
            bind_result = binder.bind(context, parameter.target_type, parameter.table.name)
            bind_result = registry.hooks[Hook.BOUND_VALUE].filter(
                registry,
                bind_result,
                {
                    "context": context,
                    "parameter_name": name,
                    "table_name": parameter.table.name,
                    "target_type": parameter.target_type,
                },
            )
            debug.bound_value(name, parameter.table.name, bind_result.result)
            bound_args.arguments[name] = bind_result.result
            bind_results.append(bind_result)

        return bind_results

    def __call__(self, *args, **kwargs):
        return self._func(*args, **kwargs)

    def __repr__(self):
        return f"TableFunction({self._func!r})"


@overload
def table_function(func: Callable[..., Any]) -> TableFunction:
    ...


@overload
def table_function(*, registry: "r.Registry | None" = None) -> Callable[[Callable[..., Any]], TableFunction]:
    ...


def table_function(func=None, *, registry=None):
    """Decorator that wraps a job function in a TableFunction. It can be used bare or with a registry."""
    if func is None:
        return lambda f: TableFunction(f, registry=registry)

    return TableFunction(func, registry=registry)


def call(func: Callable[..., Any], context: BindingContext, /, *args, registry: "r.Registry | None" = None, **kwargs):
    """Binds the table parameters of any function and calls it."""
    table_func = func if isinstance(func, TableFunction) else TableFunction(func, registry=registry)
    return table_func.call_using(context, *args, **kwargs)

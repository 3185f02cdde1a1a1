from typing import Any, Iterable, overload

from tramp.optionals import Optional

import jobhost.hooks as hooks
from jobhost.binders import (
    CompositeTableBinderProvider, QueryableTableBinderProvider, TableBinder, TableBinderProvider,
    TableClientBinderProvider,
)
from jobhost.context_vars import get_global_registry, global_registry, GlobalContextMixin
from jobhost.debug import create_debug_logger
from jobhost.errors import NoBinderFoundError


def default_providers() -> list[TableBinderProvider]:
    return [QueryableTableBinderProvider(), TableClientBinderProvider()]


class Registry(GlobalContextMixin, var=global_registry):
    """Registries hold the binder providers and hooks used to bind table parameters. Binders found for a declared
    parameter type are cached so each distinct type is only resolved once per registry."""
    def __init__(self, providers: Iterable[TableBinderProvider] | None = None, *, debug_mode: bool | None = None):
        super().__init__()
        self.debug = create_debug_logger(debug_mode)
        self.hooks: dict[hooks.Hook, hooks.HookManager] = {hook: hooks.HookManager() for hook in hooks.Hook}
        self.provider_chain = CompositeTableBinderProvider(
            default_providers() if providers is None else providers, debug=self.debug
        )
        self.binders: dict[tuple[Any, bool], TableBinder] = {}

    @property
    def providers(self) -> list[TableBinderProvider]:
        return self.provider_chain.providers

    def add_provider(self, provider: TableBinderProvider, *, first: bool = False):
        """Adds a binder provider to the chain. Providers are asked in order, pass first=True to ask the provider
        before the providers that are already registered. Cached binders are dropped."""
        if first:
            self.providers.insert(0, provider)
        else:
            self.providers.append(provider)

        self.binders.clear()

    @overload
    def add_hook(self, hook: "hooks.HookWrapper"):
        ...

    @overload
    def add_hook(self, hook_type: "hooks.Hook", func: "hooks.HookFunction"):
        ...

    def add_hook(self, *args):
        """Adds a callback to a hook. If a HookWrapper is passed, the hook is added to the registry. If a Hook type and
        a callable are passed, the callable is added as a callback to the hook."""
        match args:
            case [hooks.Hook() as hook_type, func] if callable(func):
                self.hooks[hook_type].add_callback(func)

            case [hooks.HookWrapper(hook_type) as hook]:
                self.hooks[hook_type].add_callback(hook)

            case _:
                raise ValueError(f"Unexpected arguments to add_hook: {args}")

        self.binders.clear()

    def find_binder(self, target_type: Any, is_read_only: bool = True) -> Optional[TableBinder]:
        """Finds a binder for the target type. Hooks registered for RESOLVE_BINDER are given the first chance to supply
        one, then each provider is asked in order, and finally the UNSUPPORTED_TARGET_TYPE hooks. Returns Nothing when
        no binder is found. Configuration errors raised by providers propagate."""
        key = (target_type, is_read_only)
        if key in self.binders:
            self.debug.cached_binder(target_type, self.binders[key])
            return Optional.Some(self.binders[key])

        self.debug.resolving_binder(target_type, is_read_only)
        context = {"is_read_only": is_read_only}
        match self._resolve_binder(target_type, context):
            case Optional.Some(binder):
                binder = self.hooks[hooks.Hook.RESOLVED_BINDER].filter(self, binder, context | {"target_type": target_type})
                self.debug.resolved_binder(target_type, binder)
                self.binders[key] = binder
                return Optional.Some(binder)

            case _:
                return Optional.Nothing()

    def get_binder(self, target_type: Any, is_read_only: bool = True) -> TableBinder:
        """Gets a binder for the target type, raising NoBinderFoundError when no binder is found."""
        match self.find_binder(target_type, is_read_only):
            case Optional.Some(binder):
                return binder

            case _:
                raise NoBinderFoundError(target_type)

    def _resolve_binder(self, target_type: Any, context: dict[str, Any]) -> Optional[TableBinder]:
        match self.hooks[hooks.Hook.RESOLVE_BINDER].handle(self, target_type, context):
            case Optional.Some() as binder:
                return binder

        match self.provider_chain.try_get_binder(target_type, context["is_read_only"]):
            case Optional.Some() as binder:
                return binder

        return self.hooks[hooks.Hook.UNSUPPORTED_TARGET_TYPE].handle(self, target_type, context)


@overload
def get_registry(registry: Registry | None) -> Registry:
    ...


@overload
def get_registry() -> Registry:
    ...


def get_registry(*args) -> Registry:
    """Returns a registry. If a registry is passed, it is returned. If no registry is passed or None is passed, the
    global registry is returned. This creates a new global registry if it is needed and doesn't already exist."""
    match args:
        case [Registry() as registry]:
            return registry

        case [None]:
            return get_global_registry()

        case []:
            return get_global_registry()

        case _:
            raise ValueError(f"Unexpected arguments to get_registry: {args}")

import functools
from enum import Enum
from typing import Any, Callable, TYPE_CHECKING

from tramp.optionals import Optional

import jobhost.registries as r

if TYPE_CHECKING:
    from jobhost.registries import Registry

type HookFunction[T] = "Callable[[Registry, T, dict[str, Any]], Optional[Any]]"


class Hook(Enum):
    RESOLVE_BINDER = "resolve_binder"                    # Before the providers are asked for a binder
    RESOLVED_BINDER = "resolved_binder"                  # After a binder has been found
    UNSUPPORTED_TARGET_TYPE = "unsupported_target_type"  # When no provider binds the target type
    BOUND_VALUE = "bound_value"                          # After a binder produced a bind result


class HookManager:
    """A utility type that makes it easier to work with collections of functions waiting for the
    hook to be triggered. Callbacks run in the order they were added."""
    def __init__(self):
        self.callbacks: list[HookFunction] = []

    def add_callback(self, hook: HookFunction):
        """Adds a function that will be called when the hook is triggered."""
        if hook not in self.callbacks:
            self.callbacks.append(hook)

    def handle[T](self, registry: "Registry", value: T, context: dict[str, Any] | None = None) -> Optional[Any]:
        """Iterates each callback and returns the first result."""
        ctx = context or {}
        for callback in self.callbacks:
            match callback(registry, value, ctx):
                case Optional.Some() as v:
                    return v

        return Optional.Nothing()

    def filter[T](self, registry: "Registry", value: T, context: dict[str, Any] | None = None) -> T:
        """Iterates all callbacks and updates the value when a callback returns a Some result."""
        ctx = context or {}
        for callback in self.callbacks:
            match callback(registry, value, ctx):
                case Optional.Some(v):
                    value = v
                case Optional.Nothing():
                    pass

        return value


class HookWrapper[**P, R]:
    """Wraps a hook callback function to make it easier to register with a registry."""
    __match_args__ = ("hook_type",)

    def __init__(self, hook_type: Hook, func: Callable[P, R]):
        self.hook_type = hook_type
        self.func = func

        functools.update_wrapper(self, func)

    def __call__(self, registry: "Registry", value: Any, context: dict[str, Any] | None = None) -> Optional[R]:
        return self.func(registry, value, context or {})

    def register_hook(self, registry: "r.Registry | None" = None):
        """Adds the callback to a registry for the hook type."""
        registry = r.get_registry(registry)
        registry.add_hook(self)


class _HookDecoratorDescriptor:
    def __init__(self):
        self.hook_type: Optional[Hook] = Optional.Nothing()

    def __get__(self, instance, owner):
        match self.hook_type:
            case Optional.Some(hook_type):
                return HookDecorator(hook_type)

            case Optional.Nothing():
                raise ValueError("Hook type is not yet set. Accessed before owning class definition fully created.")

            case _:
                raise ValueError("Invalid value for hook type.")

    def __set_name__(self, owner, name):
        self.hook_type = Optional.Some(Hook[name])


class HookDecorator[**P, R]:
    """A decorator that wraps a function in a hook type to simplify adding to a registry. This class is aliased as
    "hooks" for convenience. It provides decorators for each hook type for even simpler syntax.

    Example:
        @hooks.BOUND_VALUE
        def log_bindings(registry: Registry, bind_result: BindResult, context: dict) -> Optional[BindResult]:
            print(context["table_name"], bind_result.result)
            return Optional.Nothing()
    """
    RESOLVE_BINDER = _HookDecoratorDescriptor()
    RESOLVED_BINDER = _HookDecoratorDescriptor()
    UNSUPPORTED_TARGET_TYPE = _HookDecoratorDescriptor()
    BOUND_VALUE = _HookDecoratorDescriptor()

    def __init__(self, hook_type: Hook):
        self.hook_type = hook_type

    def __call__(self, func: Callable[P, R]) -> HookWrapper[P, R]:
        return HookWrapper(self.hook_type, func)

    def __repr__(self):
        return f"HookDecorator({self.hook_type})"


hooks = HookDecorator

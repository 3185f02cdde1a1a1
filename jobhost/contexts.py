from dataclasses import dataclass, field

from jobhost.config import get_storage_connection_string, is_debug_enabled


@dataclass(frozen=True)
class BindingContext:
    """Everything a binder needs from the invocation that it is binding for."""
    account_connection_string: str = field(repr=False)
    function_name: str = ""
    debug_mode: bool = field(default_factory=is_debug_enabled)

    @classmethod
    def from_environment(cls, function_name: str = "") -> "BindingContext":
        """Creates a context using the connection string from the AzureWebJobsStorage environment variable."""
        return cls(get_storage_connection_string(), function_name=function_name)

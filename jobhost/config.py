"""Environment driven settings for the job host."""
import os

from jobhost.errors import StorageAccountError

STORAGE_CONNECTION_STRING_VARIABLE = "AzureWebJobsStorage"
GLOBAL_CONTEXT_VARIABLE = "JOBHOST_ENABLE_GLOBAL_CONTEXT"
DEBUG_VARIABLE = "JOBHOST_DEBUG"

yes_no_mapping = {
    "yes": True,
    "no": False,
    "true": True,
    "false": False,
    "1": True,
    "0": False,
    "y": True,
    "n": False,
}


def get_flag(name: str, default: bool) -> bool:
    """Reads a yes/no environment variable. Unset or unrecognized values fall back to the default."""
    var = os.getenv(name)
    if var is None:
        return default

    return yes_no_mapping.get(var.strip().casefold(), default)


def is_global_context_enabled() -> bool:
    """Returns True if the global context is enabled, False otherwise."""
    return get_flag(GLOBAL_CONTEXT_VARIABLE, True)


def is_debug_enabled() -> bool:
    """Returns True when debug output is turned on for bindings that don't set it explicitly."""
    return get_flag(DEBUG_VARIABLE, False)


def get_storage_connection_string(variable: str = STORAGE_CONNECTION_STRING_VARIABLE) -> str:
    """Gets the storage account connection string from the environment. Raises StorageAccountError when the variable
    is unset or empty."""
    connection_string = os.getenv(variable, "").strip()
    if not connection_string:
        raise StorageAccountError(
            f"No storage account connection string found, set the {variable} environment variable."
        )

    return connection_string

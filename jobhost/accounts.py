"""
Storage account resolution.

Connection strings are `key=value` pairs separated by semicolons, the same format the storage portal hands out:

    DefaultEndpointsProtocol=https;AccountName=orders;AccountKey=...;EndpointSuffix=core.windows.net

`UseDevelopmentStorage=true` resolves to the local storage emulator's well known account.
"""
from dataclasses import dataclass, field
from urllib.parse import urlsplit

from azure.data.tables import TableServiceClient

from jobhost.errors import StorageAccountError

DEVELOPMENT_ACCOUNT_NAME = "devstoreaccount1"
DEVELOPMENT_ACCOUNT_KEY = (
    "Eby8vdM02xNOcqFlqUwJPLlmEtlCDXJ1OUzFT50uSRZ6IFsuFq2UVErCz4I6tq/K1SZFPTOtr/KBHBeksoGMGw=="
)
DEVELOPMENT_TABLE_ENDPOINT = f"http://127.0.0.1:10002/{DEVELOPMENT_ACCOUNT_NAME}"
DEFAULT_ENDPOINT_SUFFIX = "core.windows.net"

_canonical_keys = {
    key.casefold(): key
    for key in (
        "DefaultEndpointsProtocol",
        "AccountName",
        "AccountKey",
        "SharedAccessSignature",
        "EndpointSuffix",
        "TableEndpoint",
        "UseDevelopmentStorage",
    )
}


@dataclass(frozen=True)
class StorageAccount:
    """A resolved storage account. Creating one never touches the network."""
    account_name: str
    table_endpoint: str
    connection_string: str = field(repr=False)

    def create_table_service_client(self) -> TableServiceClient:
        """Creates a table service client for the account. Clients are cheap and aren't shared between bindings."""
        return TableServiceClient.from_connection_string(self.connection_string)


def parse_connection_string(connection_string: str | None) -> dict[str, str]:
    """Splits a connection string into its settings. Known setting names are matched case insensitively and returned
    with their canonical casing, values may contain '=' (account keys usually do)."""
    if not connection_string or not connection_string.strip():
        raise StorageAccountError("A storage account connection string is required but none was given.")

    settings = {}
    for segment in connection_string.split(";"):
        if not segment.strip():
            continue

        name, sep, value = segment.partition("=")
        if not sep or not name.strip():
            raise StorageAccountError(
                f"Malformed storage account connection string, expected 'name=value' but found {segment.strip()!r}."
            )

        name = name.strip()
        settings[_canonical_keys.get(name.casefold(), name)] = value.strip()

    return settings


def get_account(connection_string: str | None) -> StorageAccount:
    """Resolves a storage account from a connection string, raising StorageAccountError when it is absent or doesn't
    describe an account."""
    settings = parse_connection_string(connection_string)
    if settings.get("UseDevelopmentStorage", "").casefold() == "true":
        return _development_account()

    account_name = settings.get("AccountName")
    if not account_name:
        raise StorageAccountError("Storage account connection string is missing the AccountName setting.")

    if not settings.get("AccountKey") and not settings.get("SharedAccessSignature"):
        raise StorageAccountError(
            f"Storage account connection string for {account_name!r} has neither an AccountKey nor a "
            "SharedAccessSignature."
        )

    table_endpoint = settings.get("TableEndpoint") or "{}://{}.table.{}".format(
        settings.get("DefaultEndpointsProtocol", "https"),
        account_name,
        settings.get("EndpointSuffix", DEFAULT_ENDPOINT_SUFFIX),
    )
    _validate_endpoint(account_name, table_endpoint)
    return StorageAccount(
        account_name=account_name,
        table_endpoint=table_endpoint,
        connection_string=_format_connection_string(settings | {"TableEndpoint": table_endpoint}),
    )


def table_exists(service_client: TableServiceClient, table_name: str) -> bool:
    """Checks if a table exists without creating it. Errors from the table service propagate to the caller."""
    tables = service_client.query_tables("TableName eq @name", parameters={"name": table_name})
    return any(True for _ in tables)


def _validate_endpoint(account_name: str, table_endpoint: str):
    url = urlsplit(table_endpoint)
    if url.scheme not in {"http", "https"} or not url.hostname:
        raise StorageAccountError(
            f"Storage account connection string for {account_name!r} has an invalid table endpoint {table_endpoint!r}."
        )


def _development_account() -> StorageAccount:
    settings = {
        "DefaultEndpointsProtocol": "http",
        "AccountName": DEVELOPMENT_ACCOUNT_NAME,
        "AccountKey": DEVELOPMENT_ACCOUNT_KEY,
        "TableEndpoint": DEVELOPMENT_TABLE_ENDPOINT,
    }
    return StorageAccount(
        account_name=DEVELOPMENT_ACCOUNT_NAME,
        table_endpoint=DEVELOPMENT_TABLE_ENDPOINT,
        connection_string=_format_connection_string(settings),
    )


def _format_connection_string(settings: dict[str, str]) -> str:
    return ";".join(f"{name}={value}" for name, value in settings.items())

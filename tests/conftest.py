import pytest

from jobhost.accounts import StorageAccount
from jobhost.contexts import BindingContext

CONNECTION_STRING = (
    "DefaultEndpointsProtocol=https;AccountName=jobhosttest;"
    "AccountKey=a2V5Zm9ydGVzdHM=;EndpointSuffix=core.windows.net"
)


class StoredEntity(dict):
    """Stands in for the entities the table service returns, a dict of properties with service metadata."""
    def __init__(self, *args, metadata=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.metadata = metadata or {}


class FakePaged:
    def __init__(self, table, results_per_page):
        self.table = table
        self.results_per_page = results_per_page or 1000

    def __iter__(self):
        for page in self.by_page():
            yield from page

    def by_page(self):
        entities = list(self.table.entities)
        for start in range(0, len(entities), self.results_per_page):
            self.table.page_requests += 1
            yield iter(entities[start:start + self.results_per_page])


class FakeTableClient:
    def __init__(self, table_name, service):
        self.table_name = table_name
        self.service = service
        self.queries = []
        self.closed = False

    @property
    def entities(self):
        return self.service.tables[self.table_name]

    @property
    def page_requests(self):
        return self.service.page_requests[self.table_name]

    @page_requests.setter
    def page_requests(self, value):
        self.service.page_requests[self.table_name] = value

    def list_entities(self, *, results_per_page=None, select=None):
        self.queries.append({"filter": None, "parameters": None, "select": select, "results_per_page": results_per_page})
        return FakePaged(self, results_per_page)

    def query_entities(self, query_filter, *, parameters=None, results_per_page=None, select=None):
        self.queries.append(
            {"filter": query_filter, "parameters": parameters, "select": select, "results_per_page": results_per_page}
        )
        return FakePaged(self, results_per_page)

    def close(self):
        self.closed = True


class FakeTableServiceClient:
    """An in memory table service that counts the requests made against it."""
    def __init__(self):
        self.tables: dict[str, list[StoredEntity]] = {}
        self.page_requests: dict[str, int] = {}
        self.existence_checks = 0
        self.table_clients: list[FakeTableClient] = []
        self.closed = False

    def add_table(self, name, *entities):
        self.tables[name] = list(entities)
        self.page_requests[name] = 0

    def query_tables(self, query_filter, *, parameters=None):
        assert query_filter == "TableName eq @name"
        self.existence_checks += 1
        return [{"name": parameters["name"]}] if parameters["name"] in self.tables else []

    def close(self):
        self.closed = True

    def get_table_client(self, table_name):
        client = FakeTableClient(table_name, self)
        self.table_clients.append(client)
        return client


@pytest.fixture
def table_service(monkeypatch):
    service = FakeTableServiceClient()
    monkeypatch.setattr(StorageAccount, "create_table_service_client", lambda self: service)
    return service


@pytest.fixture
def context():
    return BindingContext(CONNECTION_STRING, function_name="test_job", debug_mode=False)


@pytest.fixture
def stored_entity():
    return StoredEntity

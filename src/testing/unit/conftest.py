import pytest

from docquery import ClientConfig, DocumentClient
from testing.unit.fake_transport import FakeTransport


@pytest.fixture
def _transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def _client(_transport: FakeTransport):
    with DocumentClient(ClientConfig(project_id="P", database_id="DB"), _transport) as client:
        yield client


@pytest.fixture
def _coll(_client: DocumentClient):
    """The top-level collection 'C'."""
    return _client.collection("C")

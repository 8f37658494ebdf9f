import logging

import pytest

from docquery import (
    ClientConfig,
    CollectionRef,
    DocumentClient,
    DocumentRef,
    get_logger,
    name_key,
    new_delete,
    new_insert,
)
from docquery.errors import InvalidPathError, InvalidValueError, MultiError
from docquery.models.mutation import MutationResult
from testing.unit.fake_transport import READ_TIME, ROOT, FakeTransport, make_doc


@pytest.fixture
def _propagating_logger(monkeypatch):
    # Let caplog see the SDK records even if setup_sdk_logging() disabled propagation
    monkeypatch.setattr(get_logger(), "propagate", True)


def test_client_config_defaults():
    config = ClientConfig(project_id="P")
    assert config.database_id == "(default)"
    assert config.max_mutations_per_commit == 500
    assert config.root_path == "projects/P/databases/(default)/documents"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"project_id": ""},
        {"project_id": "a/b"},
        {"project_id": "P", "database_id": ""},
        {"project_id": "P", "max_mutations_per_commit": 0},
    ],
)
def test_client_config_invalid(kwargs):
    with pytest.raises(InvalidValueError):
        ClientConfig(**kwargs)


def test_references(_client):
    assert _client.root_path == ROOT
    assert _client.collection("C") == CollectionRef(parent_path=ROOT, collection_id="C")
    assert _client.collection("A/a/C") == CollectionRef(parent_path=f"{ROOT}/A/a", collection_id="C")
    assert _client.doc("C/d") == DocumentRef(f"{ROOT}/C/d")


@pytest.mark.parametrize("path", ["C/d", "", "C//x"])
def test_invalid_collection_path(_client, path):
    with pytest.raises(InvalidValueError):
        _client.collection(path)


@pytest.mark.parametrize("path", ["C", "C/d/S", "C//d"])
def test_invalid_document_path(_client, path):
    with pytest.raises(InvalidValueError):
        _client.doc(path)


def test_collection_group(_client):
    q = _client.collection_group("C")
    assert q.all_descendants
    assert q.parent_path == ROOT
    with pytest.raises(InvalidValueError):
        _client.collection_group("A/C")


def test_run_query(_client, _transport):
    _transport.documents = [make_doc("C/d1", a=1), make_doc("C/d2", a=2)]
    q = _client.collection("C").query().where("a", ">", 0)

    snaps = _client.run_query(q)

    assert [s.ref.id for s in snaps] == ["d1", "d2"]
    assert snaps[0].get("a") == 1
    assert snaps[0].read_time == READ_TIME
    assert _transport.requests == [q.to_run_query_request()]


def test_invalid_query_is_not_dispatched(_client, _transport):
    q = _client.collection("C").query().where("a*", "==", 1)
    with pytest.raises(InvalidPathError):
        _client.run_query(q)
    assert _transport.requests == []


def test_transport_error_is_logged_and_raised(_propagating_logger, caplog):
    transport = FakeTransport(fail_with=ConnectionError("unreachable"))
    client = DocumentClient(ClientConfig(project_id="P"), transport)

    with caplog.at_level(logging.ERROR, logger="docquery"):
        with pytest.raises(ConnectionError, match="unreachable"):
            client.run_query(client.collection("C").query())

    assert "unreachable" in caplog.text
    assert len(transport.requests) == 1
    client.close()


def test_run_aggregation(_transport):
    _transport.aggregates = FakeTransport(aggregates={"n": 3, "avg": 1.5}).aggregates
    with DocumentClient(ClientConfig(project_id="P", database_id="DB"), _transport) as client:
        agg = client.collection("C").query().new_aggregation_query().with_count("n").with_avg("x", "avg")
        assert client.run_aggregation(agg) == {"n": 3, "avg": 1.5}
    assert _transport.requests == [agg.to_wire()]


def test_mutate_splits_commits(_transport):
    config = ClientConfig(project_id="P", database_id="DB", max_mutations_per_commit=2)
    client = DocumentClient(config, _transport)
    muts = [new_insert(name_key("User", f"u{i}"), {"i": i}) for i in range(5)]

    results = client.mutate(*muts)

    assert [len(c) for c in _transport.commits] == [2, 2, 1]
    assert results == [MutationResult(version=1)] * 5
    client.close()


def test_mutate_dedups_deletes(_client, _transport):
    key = name_key("User", "alice")
    results = _client.mutate(new_delete(key), new_delete(key))
    assert len(results) == 1
    assert len(_transport.commits[0]) == 1


def test_invalid_batch_is_not_committed(_client, _transport):
    with pytest.raises(MultiError):
        _client.mutate(new_insert(name_key("User", "a"), {}), new_delete(None))
    assert _transport.commits == []


def test_context_manager_closes_transport():
    transport = FakeTransport()
    with DocumentClient(ClientConfig(project_id="P"), transport) as client:
        assert not transport.closed
    assert transport.closed

    with pytest.raises(RuntimeError, match="DocumentClient is closed"):
        client.run_query(client.collection("C").query())

import pytest

from docquery import DELETE_FIELD, DOCUMENT_ID, SERVER_TIMESTAMP, Asc, Desc, DistanceMeasure
from docquery.enum import FieldOperator
from docquery.errors import InvalidValueError, ScopeMismatchError
from docquery.models import Value, encode_value
from docquery.models.query import to_wire_query
from docquery.models.values import is_sentinel
from docquery.models.query.wire import (
    CollectionSelector,
    Cursor,
    FieldFilter,
    FieldReference,
    Filter,
    Order,
    Projection,
    RunQueryRequest,
    StructuredQuery,
)
from testing.unit.fake_transport import ROOT


def test_full_query_translation(_coll):
    q = (
        _coll.query()
        .select("a", "b")
        .where("a", ">", 5)
        .order_by("a", Desc)
        .offset(2)
        .limit(10)
        .start_at(7)
        .end_before(20)
    )
    want = StructuredQuery(
        select=Projection(fields=[FieldReference(field_path="a"), FieldReference(field_path="b")]),
        from_=[CollectionSelector(collection_id="C")],
        where=Filter(
            field_filter=FieldFilter(
                field=FieldReference(field_path="a"),
                op=FieldOperator.GREATER_THAN,
                value=Value(integer_value=5),
            )
        ),
        order_by=[Order(field=FieldReference(field_path="a"), direction=Desc)],
        start_at=Cursor(values=[Value(integer_value=7)], before=True),
        end_at=Cursor(values=[Value(integer_value=20)], before=True),
        offset=2,
        limit=10,
    )
    assert q.to_wire_query() == want


def test_run_query_request_envelope(_coll):
    req = _coll.query().where("a", "==", 1).to_run_query_request()
    assert isinstance(req, RunQueryRequest)
    assert req.parent == ROOT
    assert req.explain_options is None


@pytest.mark.parametrize(
    "method, before",
    [("start_at", True), ("start_after", False), ("end_at", False), ("end_before", True)],
)
def test_cursor_inclusivity(_coll, method, before):
    q = getattr(_coll.query().order_by("a"), method)(1)
    sq = q.to_wire_query()
    cursor = sq.start_at if method.startswith("start") else sq.end_at
    assert cursor == Cursor(values=[Value(integer_value=1)], before=before)


def test_last_cursor_call_per_endpoint_wins(_coll):
    sq = _coll.query().order_by("a").start_at(1).start_after(2).end_at(8).end_before(9).to_wire_query()
    assert sq.start_at == Cursor(values=[Value(integer_value=2)], before=False)
    assert sq.end_at == Cursor(values=[Value(integer_value=9)], before=True)


def test_document_id_cursor_values(_coll):
    sq = _coll.query().order_by(DOCUMENT_ID, Asc).start_after("foo").end_before("bar").to_wire_query()
    assert sq.start_at == Cursor(values=[Value.reference(f"{ROOT}/C/foo")], before=False)
    assert sq.end_at == Cursor(values=[Value.reference(f"{ROOT}/C/bar")], before=True)


def test_document_id_cursor_accepts_ref(_client, _coll):
    sq = _coll.query().order_by(DOCUMENT_ID).start_at(_client.doc("C/x")).to_wire_query()
    assert sq.start_at.values == [Value.reference(f"{ROOT}/C/x")]


@pytest.mark.parametrize("value", [7, "a/b", ""])
def test_document_id_cursor_invalid_values(_coll, value):
    with pytest.raises(InvalidValueError):
        _coll.query().order_by(DOCUMENT_ID).start_at(value).to_wire_query()


def test_document_id_cursor_ref_out_of_scope(_client, _coll):
    q = _coll.query().order_by(DOCUMENT_ID).end_at(_client.doc("D/x"))
    with pytest.raises(ScopeMismatchError):
        q.to_wire_query()


def test_collection_group_document_id_cursor(_client):
    sq = (
        _client.collection_group("C")
        .order_by(DOCUMENT_ID)
        .start_at("A/a/C/c")
        .to_wire_query()
    )
    assert sq.from_ == [CollectionSelector(collection_id="C", all_descendants=True)]
    assert sq.start_at.values == [Value.reference(f"{ROOT}/A/a/C/c")]

    with pytest.raises(InvalidValueError, match="must be a document path"):
        _client.collection_group("C").order_by(DOCUMENT_ID).start_at("c").to_wire_query()


@pytest.mark.parametrize(
    "build",
    [
        lambda q: q.start_at(1),
        lambda q: q.order_by("a").start_at(1, 2),
        lambda q: q.order_by("a").order_by("b").end_before(1),
    ],
)
def test_cursor_value_count_must_match_orders(_coll, build):
    with pytest.raises(InvalidValueError, match="order-by field"):
        build(_coll.query()).to_wire_query()


def test_cursor_sentinel_rejected(_coll):
    with pytest.raises(InvalidValueError):
        _coll.query().order_by("a").start_at(DELETE_FIELD).to_wire_query()


def _encode_sentinels_as_strings(value):
    if is_sentinel(value):
        return Value(string_value=repr(value))
    return encode_value(value)


@pytest.mark.parametrize(
    "build",
    [
        lambda q: q.where("x", "==", SERVER_TIMESTAMP),
        lambda q: q.where("x", "in", [1, DELETE_FIELD]),
        lambda q: q.where("m", "==", {"k": (SERVER_TIMESTAMP,)}),
        lambda q: q.order_by("a").start_at(DELETE_FIELD),
        lambda q: q.order_by("a").end_before([SERVER_TIMESTAMP]),
    ],
)
def test_sentinels_rejected_with_custom_encoder(_coll, build):
    """Write-only sentinels never reach the wire, even if the encoder would accept them."""
    with pytest.raises(InvalidValueError, match="write-only"):
        to_wire_query(build(_coll.query()), encoder=_encode_sentinels_as_strings)


def test_document_id_filter_scope(_client, _coll):
    # In scope
    _coll.query().where(DOCUMENT_ID, "==", _client.doc("C/x")).to_wire_query()
    _coll.query().where(DOCUMENT_ID, "in", [_client.doc("C/x"), _client.doc("C/y")]).to_wire_query()

    with pytest.raises(ScopeMismatchError):
        _coll.query().where(DOCUMENT_ID, "==", _client.doc("D/x")).to_wire_query()
    with pytest.raises(ScopeMismatchError):
        _coll.query().where(
            DOCUMENT_ID, "in", [_client.doc("C/x"), _client.doc("C/x/D/y")]
        ).to_wire_query()


def test_subcollection_query(_client):
    q = _client.collection("A/a/C").query()
    req = q.order_by(DOCUMENT_ID).start_at("d").to_run_query_request()
    assert req.parent == f"{ROOT}/A/a"
    assert req.structured_query.start_at.values == [Value.reference(f"{ROOT}/A/a/C/d")]


def test_find_nearest_excludes_orders_and_cursors(_coll):
    base = _coll.query().find_nearest("v", [1.0, 2.0], 3, DistanceMeasure.Euclidean)
    base.to_wire_query()
    with pytest.raises(InvalidValueError, match="find_nearest"):
        base.order_by("a").to_wire_query()
    with pytest.raises(InvalidValueError, match="find_nearest"):
        base.order_by("a").start_at(1).to_wire_query()

import pytest

from docquery import DOCUMENT_ID, Asc, Desc
from docquery.errors import (
    InvalidValueError,
    MissingFieldError,
    MixedCursorTypeError,
    ScopeMismatchError,
)
from docquery.models import Value
from docquery.models.query.wire import Cursor, FieldReference, Order
from testing.unit.fake_transport import ROOT, make_snap


def _orders(sq):
    return [(o.field.field_path, o.direction) for o in sq.order_by]


def test_snapshot_cursor_appends_document_id(_coll):
    """The identity is appended to the orders, in the last order's direction."""
    snap = make_snap("C/d1", a=3, b="x")
    sq = _coll.query().order_by("a").order_by("b", Desc).start_after(snap).to_wire_query()

    assert _orders(sq) == [("a", Asc), ("b", Desc), ("__name__", Desc)]
    assert sq.start_at == Cursor(
        values=[
            Value(integer_value=3),
            Value(string_value="x"),
            Value.reference(f"{ROOT}/C/d1"),
        ],
        before=False,
    )


def test_snapshot_cursor_without_orders_uses_inequality_field(_coll):
    snap = make_snap("C/d1", b=5)
    sq = _coll.query().where("a", "==", 1).where("b", ">", 1).start_at(snap).to_wire_query()

    assert _orders(sq) == [("b", Asc), ("__name__", Asc)]
    assert sq.start_at == Cursor(
        values=[Value(integer_value=5), Value.reference(f"{ROOT}/C/d1")], before=True
    )


def test_snapshot_cursor_without_orders_or_inequality(_coll):
    snap = make_snap("C/d1", a=1)
    sq = _coll.query().where("a", "==", 1).end_at(snap).to_wire_query()

    assert sq.order_by == [Order(field=FieldReference(field_path="__name__"), direction=Asc)]
    assert sq.end_at == Cursor(values=[Value.reference(f"{ROOT}/C/d1")], before=False)


def test_snapshot_cursor_keeps_explicit_document_id_order(_coll):
    snap = make_snap("C/d1", a=1)
    sq = _coll.query().order_by(DOCUMENT_ID, Desc).order_by("a").start_at(snap).to_wire_query()
    assert _orders(sq) == [("__name__", Desc), ("a", Asc)]


def test_literal_cursor_does_not_complete_orders(_coll):
    sq = _coll.query().order_by("a", Desc).start_at(1).to_wire_query()
    assert _orders(sq) == [("a", Desc)]


def test_snapshot_cursor_nested_field(_coll):
    snap = make_snap("C/d1", foo={"bar": 2})
    sq = _coll.query().order_by("foo.bar").start_at(snap).to_wire_query()
    assert sq.start_at.values[0] == Value(integer_value=2)


def test_snapshot_cursor_missing_field(_coll):
    snap = make_snap("C/d1", a=1)
    with pytest.raises(MissingFieldError, match="'zz'"):
        _coll.query().order_by("zz").start_at(snap).to_wire_query()


def test_mixed_cursor_types(_coll):
    snap = make_snap("C/d1", a=1)
    with pytest.raises(MixedCursorTypeError):
        _coll.query().order_by("a").start_at(snap).end_at(5).to_wire_query()
    with pytest.raises(MixedCursorTypeError):
        _coll.query().order_by("a").start_at(5).end_at(snap).to_wire_query()


def test_snapshot_both_endpoints(_coll):
    first = make_snap("C/d1", a=1)
    last = make_snap("C/d9", a=9)
    sq = _coll.query().order_by("a").start_at(first).end_at(last).to_wire_query()
    assert sq.start_at.values[-1] == Value.reference(f"{ROOT}/C/d1")
    assert sq.end_at.values[-1] == Value.reference(f"{ROOT}/C/d9")


def test_snapshot_out_of_collection_scope(_client):
    snap = make_snap("C/d1", a=1)
    q = _client.collection("A/a/C").query().order_by("a").start_at(snap)
    with pytest.raises(ScopeMismatchError):
        q.to_wire_query()


def test_collection_group_snapshot_scope(_client):
    snap = make_snap("A/a/C/d1", a=1)
    sq = _client.collection_group("C").order_by("a").start_after(snap).to_wire_query()
    assert sq.start_at.values == [Value(integer_value=1), Value.reference(f"{ROOT}/A/a/C/d1")]


def test_snapshot_must_be_the_only_argument(_coll):
    snap = make_snap("C/d1", a=1)
    q = _coll.query().order_by("a").order_by("b").start_at(snap, 2)
    with pytest.raises(InvalidValueError, match="only cursor argument"):
        q.to_wire_query()

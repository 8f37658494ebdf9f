import pytest

from docquery import DocumentRef, DocumentSnapshot
from docquery.models import Document, Value, encode_value
from testing.unit.fake_transport import READ_TIME, ROOT, make_snap


def test_snapshot_values():
    snap = make_snap("C/d1", a=1, address={"city": "Rome"})
    assert snap.get("a") == 1
    assert snap.get("address.city") == "Rome"
    assert snap.get(["address", "city"]) == "Rome"
    assert snap.value_at(("address", "zip")) is None
    assert snap.to_dict() == {"a": 1, "address": {"city": "Rome"}}


def test_snapshot_document_id():
    snap = make_snap("C/d1")
    assert snap.value_at(("__name__",)) == Value.reference(f"{ROOT}/C/d1")
    assert snap.get("__name__") == DocumentRef(f"{ROOT}/C/d1")


def test_snapshot_missing_field():
    with pytest.raises(KeyError):
        make_snap("C/d1", a=1).get("b")


def test_snapshot_from_wire():
    doc = Document(name=f"{ROOT}/C/d1", fields={"a": encode_value(1)}, create_time=READ_TIME)
    snap = DocumentSnapshot.from_wire(doc, read_time=READ_TIME)
    assert snap.ref.id == "d1"
    assert snap.ref.collection_id == "C"
    assert snap.exists
    assert snap.read_time == READ_TIME


def test_references():
    ref = DocumentRef(f"{ROOT}/C/d1")
    assert ref.parent_path == f"{ROOT}/C"
    sub = ref.collection("S")
    assert sub.path == f"{ROOT}/C/d1/S"
    assert sub.doc("x") == DocumentRef(f"{ROOT}/C/d1/S/x")
    assert sub.query().path == sub.path

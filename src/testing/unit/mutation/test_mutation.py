from dataclasses import dataclass

import pydantic
import pytest

from docquery import (
    SERVER_TIMESTAMP,
    Key,
    MutationOperation,
    id_key,
    incomplete_key,
    name_key,
    new_delete,
    new_insert,
    new_update,
    new_upsert,
    to_wire_mutations,
)
from docquery.errors import EncodingError, IncompleteKeyError, InvalidKeyError, MultiError
from docquery.models import Value
from docquery.models.mutation import Entity, WireMutation


def test_insert_encodes_entity():
    key = name_key("User", "alice")
    m = new_insert(key, {"age": 31, "name": "Alice"})
    assert m.err is None
    assert m.operation == MutationOperation.Insert
    assert m.wire == WireMutation(
        insert=Entity(
            key=key.to_wire(),
            properties={"age": Value(integer_value=31), "name": Value(string_value="Alice")},
        )
    )


def test_upsert_and_update_members():
    key = name_key("User", "alice")
    assert new_upsert(key, {}).wire.upsert is not None
    assert new_update(key, {}).wire.update is not None


def test_delete_does_not_encode():
    key = name_key("User", "alice")
    m = new_delete(key)
    assert m.is_delete()
    assert m.wire == WireMutation(delete=key.to_wire())


def test_supported_entity_sources():
    @dataclass
    class Point:
        x: int
        y: int

    class Item(pydantic.BaseModel):
        sku: str
        qty: int

    key = name_key("K", "k")
    assert new_insert(key, Point(1, 2)).wire.insert.properties["y"] == Value(integer_value=2)
    assert new_insert(key, Item(sku="a", qty=3)).wire.insert.properties["sku"] == Value(
        string_value="a"
    )


def test_insert_accepts_incomplete_key():
    assert new_insert(incomplete_key("User"), {"a": 1}).err is None
    assert new_upsert(incomplete_key("User"), {"a": 1}).err is None


@pytest.mark.parametrize("build", [lambda k: new_update(k, {"a": 1}), new_delete])
def test_incomplete_key_rejected(build):
    m = build(incomplete_key("User"))
    assert isinstance(m.err, IncompleteKeyError)
    assert isinstance(m.err, InvalidKeyError)
    assert m.wire is None


@pytest.mark.parametrize(
    "key",
    [None, Key(kind=""), Key(kind="User", name="a", id=1), "User/alice"],
)
def test_invalid_key(key):
    for m in (new_insert(key, {}), new_upsert(key, {}), new_update(key, {}), new_delete(key)):
        assert isinstance(m.err, InvalidKeyError)
        assert not isinstance(m.err, IncompleteKeyError)


def test_encoding_errors_are_wrapped():
    key = name_key("User", "alice")
    assert isinstance(new_insert(key, 42).err, EncodingError)
    assert isinstance(new_insert(key, {"when": SERVER_TIMESTAMP}).err, EncodingError)
    assert isinstance(new_insert(key, {1: "a"}).err, EncodingError)

    def failing_encoder(key, src):
        raise RuntimeError("boom")

    err = new_upsert(key, {}, encoder=failing_encoder).err
    assert isinstance(err, EncodingError)
    assert "boom" in str(err)


def test_batch_collapses_repeated_deletes():
    k1 = name_key("User", "alice")
    k2 = name_key("User", "bob")
    muts = [new_delete(k1), new_delete(k1), new_delete(Key(kind="User", name="alice")), new_delete(k2)]
    got = to_wire_mutations(muts)
    assert got == [WireMutation(delete=k1.to_wire()), WireMutation(delete=k2.to_wire())]


@pytest.mark.parametrize(
    "k1, k2",
    [
        (name_key("K", "42"), id_key("K", 42)),
        (name_key("K", "a"), Key(kind="K", name="a", namespace="other")),
        (id_key("K", 1, parent=name_key("P", "x")), id_key("K", 1, parent=id_key("P", 7))),
    ],
)
def test_batch_keeps_deletes_of_distinct_keys(k1, k2):
    """Keys differing in namespace, ancestry or name-versus-id are not duplicates."""
    got = to_wire_mutations([new_delete(k1), new_delete(k2)])
    assert got == [WireMutation(delete=k1.to_wire()), WireMutation(delete=k2.to_wire())]


def test_batch_keeps_repeated_writes():
    key = name_key("User", "alice")
    muts = [new_upsert(key, {"a": 1}), new_upsert(key, {"a": 1}), new_insert(key, {"a": 2})]
    assert len(to_wire_mutations(muts)) == 3


def test_batch_preserves_order():
    k1 = name_key("User", "alice")
    k2 = name_key("User", "bob")
    muts = [new_delete(k2), new_insert(k1, {}), new_delete(k2), new_update(k1, {})]
    got = to_wire_mutations(muts)
    assert got == [muts[0].wire, muts[1].wire, muts[3].wire]


def test_batch_aggregates_errors_by_position():
    """One valid and one invalid mutation: one error slot, at the original index."""
    good = new_insert(name_key("User", "alice"), {"a": 1})
    bad = new_delete(Key(kind=""))
    with pytest.raises(MultiError) as exc_info:
        to_wire_mutations([good, bad])

    merr = exc_info.value
    assert len(merr) == 2
    assert merr[0] is None
    assert isinstance(merr[1], InvalidKeyError)


def test_batch_reports_every_error():
    muts = [
        new_delete(Key(kind="")),
        new_insert(name_key("User", "a"), {}),
        new_update(incomplete_key("User"), {}),
        new_insert(name_key("User", "b"), 42),
    ]
    with pytest.raises(MultiError, match=r"\(and 2 other errors\)") as exc_info:
        to_wire_mutations(muts)
    assert [e is not None for e in exc_info.value] == [True, False, True, True]


def test_empty_batch():
    assert to_wire_mutations([]) == []

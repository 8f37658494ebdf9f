"""
Mutation Model.

A [`Mutation`][docquery.models.mutation.mutation.Mutation] describes one
write (insert, upsert, update or delete) of an entity. Constructors never
raise: an invalid key or an encoding failure is stored on the mutation and
reported, together with the failures of the other mutations in the batch, by
[`to_wire_mutations`][docquery.models.mutation.mutation.to_wire_mutations].

Example:
    ```python
    from docquery import name_key, new_insert, new_delete, to_wire_mutations

    muts = [
        new_insert(name_key("User", "alice"), {"age": 31}),
        new_delete(name_key("User", "bob")),
    ]
    wire_muts = to_wire_mutations(muts)  # raises MultiError if any is invalid
    ```
"""

from typing import Any, List, Optional, Sequence

from ...enum import MutationOperation
from ...errors import EncodingError, IncompleteKeyError, InvalidKeyError, MultiError
from ...logging_config import get_logger
from ..protocols import EntityEncoderProtocol
from .entity import encode_entity
from .key import Key
from .wire import WireMutation

# Set the hierarchical logger
logger = get_logger(__name__)


class Mutation:
    """
    An immutable write descriptor.

    Attributes:
        key: The target key (None if the key was rejected).
        operation: The kind of write.
        wire: The wire mutation (None if the mutation is invalid).
        err: The sticky error, if the mutation is invalid.
    """

    __slots__ = ("_key", "_operation", "_wire", "_err")

    def __init__(
        self,
        operation: MutationOperation,
        key: Optional[Key] = None,
        wire: Optional[WireMutation] = None,
        err: Optional[Exception] = None,
    ):
        self._operation = operation
        self._key = key
        self._wire = wire
        self._err = err

    @property
    def key(self) -> Optional[Key]:
        return self._key

    @property
    def operation(self) -> MutationOperation:
        return self._operation

    @property
    def wire(self) -> Optional[WireMutation]:
        return self._wire

    @property
    def err(self) -> Optional[Exception]:
        return self._err

    def is_delete(self) -> bool:
        return self._operation == MutationOperation.Delete

    def __repr__(self) -> str:
        return f"Mutation({self._operation.name}, key={self._key}, err={self._err!r})"


def _check_key(key: Any, op: MutationOperation, require_complete: bool) -> None:
    if not isinstance(key, Key) or not key.valid():
        raise InvalidKeyError(f"invalid key: {key!r}")
    if require_complete and key.incomplete():
        raise IncompleteKeyError(
            f"can't {op.name.lower()} the incomplete key: {key}"
        )


def _new_write(
    op: MutationOperation,
    key: Key,
    src: Any,
    encoder: EntityEncoderProtocol,
    require_complete: bool,
) -> Mutation:
    try:
        _check_key(key, op, require_complete)
    except InvalidKeyError as e:
        return Mutation(op, err=e)
    try:
        entity = encoder(key, src)
    except EncodingError as e:
        return Mutation(op, key=key, err=e)
    except Exception as e:
        err = EncodingError(f"entity encoder failed for key {key}, err: '{e}'")
        err.__cause__ = e
        return Mutation(op, key=key, err=err)
    member = {
        MutationOperation.Insert: "insert",
        MutationOperation.Upsert: "upsert",
        MutationOperation.Update: "update",
    }[op]
    return Mutation(op, key=key, wire=WireMutation(**{member: entity}))


def new_insert(key: Key, src: Any, encoder: EntityEncoderProtocol = encode_entity) -> Mutation:
    """
    Creates a mutation saving `src` under `key`. The write fails on the
    backend if the entity already exists. `key` may be incomplete.
    """
    return _new_write(MutationOperation.Insert, key, src, encoder, require_complete=False)


def new_upsert(key: Key, src: Any, encoder: EntityEncoderProtocol = encode_entity) -> Mutation:
    """Creates a mutation saving `src` under `key`, whether or not the entity exists."""
    return _new_write(MutationOperation.Upsert, key, src, encoder, require_complete=False)


def new_update(key: Key, src: Any, encoder: EntityEncoderProtocol = encode_entity) -> Mutation:
    """
    Creates a mutation replacing the entity under `key`. The write fails on
    the backend if the entity does not exist. `key` must be complete.
    """
    return _new_write(MutationOperation.Update, key, src, encoder, require_complete=True)


def new_delete(key: Key) -> Mutation:
    """Creates a mutation deleting the entity under `key`, which must be complete."""
    op = MutationOperation.Delete
    try:
        _check_key(key, op, require_complete=True)
    except InvalidKeyError as e:
        return Mutation(op, err=e)
    return Mutation(op, key=key, wire=WireMutation(delete=key.to_wire()))


def to_wire_mutations(mutations: Sequence[Mutation]) -> List[WireMutation]:
    """
    Assembles a batch of mutations into their wire form, in order.

    Repeated deletes of the same key (same namespace and path, with names and
    numeric ids told apart) are collapsed to the first occurrence; repeated
    inserts, updates and upserts are kept.

    Raises:
        MultiError: If any mutation is invalid. The error has one slot per
            input mutation (`None` for the valid ones) and nothing is emitted.
    """
    errors = [m.err for m in mutations]
    if any(e is not None for e in errors):
        raise MultiError(errors)

    wire_mutations: List[WireMutation] = []
    seen_deletes = set()
    for idx, m in enumerate(mutations):
        if m.is_delete():
            if m.key in seen_deletes:
                logger.debug(f"Dropping duplicate delete of key '{m.key}' (mutation #{idx})")
                continue
            seen_deletes.add(m.key)
        wire_mutations.append(m.wire)
    return wire_mutations

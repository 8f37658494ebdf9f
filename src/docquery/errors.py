"""
Exception hierarchy of the docquery SDK.

Builder methods never raise: an invalid argument is recorded on the returned
value and surfaces as one of these exceptions when the value is translated to
its wire form (or dispatched by the [`DocumentClient`][docquery.comm.DocumentClient]).
"""

from typing import Iterator, List, Optional, Sequence


class DocQueryError(ValueError):
    """Base class for every error raised by the SDK."""


class InvalidKeyError(DocQueryError):
    """Raised when a mutation key is structurally invalid."""


class IncompleteKeyError(InvalidKeyError):
    """Raised when an update or delete targets a key without a final id or name."""


class InvalidPathError(DocQueryError):
    """Raised for an empty or malformed field path."""


class InvalidFilterError(DocQueryError):
    """Raised when a filter uses an unknown operator or has no children."""


class UnsupportedFilterError(InvalidFilterError):
    """Raised for comparisons the wire protocol cannot express (e.g. `!=` against null or NaN)."""


class InvalidOptionError(DocQueryError):
    """Raised when a run option is `None` or of an unknown type."""


class DuplicateOptionError(InvalidOptionError):
    """Raised when a set-once run option is specified more than once."""


class MissingCollectionError(DocQueryError):
    """Raised when a query has no collection id."""


class MissingFieldError(DocQueryError):
    """Raised when an order-by field is absent from a document snapshot."""


class MixedCursorTypeError(DocQueryError):
    """Raised when one cursor endpoint uses a snapshot and the other literal values."""


class ScopeMismatchError(DocQueryError):
    """Raised when a document reference does not belong to the queried collection."""


class InvalidValueError(DocQueryError):
    """Raised for values that are meaningless in their context (e.g. write sentinels in a read query)."""


class EncodingError(DocQueryError):
    """Raised when an application value cannot be encoded into a wire value."""


class MultiError(DocQueryError):
    """
    Positional aggregate of the errors found in a batch.

    The error holds exactly one slot per input item; slots are `None` where
    the corresponding item was valid, so callers can map every failure back to
    the input that produced it.

    Example:
        ```python
        try:
            to_wire_mutations(mutations)
        except MultiError as merr:
            for idx, err in enumerate(merr):
                if err is not None:
                    print(f"mutation #{idx} failed: {err}")
        ```
    """

    def __init__(self, errors: Sequence[Optional[BaseException]]):
        self.errors: List[Optional[BaseException]] = list(errors)
        super().__init__(self._message())

    def _message(self) -> str:
        failed = [e for e in self.errors if e is not None]
        if not failed:
            return "(0 errors)"
        if len(failed) == 1:
            return str(failed[0])
        if len(failed) == 2:
            return f"{failed[0]} (and 1 other error)"
        return f"{failed[0]} (and {len(failed) - 1} other errors)"

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self) -> Iterator[Optional[BaseException]]:
        return iter(self.errors)

    def __getitem__(self, index: int) -> Optional[BaseException]:
        return self.errors[index]

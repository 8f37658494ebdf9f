"""
docquery - Python SDK for structured document-database queries and mutations.

This module provides the main entry points:

- **DocumentClient**: The dispatch façade, bound to a transport.
- **Query**: The immutable, fluent query builder.
- **Mutations**: Insert/upsert/update/delete descriptors and batch assembly.

Example:
    >>> from docquery import DocumentClient, ClientConfig, Desc
    >>> with DocumentClient(ClientConfig(project_id="P"), transport) as client:
    ...     q = client.collection("cities").query().where("pop", ">", 1000).order_by("pop", Desc)
    ...     snaps = client.run_query(q)
"""

# --- Client ---
from .comm import DocumentClient as DocumentClient, ClientConfig as ClientConfig

# --- References & Values ---
from .models import (
    CollectionRef as CollectionRef,
    DocumentRef as DocumentRef,
    Document as Document,
    DocumentSnapshot as DocumentSnapshot,
    Value as Value,
    Vector as Vector,
    GeoPoint as GeoPoint,
    SERVER_TIMESTAMP as SERVER_TIMESTAMP,
    DELETE_FIELD as DELETE_FIELD,
)
from .helpers import DOCUMENT_ID as DOCUMENT_ID

# --- Query ---
from .models.query import (
    Query as Query,
    AggregationQuery as AggregationQuery,
    PropertyFilter as PropertyFilter,
    PropertyPathFilter as PropertyPathFilter,
    AndFilter as AndFilter,
    OrFilter as OrFilter,
    ExplainOptions as ExplainOptions,
    sort_snapshots as sort_snapshots,
    merge_sorted as merge_sorted,
)

# --- Mutations ---
from .models.mutation import (
    Key as Key,
    name_key as name_key,
    id_key as id_key,
    incomplete_key as incomplete_key,
    Mutation as Mutation,
    new_insert as new_insert,
    new_upsert as new_upsert,
    new_update as new_update,
    new_delete as new_delete,
    to_wire_mutations as to_wire_mutations,
)

# --- Enums ---
from .enum import (
    Direction as Direction,
    Asc as Asc,
    Desc as Desc,
    DistanceMeasure as DistanceMeasure,
    MutationOperation as MutationOperation,
)

# --- Errors ---
from .errors import (
    DocQueryError as DocQueryError,
    InvalidKeyError as InvalidKeyError,
    IncompleteKeyError as IncompleteKeyError,
    InvalidPathError as InvalidPathError,
    InvalidFilterError as InvalidFilterError,
    UnsupportedFilterError as UnsupportedFilterError,
    InvalidOptionError as InvalidOptionError,
    DuplicateOptionError as DuplicateOptionError,
    MissingCollectionError as MissingCollectionError,
    MissingFieldError as MissingFieldError,
    MixedCursorTypeError as MixedCursorTypeError,
    ScopeMismatchError as ScopeMismatchError,
    InvalidValueError as InvalidValueError,
    EncodingError as EncodingError,
    MultiError as MultiError,
)

from .logging_config import (
    get_logger as get_logger,
    set_subsystem_level as set_subsystem_level,
    setup_sdk_logging as setup_sdk_logging,
)

__all__ = [
    # Client
    "DocumentClient",
    "ClientConfig",
    # Logging
    "get_logger",
    "set_subsystem_level",
    "setup_sdk_logging",
    # References & Values
    "CollectionRef",
    "DocumentRef",
    "Document",
    "DocumentSnapshot",
    "Value",
    "Vector",
    "GeoPoint",
    "SERVER_TIMESTAMP",
    "DELETE_FIELD",
    "DOCUMENT_ID",
    # Query
    "Query",
    "AggregationQuery",
    "PropertyFilter",
    "PropertyPathFilter",
    "AndFilter",
    "OrFilter",
    "ExplainOptions",
    "sort_snapshots",
    "merge_sorted",
    # Mutations
    "Key",
    "name_key",
    "id_key",
    "incomplete_key",
    "Mutation",
    "new_insert",
    "new_upsert",
    "new_update",
    "new_delete",
    "to_wire_mutations",
    # Enums
    "Direction",
    "Asc",
    "Desc",
    "DistanceMeasure",
    "MutationOperation",
    # Errors
    "DocQueryError",
    "InvalidKeyError",
    "IncompleteKeyError",
    "InvalidPathError",
    "InvalidFilterError",
    "UnsupportedFilterError",
    "InvalidOptionError",
    "DuplicateOptionError",
    "MissingCollectionError",
    "MissingFieldError",
    "MixedCursorTypeError",
    "ScopeMismatchError",
    "InvalidValueError",
    "EncodingError",
    "MultiError",
]


# --- Set up the top-level logger for the SDK ---

from logging import NullHandler

_sdk_logger = get_logger()
_sdk_logger.addHandler(NullHandler())

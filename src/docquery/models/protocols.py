from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Protocol, Tuple
from datetime import datetime

if TYPE_CHECKING:
    from .values import Value
    from .snapshot import Document
    from .query.wire import RunAggregationQueryRequest, RunQueryRequest
    from .mutation.wire import Entity, MutationResult, WireMutation
    from .mutation.key import Key


class ValueEncoderProtocol(Protocol):
    """
    Structural protocol of the collaborator turning an application value into
    a wire value.

    The default implementation is [`encode_value`][docquery.models.values.encode_value].
    Implementations raise [`InvalidValueError`][docquery.errors.InvalidValueError]
    for write-only sentinels and [`EncodingError`][docquery.errors.EncodingError]
    for unsupported values.
    """

    def __call__(self, value: Any) -> "Value": ...


class EntityEncoderProtocol(Protocol):
    """
    Structural protocol of the collaborator turning an application object into
    a full wire entity for a mutation.

    The default implementation is [`encode_entity`][docquery.models.mutation.entity.encode_entity].
    """

    def __call__(self, key: "Key", src: Any) -> "Entity": ...


class TransportProtocol(Protocol):
    """
    Structural protocol for the network layer the
    [`DocumentClient`][docquery.comm.DocumentClient] dispatches to.

    The SDK only builds and validates requests: sending them, authentication,
    retries and streaming are the transport's business.
    """

    def run_query(
        self, request: "RunQueryRequest"
    ) -> Iterable[Tuple["Document", Optional[datetime]]]:
        """Sends a structured query and yields `(document, read_time)` pairs."""
        ...

    def run_aggregation_query(
        self, request: "RunAggregationQueryRequest"
    ) -> Dict[str, "Value"]:
        """Sends an aggregation query and returns the aggregate values by alias."""
        ...

    def commit(self, mutations: List["WireMutation"]) -> List["MutationResult"]:
        """Applies a batch of mutations and returns one result per mutation."""
        ...

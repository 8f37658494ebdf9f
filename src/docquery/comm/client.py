"""
Document Client Entry Point.

This module provides the [`DocumentClient`][docquery.comm.DocumentClient], the
thin façade application code uses to obtain references and queries and to
dispatch them. Queries and mutations are validated and translated here,
immediately before being handed to the transport collaborator.
"""

from typing import Any, Dict, List, Optional, Type

from ..errors import InvalidValueError
from ..logging_config import get_logger
from ..models.mutation import Mutation, MutationResult, to_wire_mutations
from ..models.protocols import TransportProtocol
from ..models.query import AggregationQuery, Query
from ..models.reference import CollectionRef, DocumentRef, split_path
from ..models.snapshot import DocumentSnapshot
from ..models.values import decode_value
from .config import ClientConfig

# Set the hierarchical logger
logger = get_logger(__name__)


class DocumentClient:
    """
    The gateway to a document database.

    The client owns no connection itself: network I/O, authentication and
    retries are delegated to the `transport`, any object implementing
    [`TransportProtocol`][docquery.models.protocols.TransportProtocol].

    Tip: Context Manager Usage
        The `DocumentClient` is best used as a context manager, so that the
        transport is released when the block exits.

        ```python
        from docquery import DocumentClient, ClientConfig

        with DocumentClient(ClientConfig(project_id="P"), transport) as client:
            snaps = client.run_query(client.collection("cities").query().limit(5))
        ```
    """

    def __init__(self, config: ClientConfig, transport: TransportProtocol):
        self._config = config
        """The client configuration"""
        self._transport = transport
        """The transport collaborator requests are dispatched to"""
        self._closed = False

    # --- Context Manager Protocol ---

    def __enter__(self) -> "DocumentClient":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[Any],
    ) -> None:
        """
        Context manager exit point. Ensures the transport is released.

        Exceptions raised within the `with` block are propagated.
        """
        try:
            self.close()
        except Exception as e:
            logger.error(
                f"Error releasing resources allocated from DocumentClient.\nInner err: '{e}'"
            )

    def close(self):
        """Releases the transport (if it exposes a `close()` method). Idempotent."""
        if self._closed:
            return
        self._closed = True
        close = getattr(self._transport, "close", None)
        if callable(close):
            close()
        logger.debug("DocumentClient closed")

    def _check_open(self):
        if self._closed:
            raise RuntimeError("DocumentClient is closed")

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def root_path(self) -> str:
        """The documents root path of the configured database."""
        return self._config.root_path

    # --- References ---

    def collection(self, path: str) -> CollectionRef:
        """
        Returns a reference to the collection at `path`, relative to the
        database root (e.g. `"users"` or `"users/alice/orders"`).

        Raises:
            InvalidValueError: If `path` does not address a collection.
        """
        segments = split_path(path)
        if len(segments) % 2 != 1:
            raise InvalidValueError(f"'{path}' is not a collection path")
        parent = "/".join([self.root_path] + segments[:-1])
        return CollectionRef(parent_path=parent, collection_id=segments[-1])

    def doc(self, path: str) -> DocumentRef:
        """
        Returns a reference to the document at `path`, relative to the
        database root (e.g. `"users/alice"`).

        Raises:
            InvalidValueError: If `path` does not address a document.
        """
        segments = split_path(path)
        if len(segments) % 2 != 0:
            raise InvalidValueError(f"'{path}' is not a document path")
        return DocumentRef(path="/".join([self.root_path] + segments))

    def collection_group(self, collection_id: str) -> Query:
        """
        Returns a query over every collection named `collection_id` in the
        database, at any depth.
        """
        if not collection_id or "/" in collection_id:
            raise InvalidValueError(f"invalid collection id '{collection_id}'")
        return Query(
            parent_path=self.root_path,
            collection_id=collection_id,
            all_descendants=True,
        )

    # --- Dispatch ---

    def run_query(self, query: Query) -> List[DocumentSnapshot]:
        """
        Validates, translates and runs `query`.

        Returns:
            List[DocumentSnapshot]: The matching documents, in result order.

        Raises:
            DocQueryError: If the query is invalid (nothing is sent).
            Exception: Any error raised by the transport, re-raised unchanged.
        """
        self._check_open()
        request = query.to_run_query_request()
        logger.debug(f"Dispatching query on '{query.path}'")
        try:
            results = list(self._transport.run_query(request))
        except Exception as e:
            logger.error(f"Query on '{query.path}' returned an error: '{e}'")
            raise
        return [DocumentSnapshot.from_wire(doc, read_time) for doc, read_time in results]

    def run_aggregation(self, aggregation: AggregationQuery) -> Dict[str, Any]:
        """
        Validates, translates and runs an aggregation query.

        Returns:
            Dict[str, Any]: The aggregate values, decoded, keyed by alias.
        """
        self._check_open()
        request = aggregation.to_wire()
        logger.debug(f"Dispatching aggregation {list(aggregation.aliases)}")
        try:
            values = self._transport.run_aggregation_query(request)
        except Exception as e:
            logger.error(f"Aggregation query returned an error: '{e}'")
            raise
        return {alias: decode_value(v) for alias, v in values.items()}

    def mutate(self, *mutations: Mutation) -> List[MutationResult]:
        """
        Validates and commits a batch of mutations.

        The wire batch is split into commits of at most
        `config.max_mutations_per_commit` mutations, sent in order.

        Raises:
            MultiError: If any mutation is invalid (nothing is sent).
            Exception: Any error raised by the transport, re-raised unchanged.
        """
        self._check_open()
        wire_mutations = to_wire_mutations(mutations)
        step = self._config.max_mutations_per_commit
        results: List[MutationResult] = []
        for start in range(0, len(wire_mutations), step):
            chunk = wire_mutations[start : start + step]
            logger.debug(f"Committing {len(chunk)} mutation(s)")
            try:
                results.extend(self._transport.commit(chunk))
            except Exception as e:
                logger.error(
                    f"Commit of mutations [{start}, {start + len(chunk)}) failed: '{e}'"
                )
                raise
        return results

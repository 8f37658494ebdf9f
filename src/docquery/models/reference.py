"""
Document and collection references.

References are plain path holders: they carry no client or connection and can
be created, compared and hashed freely. Paths are fully qualified, e.g.
`projects/P/databases/DB/documents/users/alice`.
"""

from dataclasses import dataclass
from typing import List

from ..errors import InvalidValueError


def database_root(project_id: str, database_id: str) -> str:
    """Returns the `.../documents` root path of a database."""
    return f"projects/{project_id}/databases/{database_id}/documents"


def split_path(path: str) -> List[str]:
    """Splits a relative resource path on '/', rejecting empty segments."""
    segments = path.strip("/").split("/")
    if any(seg == "" for seg in segments):
        raise InvalidValueError(f"malformed resource path '{path}'")
    return segments


@dataclass(frozen=True)
class DocumentRef:
    """
    Reference to a single document.

    Attributes:
        path: The fully qualified document path.
    """

    path: str

    @property
    def id(self) -> str:
        """The last path segment: the document id inside its collection."""
        return self.path.rsplit("/", 1)[-1]

    @property
    def parent_path(self) -> str:
        """The fully qualified path of the collection containing the document."""
        return self.path.rsplit("/", 1)[0]

    @property
    def collection_id(self) -> str:
        """The id of the collection containing the document."""
        return self.parent_path.rsplit("/", 1)[-1]

    def collection(self, collection_id: str) -> "CollectionRef":
        """Returns a reference to a subcollection of this document."""
        if not collection_id or "/" in collection_id:
            raise InvalidValueError(f"invalid collection id '{collection_id}'")
        return CollectionRef(parent_path=self.path, collection_id=collection_id)


@dataclass(frozen=True)
class CollectionRef:
    """
    Reference to a collection, either top-level (its parent is the database
    documents root) or nested under a document.

    Attributes:
        parent_path: Path of the parent document, or the database documents root.
        collection_id: The collection id.
    """

    parent_path: str
    collection_id: str

    @property
    def path(self) -> str:
        return f"{self.parent_path}/{self.collection_id}"

    def doc(self, doc_id: str) -> DocumentRef:
        """Returns a reference to the document `doc_id` of this collection."""
        if not doc_id or "/" in doc_id:
            raise InvalidValueError(f"invalid document id '{doc_id}'")
        return DocumentRef(path=f"{self.path}/{doc_id}")

    def query(self):
        """Returns an unfiltered [`Query`][docquery.models.query.Query] over this collection."""
        from .query.builders import Query

        return Query(parent_path=self.parent_path, collection_id=self.collection_id)

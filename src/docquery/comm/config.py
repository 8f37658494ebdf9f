"""
Configuration Module.

This module defines the configuration of a
[`DocumentClient`][docquery.comm.DocumentClient]: the target database and the
batching limit applied when committing mutations.
"""

from dataclasses import dataclass

from ..errors import InvalidValueError
from ..models.reference import database_root

DEFAULT_DATABASE_ID = "(default)"
DEFAULT_MAX_MUTATIONS_PER_COMMIT = 500


@dataclass(frozen=True)
class ClientConfig:
    """
    Configuration settings for the [`DocumentClient`][docquery.comm.DocumentClient].

    Example:
        ```python
        from docquery import ClientConfig

        config = ClientConfig(project_id="my-project", max_mutations_per_commit=200)
        print(config.root_path)  # projects/my-project/databases/(default)/documents
        ```
    """

    project_id: str
    """The project owning the database."""

    database_id: str = DEFAULT_DATABASE_ID
    """The database id within the project."""

    max_mutations_per_commit: int = DEFAULT_MAX_MUTATIONS_PER_COMMIT
    """
    The maximum number of wire mutations sent in a single commit.

    [`DocumentClient.mutate()`][docquery.comm.DocumentClient.mutate] splits
    larger batches into several consecutive commits.
    """

    def __post_init__(self):
        if not self.project_id or "/" in self.project_id:
            raise InvalidValueError(f"invalid project id '{self.project_id}'")
        if not self.database_id or "/" in self.database_id:
            raise InvalidValueError(f"invalid database id '{self.database_id}'")
        if self.max_mutations_per_commit <= 0:
            raise InvalidValueError(
                f"max_mutations_per_commit must be positive, got {self.max_mutations_per_commit}"
            )

    @property
    def root_path(self) -> str:
        """The documents root path of the configured database."""
        return database_root(self.project_id, self.database_id)

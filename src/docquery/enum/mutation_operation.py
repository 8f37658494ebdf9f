from enum import Enum


class MutationOperation(Enum):
    """
    Kind of change a [`Mutation`][docquery.models.mutation.Mutation] applies to an entity.
    """

    Insert = "insert"  # Fails on the backend if the key already exists.
    Upsert = "upsert"  # Writes the entity whether or not the key exists.
    Update = "update"  # Fails on the backend if the key does not exist.
    Delete = "delete"  # Removes the entity; idempotent.

from .key import (
    Key as Key,
    name_key as name_key,
    id_key as id_key,
    incomplete_key as incomplete_key,
)
from .mutation import (
    Mutation as Mutation,
    new_insert as new_insert,
    new_upsert as new_upsert,
    new_update as new_update,
    new_delete as new_delete,
    to_wire_mutations as to_wire_mutations,
)
from .entity import encode_entity as encode_entity
from .wire import (
    Entity as Entity,
    MutationResult as MutationResult,
    WireKey as WireKey,
    WireMutation as WireMutation,
)

from .base_model import WireModel as WireModel
from .reference import CollectionRef as CollectionRef, DocumentRef as DocumentRef
from .values import (
    Value as Value,
    Vector as Vector,
    GeoPoint as GeoPoint,
    SERVER_TIMESTAMP as SERVER_TIMESTAMP,
    DELETE_FIELD as DELETE_FIELD,
    encode_value as encode_value,
    decode_value as decode_value,
)
from .snapshot import Document as Document, DocumentSnapshot as DocumentSnapshot

from pydantic import BaseModel as _PydanticBaseModel, ConfigDict


class WireModel(_PydanticBaseModel):
    """
    Base class of every message of the wire schema.

    Wire messages are immutable once built and serialize to JSON through
    pydantic (`model_dump_json` / `model_validate_json`). Unset optional
    members are omitted from the serialized form.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        ser_json_bytes="base64",
        val_json_bytes="base64",
        ser_json_inf_nan="constants",
    )

    def to_json(self) -> bytes:
        """Serializes the message, omitting unset members."""
        return self.model_dump_json(exclude_none=True, by_alias=True).encode("utf-8")

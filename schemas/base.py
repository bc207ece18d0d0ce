"""Base schema utilities and common types."""

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with common configuration.

    Fields are declared in snake_case with camelCase aliases; persisted JSON
    always uses the aliases.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )

    def to_json_dict(self) -> dict:
        """Dump with camelCase aliases, ready for json.dumps."""
        return self.model_dump(mode="json", by_alias=True)

"""Base models for records exchanged with the backend API."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BackendModel(BaseModel):
    """Immutable record parsed from (or sent to) the backend's camelCase JSON.

    Fields are declared snake_case and accept either spelling on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    def to_backend(self) -> dict:
        """Serialize with camelCase keys, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RedirectTarget(BaseModel):
    """Outcome of a flow whose next step is navigating somewhere else."""

    redirect_url: str

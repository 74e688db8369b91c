"""Base model class for all playground models with serialization support."""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


class PlaygroundBaseModel(BaseModel):
    """Base model for all playground models with built-in serialization.

    Enum fields keep their enum members (rather than raw values) so that
    dialect-specific properties stay reachable on validated models.
    """
    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to a JSON-compatible dictionary.

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        return self.model_dump(mode="json", by_alias=False, exclude_none=True)

"""Base entity shared by all MongoDB documents."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class BaseEntity(BaseModel):
    """
    Common fields for documents stored in MongoDB.

    All collections in this application use string primary keys
    (repository names, formula ids, commit shas), stored under `_id`.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        use_enum_values=True,
    )

    id: Optional[str] = Field(None, alias="_id")
    updated_at: Optional[datetime] = None

    def to_mongo(self) -> Dict[str, Any]:
        """Serialize for storage, keeping `_id` out when it is not set yet."""
        doc = self.model_dump(by_alias=True)
        if doc.get("_id") is None:
            doc.pop("_id", None)
        return doc

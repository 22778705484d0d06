"""
Base model and shared helpers for in-memory entities
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Entity(BaseModel):
    """Mutable record held by the entity store"""
    # enum fields are stored as plain strings, defaults included
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    id: str

    def to_record(self) -> Dict[str, Any]:
        """JSON-safe payload for persistence backends"""
        return self.model_dump(mode="json")


def ensure_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken as UTC"""
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def reject_null(value: Any) -> Any:
    """Patch fields may be omitted but never sent as null"""
    if value is None:
        raise ValueError("may not be null")
    return value

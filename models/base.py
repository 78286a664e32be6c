"""
Base model classes.
"""

from pydantic import BaseModel, ConfigDict


class PayloadModel(BaseModel):
    """
    Base for models parsed from backend payloads.

    Unknown fields are ignored so the backend can grow its schema
    without breaking older engines.
    """
    model_config = ConfigDict(
        extra="ignore",
        str_strip_whitespace=True,
        populate_by_name=True,
    )


class RecordModel(BaseModel):
    """
    Base for persisted records.

    Records are immutable once created; the repository only appends and
    deletes them.
    """
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",  # Ignore unknown fields from older log files
        str_strip_whitespace=True,
        populate_by_name=True,
    )

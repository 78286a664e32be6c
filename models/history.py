"""
History - the activity log of validate/translate actions.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import Field

from errors import InvalidEntry

from .base import RecordModel

DATE_FORMAT = "%Y.%m.%d"
TIME_FORMAT = "%H:%M"


class ActionType(str, Enum):
    VALIDATE = "validate"
    TRANSLATE = "translate"


class EntryStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


def _new_entry_id() -> str:
    return f"h{uuid.uuid4().hex[:12]}"


class HistoryEntry(RecordModel):
    """
    One completed (or failed) validate/translate action.

    Optional fields depend on the action:
    - validate: error_count and warning_count, no country
    - translate: country, no counts

    Construction does not enforce that pairing; HistoryRepository.append
    does, via check_consistency(), so a bad entry surfaces as InvalidEntry
    at the point it would enter the log.
    """
    id: str = Field(default_factory=_new_entry_id)
    owner_id: str = Field(min_length=1)  # Back-reference to a user, not ownership
    action_type: ActionType = Field(alias="type")
    file_name: str
    date: str
    time: str
    status: EntryStatus = EntryStatus.COMPLETED

    error_count: Optional[int] = Field(default=None, ge=0)
    warning_count: Optional[int] = Field(default=None, ge=0)
    country: Optional[str] = None

    def check_consistency(self) -> None:
        """Raise InvalidEntry when optional fields don't match action_type."""
        if self.action_type == ActionType.VALIDATE:
            if self.error_count is None or self.warning_count is None:
                raise InvalidEntry(f"validate entry {self.id} needs error_count and warning_count")
            if self.country is not None:
                raise InvalidEntry(f"validate entry {self.id} must not carry a country")
        else:
            if not self.country:
                raise InvalidEntry(f"translate entry {self.id} needs a country")
            if self.error_count is not None or self.warning_count is not None:
                raise InvalidEntry(f"translate entry {self.id} must not carry error/warning counts")

    @property
    def timestamp(self) -> datetime:
        return datetime.strptime(f"{self.date} {self.time}", f"{DATE_FORMAT} {TIME_FORMAT}")

    @classmethod
    def for_validation(
        cls,
        owner_id: str,
        file_name: str,
        error_count: int,
        warning_count: int,
        status: EntryStatus = EntryStatus.COMPLETED,
        now: Optional[datetime] = None,
    ) -> "HistoryEntry":
        now = now or datetime.now()
        return cls(
            owner_id=owner_id,
            action_type=ActionType.VALIDATE,
            file_name=file_name,
            date=now.strftime(DATE_FORMAT),
            time=now.strftime(TIME_FORMAT),
            status=status,
            error_count=error_count,
            warning_count=warning_count,
        )

    @classmethod
    def for_translation(
        cls,
        owner_id: str,
        file_name: str,
        country: str,
        status: EntryStatus = EntryStatus.COMPLETED,
        now: Optional[datetime] = None,
    ) -> "HistoryEntry":
        now = now or datetime.now()
        return cls(
            owner_id=owner_id,
            action_type=ActionType.TRANSLATE,
            file_name=file_name,
            date=now.strftime(DATE_FORMAT),
            time=now.strftime(TIME_FORMAT),
            status=status,
            country=country.upper(),
        )

    def to_dict(self) -> dict:
        """Export for API responses."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class OwnerStats(RecordModel):
    """Per-owner activity totals for the admin overview."""
    owner_id: str
    total: int = 0
    validations: int = 0
    translations: int = 0
    failed: int = 0

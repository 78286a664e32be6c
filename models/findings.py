"""
Findings - compliance issues reported by the validation backend.

The backend reports each finding as either a `missing` block or an
`incorrect` block. Both shapes are normalized into one Finding with a
`kind` discriminator.
"""

from enum import Enum
from typing import Any, Optional
from pydantic import Field, ValidationError, model_validator

from config import HIGHLIGHT_CLASSES
from errors import InvalidFinding, InvalidResult

from .base import PayloadModel


class Severity(str, Enum):
    """Finding severity. Ranked for summary counts, never for display order."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class FindingKind(str, Enum):
    MISSING = "missing"
    INCORRECT = "incorrect"


class Location(PayloadModel):
    """Where a finding points in the document."""
    selector: str = Field(min_length=1)  # CSS selector; may match zero nodes
    element_type: str = Field(default="", alias="elementType")


class SourceRef(PayloadModel):
    """A document the regulation guidance was drawn from."""
    source: str
    category: str = ""


class Reference(PayloadModel):
    """Regulatory reference backing a finding."""
    regulation: str = Field(default="", alias="regulationId")
    guidance: str = Field(default="", alias="guidanceText")
    sources: list[SourceRef] = Field(default_factory=list)


class Finding(PayloadModel):
    """
    A single compliance issue tied to a document location.

    Exactly one of the kind-specific field groups is populated:
    `item` for missing findings, `current_value`/`issue` for incorrect ones.
    """
    id: str
    kind: FindingKind
    severity: Severity
    location: Location
    reference: Reference = Field(default_factory=Reference)
    message: str = ""

    # kind == missing
    item: Optional[str] = None

    # kind == incorrect
    current_value: Optional[str] = None
    issue: Optional[str] = None

    @model_validator(mode="after")
    def _kind_fields_consistent(self) -> "Finding":
        if self.kind == FindingKind.MISSING and (self.current_value is not None or self.issue is not None):
            raise ValueError("missing finding carries incorrect-only fields")
        if self.kind == FindingKind.INCORRECT and self.item is not None:
            raise ValueError("incorrect finding carries missing-only fields")
        return self

    @property
    def highlight_class(self) -> str:
        return HIGHLIGHT_CLASSES[self.severity.value]

    @property
    def title(self) -> str:
        """Short label for list displays."""
        if self.kind == FindingKind.MISSING:
            return self.item or self.message
        return self.issue or self.message

    @classmethod
    def from_payload(cls, data: Any, index: int) -> "Finding":
        """
        Build a Finding from one entry of a backend `errors` array.

        Accepts the backend shape (`missing`/`incorrect` blocks) and a flat
        shape with explicit `kind` and `severity`. Raises InvalidFinding.
        """
        if isinstance(data, Finding):
            return data
        if not isinstance(data, dict):
            raise InvalidFinding(f"expected an object, got {type(data).__name__}", index)

        missing = data.get("missing")
        incorrect = data.get("incorrect")

        if missing and incorrect:
            raise InvalidFinding("kind is ambiguous: both 'missing' and 'incorrect' present", index)

        fields: dict[str, Any] = {
            "id": str(data.get("id") if data.get("id") is not None else index),
            "location": data.get("location"),
            "reference": data.get("reference") or {},
        }

        if missing or incorrect:
            detail = missing or incorrect
            if not isinstance(detail, dict):
                raise InvalidFinding("finding detail must be an object", index)
            fields["kind"] = FindingKind.MISSING if missing else FindingKind.INCORRECT
            fields["severity"] = detail.get("severity")
            fields["message"] = detail.get("message") or ""
            if missing:
                fields["item"] = detail.get("item")
            else:
                fields["current_value"] = detail.get("current_value")
                fields["issue"] = detail.get("issue")
        elif data.get("kind"):
            # Flat shape
            fields["kind"] = data.get("kind")
            fields["severity"] = data.get("severity")
            fields["message"] = data.get("message") or data.get("suggestion") or ""
            for key in ("item", "current_value", "issue"):
                if data.get(key) is not None:
                    fields[key] = data[key]
        else:
            raise InvalidFinding("kind is absent: neither 'missing' nor 'incorrect' present", index)

        if fields["location"] is None:
            raise InvalidFinding("location is absent", index)

        try:
            return cls.model_validate(fields)
        except ValidationError as e:
            reasons = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'finding'}: {err['msg']}"
                for err in e.errors()
            )
            raise InvalidFinding(reasons, index) from e


class SkippedFinding(PayloadModel):
    """A payload entry that was rejected at load time."""
    index: int
    reason: str


class ValidationResult(PayloadModel):
    """
    Result payload from the validation backend.

    `errors` stays raw here; IssueStore parses each entry so that one bad
    finding is skipped and reported instead of failing the whole result.
    """
    product_name: str = ""
    product_type: str = ""
    source_html: Optional[str] = None
    total_errors: Optional[int] = None
    errors: list[dict[str, Any]] = Field(default_factory=list)

    @model_validator(mode="after")
    def _total_matches(self) -> "ValidationResult":
        if self.total_errors is not None and self.total_errors != len(self.errors):
            raise ValueError(
                f"total_errors is {self.total_errors} but {len(self.errors)} findings were reported"
            )
        return self

    @classmethod
    def from_payload(cls, data: Any) -> "ValidationResult":
        """Parse a backend payload. Raises InvalidResult."""
        if not isinstance(data, dict):
            raise InvalidResult(f"expected an object, got {type(data).__name__}")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise InvalidResult(str(e)) from e

    @property
    def export_file_name(self) -> str:
        """Default download name for an edited label."""
        name = self.product_name or "label"
        return f"{name}_edited.html"


class TranslationResult(PayloadModel):
    """Result payload from the translation backend."""
    target_country: str = ""
    source_language: Optional[str] = None
    html_output: str = Field(default="", alias="html")

    @classmethod
    def from_payload(cls, data: Any) -> "TranslationResult":
        """Parse a backend payload. Raises InvalidResult."""
        if not isinstance(data, dict):
            raise InvalidResult(f"expected an object, got {type(data).__name__}")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise InvalidResult(str(e)) from e

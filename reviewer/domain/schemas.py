from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FindingIn(BaseModel):
    """One finding as written by the review stage."""

    model_config = ConfigDict(extra="ignore")

    severity: Literal["CRITICAL", "BUG", "WARNING", "INFO", "STYLE"]
    file: str = Field(..., min_length=1)
    line: int | None = None
    description: str = ""
    suggestion: str = ""

    @field_validator("line", mode="before")
    @classmethod
    def _positive_line(cls, value):
        # The review schema forces an integer; 0, negatives and junk mean "no line"
        if value is None or isinstance(value, bool):
            return None
        try:
            line = int(value)
        except (TypeError, ValueError):
            return None
        return line if line >= 1 else None

    @field_validator("description", "suggestion", mode="before")
    @classmethod
    def _null_text(cls, value):
        return "" if value is None else value


class FindingsDocumentIn(BaseModel):
    """Envelope of the review stage output. Findings are validated one by one.

    ``risk_level`` is kept as written; the loader normalises it.
    """

    model_config = ConfigDict(extra="ignore")

    summary: str = ""
    risk_level: str | None = None
    findings: list[Any] = Field(default_factory=list)

    @field_validator("summary", mode="before")
    @classmethod
    def _null_summary(cls, value):
        return "" if value is None else value

    @field_validator("risk_level", mode="before")
    @classmethod
    def _raw_risk_level(cls, value):
        return value if isinstance(value, str) else None


class FixPayload(BaseModel):
    """JSON object the fix model is asked to return."""

    model_config = ConfigDict(extra="ignore")

    fixed_code: str = ""
    explanation: str = "Fix applied"
    diff_description: str = ""

    @field_validator("explanation", mode="before")
    @classmethod
    def _default_explanation(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return "Fix applied"
        return value

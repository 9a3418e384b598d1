from datetime import datetime, timezone

from pydantic import Field

from digitalme.models.base import CamelModel
from digitalme.models.profile import StyleProfile


class DeltaChange(CamelModel):
    attribute: str
    old_value: str
    new_value: str
    change_percent: int = Field(ge=0, le=100)


class DeltaReport(CamelModel):
    """What a refinement changed. Produced alongside a refined profile, never stored on its own."""

    changes: list[DeltaChange] = Field(default_factory=list)
    words_analyzed: int = 0
    confidence_change: float = 0.0
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class RefinementResult(CamelModel):
    """Outcome of one refinement attempt as seen by the caller."""

    success: bool
    updated_profile: StyleProfile | None = None
    delta_report: DeltaReport | None = None
    error: str | None = None
    code: str | None = None

    @classmethod
    def failed(cls, error: str, code: str | None = None) -> "RefinementResult":
        return cls(success=False, error=error, code=code)

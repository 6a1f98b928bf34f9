"""Request bodies for the admin API."""
from __future__ import annotations

from pydantic import BaseModel, Field


class ConfirmBody(BaseModel):
    confirmed: bool = False


class RolloutUpdate(BaseModel):
    """Out-of-range percentages are clamped, not rejected."""
    percentage: float
    confirmed: bool = False


class ReasonBody(BaseModel):
    reason: str = Field(min_length=1)


class EvaluateRequest(BaseModel):
    subject_id: str | None = None
    segment: str | None = None


class WhiteLabelUpdate(BaseModel):
    enabled: bool | None = None
    show_powered_by: bool | None = None
    hide_legacy_branding: bool | None = None
    custom_css: str | None = None

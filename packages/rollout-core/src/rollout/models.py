"""Pydantic v2 models for brand (tenant identity) records."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ── Identity assets ─────────────────────────────────────────────────────────


class BrandLogo(_Frozen):
    light: str = ""
    dark: str = ""
    favicon: str = ""


class BrandColors(_Frozen):
    primary: str = "#2563EB"
    secondary: str = "#7C3AED"
    accent: str = "#06B6D4"
    success: str = "#10B981"
    warning: str = "#F59E0B"
    danger: str = "#EF4444"
    background: str = "#F8FAFC"
    surface: str = "#FFFFFF"
    text: str = "#0F172A"
    text_muted: str = "#64748B"


class BrandFonts(_Frozen):
    heading: str = "Inter, system-ui, sans-serif"
    body: str = "Inter, system-ui, sans-serif"
    mono: str = "JetBrains Mono, monospace"


class BrandDomains(_Frozen):
    app: str = ""
    api: str = ""
    docs: str = ""
    status: str = ""


# ── Legal & contact ─────────────────────────────────────────────────────────


class BrandEmail(_Frozen):
    from_name: str = ""
    from_address: str = ""
    reply_to: str = ""
    signature: str = ""


class BrandLegal(_Frozen):
    company_name: str = ""
    copyright: str = ""
    terms_url: str = ""
    privacy_url: str = ""
    support_url: str = ""


class WhiteLabelConfig(_Frozen):
    enabled: bool = False
    show_powered_by: bool = True
    hide_legacy_branding: bool = False
    custom_css: str | None = None


# ── Brand record ────────────────────────────────────────────────────────────


class BrandRecord(_Frozen):
    id: str
    name: str
    short_name: str = ""
    tagline: str = ""
    logo: BrandLogo = Field(default_factory=BrandLogo)
    colors: BrandColors = Field(default_factory=BrandColors)
    fonts: BrandFonts = Field(default_factory=BrandFonts)
    domains: BrandDomains = Field(default_factory=BrandDomains)
    email: BrandEmail = Field(default_factory=BrandEmail)
    legal: BrandLegal = Field(default_factory=BrandLegal)
    white_label: WhiteLabelConfig = Field(default_factory=WhiteLabelConfig)
    rollout_percentage: int = Field(default=0, ge=0, le=100)  # canary exposure
    is_default: bool = False
    is_active: bool = True
    created_by: str = "system"
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict) -> BrandRecord:
        return cls.model_validate(data)

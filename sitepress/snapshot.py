"""Published snapshot value types.

This is the wire contract between the publication store and every caller that
resolves or renders a public page:

    {
      "site": {"name": str, "settings": dict},
      "snapshot": {
        "pages": [{"id", "slug", "title", "is_homepage", "seo", "sections": [
            {"id", "type", "variant", "content", "settings", "sort_order"}
        ]}],
        "settings": dict (optional)
      },
      "version": int,
      "publishedAt": ISO-8601 str
    }

Unknown keys are kept (extra="allow") and ``to_wire()`` only emits what was
set, so a payload survives validate -> cache -> dump unchanged.

Section ``content`` and ``settings`` stay loosely typed here on purpose: a
section whose content does not match its type must degrade to a placeholder
at render time (see sitepress.sections), not fail the whole snapshot.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _dict_or_none(value):
    return value if isinstance(value, dict) else None


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class PublishedSection(_WireModel):
    """One section slot. Its metadata is read leniently: a bad id, type,
    variant or sort_order never rejects the snapshot, the renderer turns
    the slot into a placeholder instead."""

    id: Optional[str] = None
    type: Optional[str] = None
    variant: Optional[str] = None
    content: Any = Field(default_factory=dict)
    settings: Any = Field(default_factory=dict)
    sort_order: Optional[int] = 0

    @field_validator("id", "type", "variant", mode="before")
    @classmethod
    def coerce_text(cls, value):
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return str(value)
        return value if isinstance(value, str) else None

    @field_validator("sort_order", mode="before")
    @classmethod
    def coerce_order(cls, value):
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            return int(value)
        return None


class PublishedPage(_WireModel):
    id: str
    slug: str = ""
    title: Optional[str] = None
    is_homepage: bool = False
    seo: Optional[dict[str, Any]] = None
    sections: list[PublishedSection] = Field(default_factory=list)


class Snapshot(_WireModel):
    pages: list[PublishedPage] = Field(default_factory=list)
    settings: Optional[dict[str, Any]] = None

    @field_validator("settings", mode="before")
    @classmethod
    def settings_dict(cls, value):
        return _dict_or_none(value)


class SiteInfo(_WireModel):
    name: Optional[str] = None
    settings: Optional[dict[str, Any]] = None

    @field_validator("settings", mode="before")
    @classmethod
    def settings_dict(cls, value):
        return _dict_or_none(value)


class PublishedSiteData(_WireModel):
    site: SiteInfo
    snapshot: Snapshot
    version: int
    published_at: Optional[str] = Field(default=None, alias="publishedAt")

    @classmethod
    def from_wire(cls, payload: dict) -> "PublishedSiteData":
        return cls.model_validate(payload)

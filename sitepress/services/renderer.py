"""Site renderer — turns a resolved page of a published snapshot into HTML.

render(site_data, page) -> RenderedOutput
    Sections are sorted once by sort_order (stable, ascending) and each one
    is dispatched on its type through sitepress.sections.SECTION_TYPES. An
    unknown type, or content that does not fit the type's schema, renders
    an empty placeholder slot; sibling sections are unaffected.

build_metadata(site_data, page) -> Metadata
    Crawler-facing title/description/social image, each picked from an
    explicit ordered list of sources (first present wins).

Read-only over snapshot data: nothing here writes or mutates.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from flask import current_app, render_template
from jinja2 import TemplateError
from markupsafe import Markup

from sitepress.sections import SECTION_TYPES, normalize_variant, parse_content

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Theme
# ──────────────────────────────────────────────

DEFAULT_COLORS = {
    "primary": "#5d00ff",
    "secondary": "#000000",
    "accent": "#6f6758",
}
DEFAULT_FONTS = {"heading": "Heebo", "body": "Heebo"}
BORDER_RADII = {"sharp": "0", "rounded": "0.5rem", "pill": "9999px"}

# Values end up inside a style attribute; only accept plain colors/font names.
COLOR_RE = re.compile(r"^(#[0-9a-fA-F]{3,8}|(rgb|hsl)a?\([0-9.,%\s]+\)|[a-zA-Z]{3,20})$")
FONT_RE = re.compile(r"^[A-Za-z0-9 \-]{1,60}$")


def _pick(value, pattern, default):
    if isinstance(value, str) and pattern.match(value.strip()):
        return value.strip()
    return default


@dataclass(frozen=True)
class Theme:
    primary: str = DEFAULT_COLORS["primary"]
    secondary: str = DEFAULT_COLORS["secondary"]
    accent: str = DEFAULT_COLORS["accent"]
    heading_font: str = DEFAULT_FONTS["heading"]
    body_font: str = DEFAULT_FONTS["body"]
    border_radius: str = "rounded"
    dark_mode: bool = False
    direction: str = "rtl"
    favicon_url: Optional[str] = None

    @classmethod
    def from_settings(cls, site_settings=None, snapshot_settings=None):
        """Build a theme from site settings, overridden key-by-key by the
        snapshot's own settings."""
        settings = {}
        settings.update(site_settings or {})
        settings.update(snapshot_settings or {})

        colors = settings.get("colors") if isinstance(settings.get("colors"), dict) else {}
        fonts = settings.get("fonts") if isinstance(settings.get("fonts"), dict) else {}
        radius = settings.get("borderRadius")
        direction = settings.get("direction")
        favicon = settings.get("faviconUrl")

        return cls(
            primary=_pick(colors.get("primary"), COLOR_RE, DEFAULT_COLORS["primary"]),
            secondary=_pick(colors.get("secondary"), COLOR_RE, DEFAULT_COLORS["secondary"]),
            accent=_pick(colors.get("accent"), COLOR_RE, DEFAULT_COLORS["accent"]),
            heading_font=_pick(fonts.get("heading"), FONT_RE, DEFAULT_FONTS["heading"]),
            body_font=_pick(fonts.get("body"), FONT_RE, DEFAULT_FONTS["body"]),
            border_radius=radius if isinstance(radius, str) and radius in BORDER_RADII else "rounded",
            dark_mode=bool(settings.get("darkMode", False)),
            direction=direction if isinstance(direction, str) and direction in ("rtl", "ltr") else "rtl",
            favicon_url=favicon if isinstance(favicon, str) and favicon else None,
        )

    @property
    def css_variables(self) -> str:
        return (
            f"--color-primary: {self.primary}; "
            f"--color-secondary: {self.secondary}; "
            f"--color-accent: {self.accent}; "
            f"--font-heading: '{self.heading_font}'; "
            f"--font-body: '{self.body_font}'; "
            f"--radius: {BORDER_RADII[self.border_radius]};"
        )


# ──────────────────────────────────────────────
# Render output types
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class RenderedSection:
    id: str
    type: str
    variant: str
    html: Markup
    is_placeholder: bool = False


@dataclass(frozen=True)
class RenderedOutput:
    page_id: str
    page_slug: str
    theme: Theme
    sections: list = field(default_factory=list)

    @property
    def html(self) -> Markup:
        return Markup("\n").join(s.html for s in self.sections)

    @property
    def is_empty(self) -> bool:
        return not self.sections


@dataclass(frozen=True)
class Metadata:
    title: str
    description: str = ""
    og_image: Optional[str] = None
    url: Optional[str] = None
    locale: Optional[str] = None


# ──────────────────────────────────────────────
# Rendering
# ──────────────────────────────────────────────

def sort_sections(sections):
    """Ascending by sort_order; ties keep snapshot order. Missing counts as 0."""
    return sorted(sections, key=lambda s: s.sort_order or 0)


def _placeholder(section, variant) -> RenderedSection:
    html = Markup(render_template(
        "sections/_placeholder.html", section=section
    ))
    return RenderedSection(
        id=section.id,
        type=section.type,
        variant=variant,
        html=html,
        is_placeholder=True,
    )


def render_section(section, theme) -> RenderedSection:
    """Render one section, degrading to a placeholder instead of raising."""
    variant = normalize_variant(section.type, section.variant)
    content = parse_content(section.type, section.content)
    if content is None:
        if section.type not in SECTION_TYPES:
            logger.warning(f"Unknown section type {section.type!r} (section {section.id})")
        else:
            logger.warning(f"Malformed {section.type} content (section {section.id})")
        return _placeholder(section, variant)

    settings = section.settings if isinstance(section.settings, dict) else {}
    try:
        html = render_template(
            SECTION_TYPES[section.type].template,
            section=section,
            content=content,
            variant=variant,
            settings=settings,
            theme=theme,
        )
    except TemplateError as e:
        logger.error(f"Template error rendering {section.type} section {section.id}: {type(e).__name__}")
        return _placeholder(section, variant)

    return RenderedSection(
        id=section.id,
        type=section.type,
        variant=variant,
        html=Markup(html),
    )


def render(site_data, page) -> RenderedOutput:
    """Render every section of ``page`` in sort_order."""
    theme = Theme.from_settings(
        site_data.site.settings, site_data.snapshot.settings
    )
    sections = [render_section(s, theme) for s in sort_sections(page.sections)]
    return RenderedOutput(
        page_id=page.id,
        page_slug=page.slug,
        theme=theme,
        sections=sections,
    )


# ──────────────────────────────────────────────
# Metadata
# ──────────────────────────────────────────────

def first_present(*sources):
    """Return the first source that is present (not None, not blank)."""
    for value in sources:
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _get(mapping, key):
    """String value of ``key`` in a free-form settings dict, else None."""
    value = mapping.get(key) if isinstance(mapping, dict) else None
    return value if isinstance(value, str) else None


def build_metadata(site_data, page, url=None) -> Metadata:
    """Title, description and social image for crawlers.

    Most specific wins: page SEO override, then page, then site, then a
    generic fallback.
    """
    seo = page.seo if page is not None else None
    page_title = page.title if page is not None else None
    snapshot_settings = site_data.snapshot.settings
    site_settings = site_data.site.settings

    title = first_present(
        _get(seo, "title"),
        page_title,
        site_data.site.name,
        current_app.config.get("DEFAULT_SITE_TITLE", "Site"),
    )
    description = first_present(
        _get(seo, "description"),
        _get(snapshot_settings, "description"),
        _get(site_settings, "description"),
    ) or ""
    og_image = first_present(
        _get(seo, "ogImage"),
        _get(snapshot_settings, "ogImage"),
        _get(site_settings, "ogImage"),
    )
    return Metadata(
        title=title,
        description=description,
        og_image=og_image,
        url=url,
        locale=current_app.config.get("DEFAULT_LOCALE"),
    )

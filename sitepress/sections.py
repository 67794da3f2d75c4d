"""Section content schemas and the section type registry.

Every section ``type`` in the closed vocabulary has its own content model.
The renderer looks the type up in ``SECTION_TYPES`` and validates the raw
content against the model; an unknown type or content that fails validation
yields a placeholder slot instead of an exception.
"""

from __future__ import annotations

from typing import Any, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class _Content(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Link(_Content):
    text: str
    url: str = "#"


class NavLink(_Content):
    label: str
    url: str = "#"


class SocialLink(_Content):
    platform: str
    url: str


# --- hero ---

class HeroContent(_Content):
    headline: str
    subheadline: Optional[str] = None
    cta_primary: Optional[Link] = None
    cta_secondary: Optional[Link] = None
    background_image: Optional[str] = None
    overlay_opacity: float = Field(default=0.5, ge=0, le=1)


# --- features ---

class FeatureItem(_Content):
    id: Optional[str] = None
    title: str
    description: str = ""
    icon: Optional[str] = None


class FeaturesContent(_Content):
    title: str
    subtitle: Optional[str] = None
    items: list[FeatureItem] = Field(default_factory=list)


# --- gallery ---

class GalleryImage(_Content):
    id: Optional[str] = None
    url: str
    alt: Optional[str] = None
    caption: Optional[str] = None


class GalleryContent(_Content):
    title: Optional[str] = None
    images: list[GalleryImage]


# --- testimonials ---

class TestimonialItem(_Content):
    id: Optional[str] = None
    quote: str
    author: str
    role: Optional[str] = None
    avatar: Optional[str] = None


class TestimonialsContent(_Content):
    title: str
    items: list[TestimonialItem] = Field(default_factory=list)


# --- cta ---

class CTAContent(_Content):
    headline: str
    description: Optional[str] = None
    button: Link


# --- contact ---

class ContactContent(_Content):
    title: str
    description: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


# --- about ---

class AboutContent(_Content):
    title: str
    description: str
    image: Optional[str] = None


# --- footer ---

class FooterContent(_Content):
    copyright: str
    links: list[NavLink] = Field(default_factory=list)
    social: list[SocialLink] = Field(default_factory=list)


# --- pricing ---

class PricingPlan(_Content):
    id: Optional[str] = None
    name: str
    price: str
    period: Optional[str] = None
    features: list[str] = Field(default_factory=list)
    highlighted: bool = False
    cta: Optional[Link] = None


class PricingContent(_Content):
    title: str
    subtitle: Optional[str] = None
    plans: list[PricingPlan]


# --- team ---

class TeamMember(_Content):
    id: Optional[str] = None
    name: str
    role: str
    image: Optional[str] = None
    bio: Optional[str] = None
    social: list[SocialLink] = Field(default_factory=list)


class TeamContent(_Content):
    title: str
    subtitle: Optional[str] = None
    members: list[TeamMember]


# --- faq ---

class FAQItem(_Content):
    id: Optional[str] = None
    question: str
    answer: str


class FAQContent(_Content):
    title: str
    items: list[FAQItem]


# --- stats ---

class StatItem(_Content):
    id: Optional[str] = None
    value: str
    label: str
    prefix: Optional[str] = None
    suffix: Optional[str] = None


class StatsContent(_Content):
    title: Optional[str] = None
    items: list[StatItem]


class SectionType(NamedTuple):
    content_model: type[_Content]
    template: str
    variants: tuple[str, ...]


SECTION_TYPES: dict[str, SectionType] = {
    "hero": SectionType(HeroContent, "sections/hero.html", ("default", "centered", "split")),
    "features": SectionType(FeaturesContent, "sections/features.html", ("default", "grid", "list")),
    "gallery": SectionType(GalleryContent, "sections/gallery.html", ("default", "masonry", "carousel")),
    "testimonials": SectionType(TestimonialsContent, "sections/testimonials.html", ("default", "cards")),
    "cta": SectionType(CTAContent, "sections/cta.html", ("default", "banner")),
    "contact": SectionType(ContactContent, "sections/contact.html", ("default", "split")),
    "about": SectionType(AboutContent, "sections/about.html", ("default", "team", "timeline", "stats")),
    "footer": SectionType(FooterContent, "sections/footer.html", ("default", "minimal")),
    "pricing": SectionType(PricingContent, "sections/pricing.html", ("default", "cards")),
    "team": SectionType(TeamContent, "sections/team.html", ("default", "grid")),
    "faq": SectionType(FAQContent, "sections/faq.html", ("default", "accordion", "two-column")),
    "stats": SectionType(StatsContent, "sections/stats.html", ("default", "inline", "minimal")),
}

DEFAULT_VARIANT = "default"


def parse_content(section_type: str, content: Any) -> Optional[_Content]:
    """Validate raw section content against its type's schema.

    Returns None for an unknown type or content that does not fit the schema.
    """
    entry = SECTION_TYPES.get(section_type)
    if entry is None:
        return None
    if not isinstance(content, dict):
        return None
    try:
        return entry.content_model.model_validate(content)
    except ValidationError:
        return None


def normalize_variant(section_type: str, variant: Optional[str]) -> str:
    """Return the variant if the type supports it, else the default."""
    entry = SECTION_TYPES.get(section_type)
    if entry is None or not variant:
        return DEFAULT_VARIANT
    return variant if variant in entry.variants else DEFAULT_VARIANT

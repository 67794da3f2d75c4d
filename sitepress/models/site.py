"""Site model.

Represents a tenant-built website. Public rendering never reads live editor
state from here: only the site's name/settings and its current Publish
snapshot are served.
"""

import uuid

from sitepress.extensions import db


class Site(db.Model):
    __tablename__ = "sites"

    STATUSES = ["draft", "published", "archived"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    tenant_id = db.Column(db.String(36), nullable=True, index=True)  # owner org
    slug = db.Column(db.String(100), unique=True, nullable=False)
    name = db.Column(db.String(255), nullable=False)
    status = db.Column(
        db.String(50), default="draft", nullable=False
    )  # draft | published | archived
    settings = db.Column(
        db.JSON, default=dict
    )  # theme colors, fonts, direction, description, ogImage, faviconUrl

    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    publishes = db.relationship(
        "Publish",
        back_populates="site",
        lazy="dynamic",
        order_by="Publish.version.desc()",
    )
    domains = db.relationship(
        "Domain", back_populates="site", lazy="dynamic"
    )

    def __repr__(self):
        return f"<Site {self.slug} ({self.status})>"

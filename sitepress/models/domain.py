"""Domain model.

Maps a tenant-owned custom hostname to a Site.

Lifecycle: pending -> verifying -> active, or failed.
Only ``active`` domains are eligible for public site resolution.
"""

import uuid

from sitepress.extensions import db


class Domain(db.Model):
    __tablename__ = "domains"

    STATUSES = ["pending", "verifying", "active", "failed"]
    SSL_STATUSES = ["pending", "provisioning", "active", "failed"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    site_id = db.Column(
        db.String(36), db.ForeignKey("sites.id"), nullable=False, index=True
    )
    domain = db.Column(db.String(253), unique=True, nullable=False)
    status = db.Column(
        db.String(20), default="pending", nullable=False
    )  # pending | verifying | active | failed
    verified_at = db.Column(db.DateTime(timezone=True), nullable=True)
    ssl_status = db.Column(db.String(20), default="pending", nullable=False)

    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __table_args__ = (
        db.Index("ix_domains_domain_status", "domain", "status"),
    )

    # --- Relationships ---
    site = db.relationship("Site", back_populates="domains")

    def __repr__(self):
        return f"<Domain {self.domain} ({self.status})>"

"""Publish model.

An immutable, versioned capture of a site's content at the moment of
publishing. History is append-only: rows are never edited after insert,
except for flipping ``is_current`` when a newer (or rolled-back) version
takes over.

At most one row per site may have is_current=True. The partial unique index
enforces this on Postgres and SQLite; readers still tolerate a violation
(see publication_service.fetch_current_snapshot).
"""

import uuid

from sitepress.extensions import db


class Publish(db.Model):
    __tablename__ = "publishes"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    site_id = db.Column(
        db.String(36), db.ForeignKey("sites.id"), nullable=False, index=True
    )
    version = db.Column(db.Integer, nullable=False)
    snapshot = db.Column(db.JSON, nullable=False)  # {pages: [...], settings: {...}}
    is_current = db.Column(db.Boolean, default=False, nullable=False)
    changelog = db.Column(db.Text, nullable=True)
    published_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    __table_args__ = (
        db.UniqueConstraint("site_id", "version", name="uq_publish_site_version"),
        db.Index(
            "uq_publish_site_current",
            "site_id",
            unique=True,
            postgresql_where=db.text("is_current"),
            sqlite_where=db.text("is_current = 1"),
        ),
    )

    # --- Relationships ---
    site = db.relationship("Site", back_populates="publishes")

    def __repr__(self):
        flag = " current" if self.is_current else ""
        return f"<Publish site={self.site_id} v{self.version}{flag}>"

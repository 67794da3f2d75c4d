# Models package: import all models here so Alembic can discover them.

from sitepress.models.site import Site  # noqa: F401
from sitepress.models.publish import Publish  # noqa: F401
from sitepress.models.domain import Domain  # noqa: F401

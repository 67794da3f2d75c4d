"""Page resolver — picks the page of a published snapshot for a sub-path.

Resolution order:
    1. Empty sub-path (site root) -> the first page flagged is_homepage.
    2. Otherwise -> the page whose slug equals the "/"-joined segments
       exactly (case-sensitive).
    3. No match -> None. A non-root path never falls back to the homepage.
"""

import logging

logger = logging.getLogger(__name__)


def split_sub_path(sub_path) -> list[str]:
    """Normalise a sub-path (string or segment list) to its non-empty segments."""
    if sub_path is None:
        return []
    if isinstance(sub_path, str):
        segments = sub_path.split("/")
    else:
        segments = list(sub_path)
    return [s for s in segments if s]


def find_homepage(snapshot):
    """Return the first homepage page in snapshot order, or None.

    Several pages flagged is_homepage is a data-quality problem, not a
    rendering error: the first one wins.
    """
    homepages = [p for p in snapshot.pages if p.is_homepage]
    if len(homepages) > 1:
        logger.warning(
            f"Snapshot has {len(homepages)} homepages, using the first "
            f"(slug={homepages[0].slug!r})"
        )
    return homepages[0] if homepages else None


def resolve_page(snapshot, sub_path):
    """Return the PublishedPage for ``sub_path`` or None if nothing matches."""
    segments = split_sub_path(sub_path)
    if not segments:
        return find_homepage(snapshot)

    target = "/".join(segments)
    for page in snapshot.pages:
        if page.slug == target:
            return page
    return None

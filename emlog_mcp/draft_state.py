"""
Draft-state inference for article updates

Emlog's article_update endpoint publishes the article unless `draft=y` is
sent, so an update that omits the flag would silently publish a draft. When
the caller gives no flag we probe the draft and published collections in
order and keep whatever status the article already has.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from .errors import EmlogError

if TYPE_CHECKING:
    from .api_client import EmlogClient

logger = logging.getLogger(__name__)


class DraftFlag(str, Enum):
    DRAFT = "y"
    PUBLISH = "n"


@dataclass(frozen=True)
class Probe:
    """One collection to look the article up in; `fetch` returning a truthy payload means found"""

    flag: DraftFlag
    collection: str
    fetch: Callable[[int], Awaitable[Any]]


@dataclass(frozen=True)
class DraftResolution:
    flag: DraftFlag | None
    probed: tuple[str, ...] = ()
    note: str | None = None


def default_probes(client: EmlogClient) -> list[Probe]:
    """Drafts first, then published articles. The two collections are disjoint."""

    async def fetch_draft(article_id: int) -> Any:
        result = await client.get_draft_detail(article_id)
        return result.get("draft") if isinstance(result, dict) else result

    return [
        Probe(DraftFlag.DRAFT, "drafts", fetch_draft),
        Probe(DraftFlag.PUBLISH, "published articles", client.get_article_detail),
    ]


async def resolve_draft_flag(
    article_id: int,
    explicit: str | DraftFlag | None,
    probes: list[Probe],
) -> DraftResolution:
    """
    Decide the draft flag to send with an article update

    Args:
        article_id: Article being updated
        explicit: Flag supplied by the caller ("y"/"n"), or None
        probes: Ordered lookups; the first one that finds the article wins

    Returns:
        DraftResolution. `flag` is None when the article was found in no
        collection; the update should still go ahead.
    """
    if explicit is not None:
        return DraftResolution(flag=DraftFlag(explicit))

    probed = []
    for probe in probes:
        probed.append(probe.collection)
        try:
            found = await probe.fetch(article_id)
        except EmlogError as e:
            # Not found in this collection (or lookup failed); try the next one
            logger.debug(f"Article {article_id} not in {probe.collection}: {e}")
            continue
        if found:
            logger.info(f"📝 Article {article_id} found in {probe.collection}; keeping draft={probe.flag.value}")
            return DraftResolution(flag=probe.flag, probed=tuple(probed))

    note = f"Article {article_id} was not found in {' or '.join(probed)}; draft status left unchanged"
    logger.warning(note)
    return DraftResolution(flag=None, probed=tuple(probed), note=note)

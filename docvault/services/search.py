"""Paginated envelope search with a hard result cap."""

from __future__ import annotations

import logging
from typing import List

from ..schema import EnvelopeSummary, SearchCriteria
from .client import EnvelopeClient

logger = logging.getLogger(__name__)

MAX_SEARCH_RESULTS = 1000


async def search_envelopes(
    client: EnvelopeClient,
    criteria: SearchCriteria,
    *,
    page_size: int | None = None,
    max_results: int = MAX_SEARCH_RESULTS,
) -> List[EnvelopeSummary]:
    """
    Collect every envelope matching ``criteria`` by walking the result pages.

    Stops at the first empty page or once ``max_results`` envelopes have been
    gathered, whichever comes first. Callers that need more must narrow the
    criteria (for example a shorter date range) and search again.
    """
    size = page_size or criteria.page_size
    if size < 1:
        raise ValueError("page_size must be at least 1")

    collected: List[EnvelopeSummary] = []
    start_position = 0
    while len(collected) < max_results:
        page = await client.list_envelopes(criteria, count=size, start_position=start_position)
        if not page.envelopes:
            break
        collected.extend(page.envelopes)
        start_position += len(page.envelopes)
        logger.info("%d envelope(s) found so far", len(collected))

    if len(collected) > max_results:
        collected = collected[:max_results]
    logger.info("Envelope search finished with %d envelope(s)", len(collected))
    return collected

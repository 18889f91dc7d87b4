"""
Card-grid scraper for competition listing pages.

Use Case: Pages that render each competition as a repeated card element
with a nested title (e.g. HKU Business School competitions page).

No dates are published on the cards, so occurs_at defaults to fetch time.
"""

from datetime import datetime
from typing import Any, Optional

import structlog
from bs4 import BeautifulSoup

from ..errors import ParseSkip
from ..models import EventRecord
from .base import SourceAdapter

logger = structlog.get_logger()

HKU_URL = "https://ug.hkubs.hku.hk/competition"
HKU_CARD_SELECTOR = "a.card-blk__item"
HKU_TITLE_SELECTOR = "p.card-blk__title"


class HtmlCardAdapter(SourceAdapter):
    """Extract one candidate per card element."""

    kind = "html_cards"

    def __init__(
        self,
        source_id: str,
        url: str,
        card_selector: str,
        title_selector: str,
        **kwargs: Any,
    ):
        super().__init__(source_id, url, **kwargs)
        self.card_selector = card_selector
        self.title_selector = title_selector

    def extract(
        self, raw: str | bytes, fetched_at: Optional[datetime] = None
    ) -> list[EventRecord]:
        fetched_at = self._fetch_time(fetched_at)
        soup = BeautifulSoup(raw or "", "html.parser")

        candidates: list[EventRecord] = []
        for card in soup.select(self.card_selector):
            try:
                title = _card_title(card, self.title_selector)
            except ParseSkip as e:
                logger.debug("card_skipped", source=self.source_id, reason=str(e))
                continue
            candidates.append(self.make_candidate(title, fetched_at))

        logger.debug(
            "cards_extracted", source=self.source_id, count=len(candidates)
        )
        return candidates


def _card_title(card, title_selector: str) -> str:
    """Title text of the first matching sub-element."""
    element = card.select_one(title_selector)
    if element is None:
        raise ParseSkip("card has no title element")

    title = element.get_text(" ", strip=True)
    if not title:
        raise ParseSkip("card title is empty")
    return title

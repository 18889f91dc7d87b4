"""
JSON API adapter for event feeds.

Use Case: Sources with a public JSON listing endpoint (e.g. CTFTime's
/api/v1/events/). Items must carry title, start and finish; everything
else is optional enrichment.
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from dateutil import parser as date_parser

from ..errors import ParseSkip
from ..models import EventRecord
from .base import SourceAdapter

logger = structlog.get_logger()

CTFTIME_URL = "https://ctftime.org/api/v1/events/"
CTFTIME_LIMIT = 20

REQUIRED_FIELDS = ("title", "start", "finish")


class JsonApiAdapter(SourceAdapter):
    """Extract candidates from a JSON list of event objects."""

    kind = "json_api"

    def __init__(
        self,
        source_id: str,
        url: str,
        default_location: str = "Online",
        **kwargs: Any,
    ):
        super().__init__(source_id, url, **kwargs)
        self.default_location = default_location

    def extract(
        self, raw: str | bytes, fetched_at: Optional[datetime] = None
    ) -> list[EventRecord]:
        fetched_at = self._fetch_time(fetched_at)

        try:
            items = json.loads(raw)
        except (ValueError, TypeError) as e:
            logger.warning("json_payload_invalid", source=self.source_id, error=str(e))
            return []

        if not isinstance(items, list):
            logger.warning(
                "json_payload_not_a_list",
                source=self.source_id,
                payload_type=type(items).__name__,
            )
            return []

        candidates: list[EventRecord] = []
        for item in items:
            try:
                candidates.append(self._parse_item(item, fetched_at))
            except ParseSkip as e:
                logger.debug("item_skipped", source=self.source_id, reason=str(e))

        logger.debug("items_extracted", source=self.source_id, count=len(candidates))
        return candidates

    def _parse_item(self, item: Any, fetched_at: datetime) -> EventRecord:
        """Map one API object to a candidate."""
        if not isinstance(item, dict):
            raise ParseSkip("item is not an object")

        for field in REQUIRED_FIELDS:
            if not isinstance(item.get(field), str):
                raise ParseSkip(f"missing {field}")

        title = item["title"].strip()
        if not title:
            raise ParseSkip("empty title")

        return self.make_candidate(
            title,
            parse_start(item["start"], fetched_at),
            description=_optional_text(item.get("description")),
            registration_link=_optional_text(item.get("url")),
            max_participants=_optional_int(item.get("max_team_size")),
            location=self.default_location,
        )


def parse_start(value: str, fallback: datetime) -> datetime:
    """Parse an ISO-8601 timestamp as UTC, or return the fallback."""
    try:
        parsed = date_parser.isoparse(value)
    except (ValueError, TypeError, OverflowError):
        return fallback

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _optional_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _optional_int(value: Any) -> Optional[int]:
    # bool is an int subclass; JSON true/false is not a team size
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None

import logging
from datetime import datetime, timezone

import feedparser
import httpx
from bs4 import BeautifulSoup
from dateutil import parser as date_parser
from pydantic import ValidationError

from src.modules.fetcher.schemas import RawItem
from src.modules.persistence.schemas import SourceRecord, SourceType

logger = logging.getLogger(__name__)

MAX_RSS_ENTRIES = 10
REQUEST_TIMEOUT = 30.0

_HEADERS = {
    "User-Agent": "ai-news-ingest/1.0 (+feed reader)",
    "Accept": (
        "application/rss+xml, application/atom+xml, application/json, "
        "application/xml;q=0.9, text/xml;q=0.9, */*;q=0.8"
    ),
}


def _html_to_text(markup: str) -> str:
    if not markup:
        return ""
    return BeautifulSoup(markup, "lxml").get_text(" ", strip=True)


def _struct_to_datetime(parsed) -> datetime:
    return datetime(*parsed[:6], tzinfo=timezone.utc)


def _text_field(value) -> str:
    return value.strip() if isinstance(value, str) else ""


class FetcherService:
    """Pulls raw candidate items from RSS/Atom feeds and JSON article APIs.

    ``fetch_items`` never raises: any transport, status or parse failure is
    logged and the source contributes no items to the run.
    """

    def __init__(
        self,
        max_rss_entries: int = MAX_RSS_ENTRIES,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self._max_rss_entries = max_rss_entries
        self._timeout = timeout

    # ── HTTP layer ──────────────────────────────────────────────

    async def _get(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        response = await client.get(
            url,
            headers=_HEADERS,
            timeout=self._timeout,
            follow_redirects=True,
        )
        response.raise_for_status()
        return response

    # ── RSS / Atom ──────────────────────────────────────────────

    @staticmethod
    def _entry_content(entry) -> str:
        # snippet -> full content -> entry summary
        full = ""
        if entry.get("content"):
            full = entry["content"][0].get("value", "") or ""
        summary = entry.get("summary", "") or ""
        snippet = _html_to_text(full or summary)
        return next((value for value in (snippet, full, summary) if value), "")

    @staticmethod
    def _entry_image(entry) -> str | None:
        for enclosure in entry.get("enclosures") or []:
            href = enclosure.get("href")
            if href:
                return href
        return None

    def _parse_feed(self, payload: bytes, fetched_at: datetime) -> list[RawItem]:
        feed = feedparser.parse(payload)
        if feed.bozo and not feed.entries:
            raise ValueError(f"Malformed feed: {feed.get('bozo_exception')}")

        items: list[RawItem] = []
        for entry in feed.entries[: self._max_rss_entries]:
            title = (entry.get("title") or "").strip()
            link = (entry.get("link") or "").strip()
            if not title or not link:
                continue

            parsed = entry.get("published_parsed") or entry.get("updated_parsed")
            items.append(
                RawItem(
                    title=title,
                    content=self._entry_content(entry),
                    url=link,
                    published_at=_struct_to_datetime(parsed) if parsed else fetched_at,
                    image_url=self._entry_image(entry),
                )
            )
        return items

    # ── JSON API ────────────────────────────────────────────────

    @staticmethod
    def _parse_date(value, fallback: datetime) -> datetime:
        if not value:
            return fallback
        try:
            parsed = date_parser.parse(str(value))
        except (ValueError, OverflowError):
            logger.warning("Could not parse date '%s', using fetch time", value)
            return fallback
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def _parse_api(self, data, fetched_at: datetime) -> list[RawItem]:
        articles = data.get("articles") if isinstance(data, dict) else None
        if not isinstance(articles, list):
            logger.warning("API response has no 'articles' array")
            return []

        items: list[RawItem] = []
        for entry in articles:
            if not isinstance(entry, dict):
                continue
            try:
                items.append(
                    RawItem(
                        title=_text_field(entry.get("title")),
                        content=_text_field(entry.get("description"))
                        or _text_field(entry.get("content")),
                        url=_text_field(entry.get("url")),
                        published_at=self._parse_date(
                            entry.get("publishedAt") or entry.get("date"), fetched_at
                        ),
                        image_url=_text_field(entry.get("image"))
                        or _text_field(entry.get("urlToImage"))
                        or None,
                    )
                )
            except ValidationError as exc:
                logger.warning("Skipping malformed API article: %s", exc.errors()[0]["msg"])
        return items

    # ── Entry point ─────────────────────────────────────────────

    async def fetch_items(
        self, source: SourceRecord, client: httpx.AsyncClient
    ) -> list[RawItem]:
        if not source.api_url or source.type == SourceType.CUSTOM:
            return []

        fetched_at = datetime.now(timezone.utc)
        try:
            response = await self._get(client, source.api_url)
            if source.type == SourceType.RSS:
                items = self._parse_feed(response.content, fetched_at)
            else:
                items = self._parse_api(response.json(), fetched_at)
        except Exception:
            logger.exception("Failed to fetch items from %s (%s)", source.name, source.api_url)
            return []

        logger.info("Fetched %d items from %s", len(items), source.name)
        return items

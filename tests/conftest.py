import os

os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from collections.abc import Callable  # noqa: E402
from datetime import datetime, timezone  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from langchain_core.messages import AIMessage  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from src.config.database import Base  # noqa: E402
from src.modules.persistence.models import Source  # noqa: E402
from src.modules.persistence.schemas import NewArticle  # noqa: E402
from src.modules.persistence.service import PersistenceService  # noqa: E402
from src.modules.summarizer.schemas import ModelPricing  # noqa: E402

EXAMPLE_PRICING = ModelPricing(input_per_1k=0.00015, output_per_1k=0.0006)


class FakeChatModel:
    """Stands in for a LangChain chat model; records every message list it receives.

    ``handler`` maps the messages to an ``AIMessage`` or raises.
    """

    def __init__(self, handler: Callable) -> None:
        self._handler = handler
        self.calls: list[list] = []

    async def ainvoke(self, messages):
        self.calls.append(messages)
        return self._handler(messages)


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def summary_message(text: str = "A concise summary.", prompt: int = 1000, completion: int = 500):
    return AIMessage(
        content=text,
        usage_metadata={
            "input_tokens": prompt,
            "output_tokens": completion,
            "total_tokens": prompt + completion,
        },
    )


def build_rss(entries: list[dict]) -> bytes:
    items = []
    for entry in entries:
        parts = []
        if entry.get("title"):
            parts.append(f"<title>{entry['title']}</title>")
        if entry.get("link"):
            parts.append(f"<link>{entry['link']}</link>")
        if entry.get("description") is not None:
            parts.append(f"<description><![CDATA[{entry['description']}]]></description>")
        if entry.get("encoded"):
            parts.append(f"<content:encoded><![CDATA[{entry['encoded']}]]></content:encoded>")
        if entry.get("pub_date"):
            parts.append(f"<pubDate>{entry['pub_date']}</pubDate>")
        if entry.get("image"):
            parts.append(f'<enclosure url="{entry["image"]}" type="image/jpeg" length="0"/>')
        items.append(f"<item>{''.join(parts)}</item>")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">'
        "<channel><title>Test Feed</title><link>https://example.com</link>"
        "<description>Test</description>"
        f"{''.join(items)}"
        "</channel></rss>"
    ).encode()


def rss_entries(count: int, prefix: str = "https://example.com/post") -> list[dict]:
    return [
        {
            "title": f"Post {i}",
            "link": f"{prefix}/{i}",
            "description": f"<p>Body of post {i}</p>",
            "pub_date": "Mon, 06 Jan 2025 12:00:00 GMT",
        }
        for i in range(count)
    ]


def mock_client_factory(routes: dict[str, httpx.Response | Exception]):
    """Client factory whose transport serves fixed responses per URL."""
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        requested.append(url)
        route = routes.get(url)
        if route is None:
            return httpx.Response(404)
        if isinstance(route, Exception):
            raise route
        return httpx.Response(route.status_code, headers=route.headers, content=route.content)

    def factory() -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    factory.requested = requested
    return factory


def new_article(url: str, **overrides) -> NewArticle:
    fields = {
        "title": "Stored article",
        "summary": "Stored summary",
        "category": "ml",
        "source": "Example",
        "url": url,
        "image_url": None,
        "published_at": datetime(2025, 1, 6, 12, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return NewArticle(**fields)


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def store(session_factory) -> PersistenceService:
    return PersistenceService(session_factory)


@pytest.fixture
def add_source(session_factory):
    async def _add(name: str, type: str = "rss", api_url: str | None = None, is_active: bool = True):
        async with session_factory() as session:
            source = Source(name=name, type=type, api_url=api_url, is_active=is_active)
            session.add(source)
            await session.commit()
            return source.id

    return _add


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()

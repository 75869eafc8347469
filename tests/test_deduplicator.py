from types import SimpleNamespace

from conftest import new_article
from src.modules.deduplicator.service import DeduplicatorService, deduplicate_by_image


class BrokenStore:
    async def find_article_id_by_url(self, url: str) -> int | None:
        raise ConnectionError("database unavailable")


async def test_detects_stored_url(store):
    await store.insert_article(new_article("https://example.com/a"))
    deduplicator = DeduplicatorService(store)

    assert await deduplicator.is_duplicate("https://example.com/a") is True
    assert await deduplicator.is_duplicate("https://example.com/b") is False


async def test_match_is_exact_and_case_sensitive(store):
    await store.insert_article(new_article("https://example.com/Post"))
    deduplicator = DeduplicatorService(store)

    assert await deduplicator.is_duplicate("https://example.com/post") is False
    assert await deduplicator.is_duplicate("https://example.com/Post/") is False
    assert await deduplicator.is_duplicate("https://example.com/Post?utm=x") is False


async def test_store_error_fails_open_by_default():
    deduplicator = DeduplicatorService(BrokenStore())

    assert await deduplicator.is_duplicate("https://example.com/a") is False


async def test_store_error_can_fail_closed():
    deduplicator = DeduplicatorService(BrokenStore(), fail_open=False)

    assert await deduplicator.is_duplicate("https://example.com/a") is True


def test_image_dedup_keeps_first_occurrence():
    articles = [
        SimpleNamespace(id=1, image_url="https://img/x.png"),
        SimpleNamespace(id=2, image_url="https://img/y.png"),
        SimpleNamespace(id=3, image_url="https://img/x.png"),
    ]

    assert [a.id for a in deduplicate_by_image(articles)] == [1, 2]


def test_image_dedup_keeps_articles_without_image():
    articles = [
        SimpleNamespace(id=1, image_url=None),
        SimpleNamespace(id=2, image_url=""),
        SimpleNamespace(id=3, image_url=None),
    ]

    assert [a.id for a in deduplicate_by_image(articles)] == [1, 2, 3]

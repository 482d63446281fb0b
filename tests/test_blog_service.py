"""
Comment submission and blog entry reads against the in-memory store.
"""

from __future__ import annotations

import asyncio

import pytest

from blog import repository, service
from core.errors import NotFound, StoreUnavailable, ValidationFailed
from notifications.dispatcher import NotificationDispatcher

from .conftest import OPERATOR
from .fakes import RecordingTransport, html_part

ENTRY = {"entryID": "first-post", "title": "First post", "body": "Hello", "comments": []}


@pytest.fixture
def seeded(store):
    store.seed(repository.COLLECTION, repository.KEY_FIELD, ENTRY)
    return store


def test_valid_comment_is_appended_at_the_end(seeded, dispatcher):
    seeded.seed(
        repository.COLLECTION,
        repository.KEY_FIELD,
        {**ENTRY, "comments": [{"userName": "ada", "commentContent": "earlier comment"}]},
    )
    payload = {"userName": "grace", "commentContent": "Nice write-up!"}

    updated = asyncio.run(service.submit_comment("first-post", payload, dispatcher=dispatcher))

    assert len(updated["comments"]) == 2
    assert updated["comments"][-1] == payload
    assert updated["title"] == "First post"
    assert seeded.get(repository.COLLECTION, "first-post")["comments"][-1] == payload


def test_concurrent_comments_are_not_lost(seeded, dispatcher):
    """
    Exercises the service flow under interleaving. The in-memory push is
    atomic itself, so the store-level guarantee is covered by the UPDATE
    shape check in test_db_session.test_push_is_a_single_atomic_update.
    """
    count = 20

    async def submit_all():
        await asyncio.gather(
            *(
                service.submit_comment(
                    "first-post",
                    {"userName": f"user{i:02d}", "commentContent": f"comment number {i}"},
                    dispatcher=dispatcher,
                )
                for i in range(count)
            )
        )

    asyncio.run(submit_all())

    comments = seeded.get(repository.COLLECTION, "first-post")["comments"]
    assert len(comments) == count
    assert {c["userName"] for c in comments} == {f"user{i:02d}" for i in range(count)}


def test_short_user_name_is_rejected_without_touching_the_store(seeded, dispatcher, transport):
    with pytest.raises(ValidationFailed) as exc_info:
        asyncio.run(
            service.submit_comment(
                "first-post",
                {"userName": "ab", "commentContent": "long enough"},
                dispatcher=dispatcher,
            )
        )

    assert [e["field"] for e in exc_info.value.errors] == ["userName"]
    assert seeded.opened == 0
    assert seeded.writes == []
    assert transport.sent == []


def test_short_comment_content_is_rejected(seeded, dispatcher):
    with pytest.raises(ValidationFailed) as exc_info:
        asyncio.run(
            service.submit_comment(
                "first-post",
                {"userName": "grace", "commentContent": "hey"},
                dispatcher=dispatcher,
            )
        )

    assert [e["field"] for e in exc_info.value.errors] == ["commentContent"]
    assert seeded.writes == []


def test_comment_on_missing_entry_is_not_found_and_writes_nothing(seeded, dispatcher, transport):
    with pytest.raises(NotFound):
        asyncio.run(
            service.submit_comment(
                "no-such-post",
                {"userName": "grace", "commentContent": "Nice write-up!"},
                dispatcher=dispatcher,
            )
        )

    assert seeded.writes == []
    assert transport.sent == []


def test_failed_notification_does_not_fail_the_comment(seeded):
    failing = NotificationDispatcher(RecordingTransport(fail=True), sender_address="site@example.com")
    payload = {"userName": "grace", "commentContent": "Nice write-up!"}

    updated = asyncio.run(service.submit_comment("first-post", payload, dispatcher=failing))

    assert updated["comments"] == [payload]
    assert seeded.get(repository.COLLECTION, "first-post")["comments"] == [payload]


def test_notification_goes_to_operator_with_escaped_content(seeded, dispatcher, transport):
    payload = {"userName": "<b>mallory</b>", "commentContent": "<script>alert(1)</script>"}

    asyncio.run(service.submit_comment("first-post", payload, dispatcher=dispatcher))

    assert len(transport.sent) == 1
    message = transport.sent[0]
    assert message["To"] == OPERATOR
    assert message["Subject"] == "New Comment - first-post"
    html = html_part(message)
    assert "<script>" not in html
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
    assert "&lt;b&gt;mallory&lt;/b&gt;" in html


def test_store_failure_on_append_skips_notification(seeded, dispatcher, transport, monkeypatch):
    async def broken_append(entry_id, comment):
        raise StoreUnavailable("Document store operation failed.")

    monkeypatch.setattr(repository, "append_comment", broken_append)

    with pytest.raises(StoreUnavailable):
        asyncio.run(
            service.submit_comment(
                "first-post",
                {"userName": "grace", "commentContent": "Nice write-up!"},
                dispatcher=dispatcher,
            )
        )

    assert transport.sent == []


def test_get_missing_entry_is_not_found(store):
    with pytest.raises(NotFound):
        asyncio.run(service.get_entry("missing"))


def test_list_entries_on_empty_collection_is_empty_list(store):
    assert asyncio.run(service.list_entries()) == []


def test_sessions_are_released(seeded, dispatcher):
    asyncio.run(
        service.submit_comment(
            "first-post",
            {"userName": "grace", "commentContent": "Nice write-up!"},
            dispatcher=dispatcher,
        )
    )
    with pytest.raises(NotFound):
        asyncio.run(service.get_entry("missing"))

    assert seeded.opened == seeded.released == 3


def test_insert_entries_defaults_comments_and_keeps_content(store):
    summary = asyncio.run(
        service.insert_entries(
            {"blogEntries": [{"entryID": "a", "title": "A"}, {"entryID": "b", "title": "B", "tags": ["x"]}]}
        )
    )

    assert summary == {"acknowledged": True, "insertedCount": 2, "insertedIds": ["a", "b"]}
    assert store.get(repository.COLLECTION, "a") == {"entryID": "a", "title": "A", "comments": []}
    assert store.get(repository.COLLECTION, "b")["tags"] == ["x"]


def test_insert_entries_stores_existing_comments_as_given(store):
    old_comment = {"userName": "Al", "commentContent": "ok", "date": "2019-01-01"}

    asyncio.run(service.insert_entries({"blogEntries": [{"entryID": "old", "comments": [old_comment]}]}))

    assert asyncio.run(service.get_entry("old"))["comments"] == [old_comment]


def test_insert_entries_requires_entry_id(store):
    with pytest.raises(ValidationFailed) as exc_info:
        asyncio.run(service.insert_entries({"blogEntries": [{"title": "no id"}]}))

    assert exc_info.value.errors[0]["field"] == "blogEntries.0.entryID"
    assert store.writes == []

from __future__ import annotations

import json
from typing import List

import pytest

from conftest import FakeFeedbackStore, make_item
from feedbacks.errors import DecodingError, InputError, StoreError
from feedbacks.query import (
    DEFAULT_END_DATE,
    DEFAULT_START_DATE,
    FeedbackQuery,
    PageCursor,
)
from feedbacks.store import RawItem
from feedbacks.values import NumberValue, StringValue


def _many_items(n: int) -> List[RawItem]:
    return [
        make_item(f"fb-{idx:03d}", f"2026-01-{1 + idx % 28:02d}T{idx % 24:02d}:00:00Z", rating=str(idx % 5 + 1))
        for idx in range(n)
    ]


@pytest.mark.parametrize("start,end", [(None, None), ("", "")])
def test_absent_or_empty_dates_use_default_window(
    feedback_query: FeedbackQuery, fake_store: FakeFeedbackStore, start, end
) -> None:
    result = feedback_query.query(start_date=start, end_date=end)

    assert result.effective_start_date == "2020-01-01T00:00:00Z"
    assert result.effective_end_date == "2030-12-31T23:59:59Z"
    assert fake_store.calls[0]["start"] == DEFAULT_START_DATE
    assert fake_store.calls[0]["end"] == DEFAULT_END_DATE


def test_query_returns_normalized_records_in_created_order(feedback_query: FeedbackQuery) -> None:
    result = feedback_query.query("2026-01-01", "2026-01-10")

    assert [r["feedbackId"] for r in result.records] == ["fb-1", "fb-2", "fb-3"]
    assert result.records[0]["rating"] == "4"
    assert result.next_cursor is None


def test_window_bounds_are_inclusive(fake_store: FakeFeedbackStore) -> None:
    query = FeedbackQuery(store=fake_store)

    result = query.query("2026-01-05T15:00:00Z", "2026-01-06T10:00:00Z")

    assert [r["feedbackId"] for r in result.records] == ["fb-2", "fb-3"]


def test_urgency_filter_is_exact_and_echoed(feedback_query: FeedbackQuery, fake_store: FakeFeedbackStore) -> None:
    result = feedback_query.query(urgency="alta")

    assert [r["feedbackId"] for r in result.records] == ["fb-2"]
    assert fake_store.calls[0]["urgency"] == "alta"
    assert result.to_response()["urgency"] == "alta"

    assert feedback_query.query(urgency="ALTA").records == []


def test_response_omits_urgency_and_token_when_not_applicable(feedback_query: FeedbackQuery) -> None:
    response = feedback_query.query().to_response()

    assert response["count"] == 3
    assert len(response["items"]) == 3
    assert "urgency" not in response
    assert "nextToken" not in response


def test_cursor_is_passed_to_the_store_verbatim(fake_store: FakeFeedbackStore) -> None:
    query = FeedbackQuery(store=fake_store, page_size=2)

    first = query.query()
    assert first.next_cursor is not None
    token = first.to_response()["nextToken"]
    assert token == {
        "pk": {"S": "FEEDBACK"},
        "feedbackId": {"S": "fb-2"},
        "createdAt": {"S": "2026-01-05T15:00:00Z"},
    }

    second = query.query(cursor=PageCursor.from_token(token))

    assert fake_store.calls[1]["exclusive_start_key"] == token
    assert [r["feedbackId"] for r in second.records] == ["fb-3"]
    assert second.next_cursor is None


def test_paging_visits_every_record_exactly_once() -> None:
    items = _many_items(23)
    query = FeedbackQuery(store=FakeFeedbackStore(items), page_size=5)

    seen: List[str] = []
    pages = 0
    cursor = None
    while True:
        result = query.query(cursor=cursor)
        pages += 1
        seen.extend(r["feedbackId"] for r in result.records)
        if result.next_cursor is None:
            break
        cursor = PageCursor.from_token(json.loads(json.dumps(result.to_response()["nextToken"])))

    assert pages == 5
    assert len(seen) == len(set(seen)) == 23
    assert sorted(seen) == sorted(item["feedbackId"]["S"] for item in items)


def test_iter_all_follows_cursors_until_exhausted() -> None:
    store = FakeFeedbackStore(_many_items(12))
    query = FeedbackQuery(store=store, page_size=4)

    records = list(query.iter_all())

    assert len(records) == 12
    assert len(store.calls) == 3


def test_limit_overrides_page_size(feedback_query: FeedbackQuery, fake_store: FakeFeedbackStore) -> None:
    result = feedback_query.query(limit=1)

    assert fake_store.calls[0]["limit"] == 1
    assert len(result.records) == 1
    assert result.next_cursor is not None


def test_store_errors_propagate_unchanged() -> None:
    error = StoreError("Table not found", code="ResourceNotFoundException")
    store = FakeFeedbackStore(error=error)

    with pytest.raises(StoreError) as excinfo:
        FeedbackQuery(store=store).query()

    assert excinfo.value is error
    assert len(store.calls) == 1


def test_malformed_rows_raise_decoding_error() -> None:
    store = FakeFeedbackStore([make_item("fb-1", "2026-01-05T10:00:00Z", rating=None, bad={"Z": "?"})])

    with pytest.raises(DecodingError):
        FeedbackQuery(store=store).query()


def test_cursor_accepts_plain_and_json_tokens() -> None:
    plain = PageCursor.from_token({"feedbackId": "fb-123", "pk": "FEEDBACK"})
    assert plain.to_store_key() == {"feedbackId": {"S": "fb-123"}, "pk": {"S": "FEEDBACK"}}

    encoded = PageCursor.from_token('{"feedbackId": {"S": "fb-1"}, "seq": {"N": "7"}}')
    assert encoded.key == (("feedbackId", StringValue("fb-1")), ("seq", NumberValue("7")))


@pytest.mark.parametrize(
    "token",
    [
        "not json",
        "[1, 2]",
        {},
        {"feedbackId": {"BOOL": True}},
        {"feedbackId": {"L": []}},
        {"feedbackId": {"X": "1"}},
        {"feedbackId": 5},
    ],
)
def test_invalid_cursor_tokens_raise_input_error(token: object) -> None:
    with pytest.raises(InputError):
        PageCursor.from_token(token)

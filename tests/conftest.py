from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from feedbacks.config import Settings
from feedbacks.query import FeedbackQuery
from feedbacks.store import RawItem, StorePage


def make_item(
    feedback_id: str,
    created_at: Optional[str] = None,
    rating: Optional[str] = None,
    urgency: Optional[str] = None,
    **extra: Any,
) -> RawItem:
    """Build a feedback row in the store's wire form."""
    item: RawItem = {"pk": {"S": "FEEDBACK"}, "feedbackId": {"S": feedback_id}}
    if created_at is not None:
        item["createdAt"] = {"S": created_at}
    if rating is not None:
        item["rating"] = {"N": rating}
    if urgency is not None:
        item["urgency"] = {"S": urgency}
    item.update(extra)
    return item


class FakeFeedbackStore:
    """
    In-memory FeedbackStore with the table's query semantics.

    Rows are ordered by (createdAt, feedbackId); a page ends after `limit`
    matching rows and carries a last evaluated key only when more remain.
    """

    def __init__(self, items: Optional[List[RawItem]] = None, error: Optional[Exception] = None) -> None:
        self.items = list(items or [])
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    @staticmethod
    def _sort_key(item: RawItem) -> tuple:
        return (item.get("createdAt", {}).get("S", ""), item["feedbackId"]["S"])

    def query_page(
        self,
        start: str,
        end: str,
        urgency: Optional[str],
        exclusive_start_key: Optional[RawItem],
        limit: int,
    ) -> StorePage:
        self.calls.append(
            {
                "start": start,
                "end": end,
                "urgency": urgency,
                "exclusive_start_key": exclusive_start_key,
                "limit": limit,
            }
        )
        if self.error is not None:
            raise self.error

        matching = [
            item
            for item in sorted(self.items, key=self._sort_key)
            if "createdAt" in item and start <= item["createdAt"]["S"] <= end
            and (urgency is None or item.get("urgency", {}).get("S") == urgency)
        ]

        if exclusive_start_key is not None:
            resume_after = (exclusive_start_key["createdAt"]["S"], exclusive_start_key["feedbackId"]["S"])
            matching = [item for item in matching if self._sort_key(item) > resume_after]

        page = matching[:limit]
        last_key = None
        if len(matching) > limit:
            last = page[-1]
            last_key = {
                "pk": last["pk"],
                "feedbackId": last["feedbackId"],
                "createdAt": last["createdAt"],
            }
        return StorePage(items=page, last_evaluated_key=last_key)


class FakeArchive:
    def __init__(self, reports: Optional[Dict[str, str]] = None) -> None:
        self.reports = dict(reports or {})
        self.events: List[str] = []

    def ensure_bucket(self) -> None:
        self.events.append("ensure_bucket")

    def put_report(self, key: str, text: str) -> None:
        self.events.append(f"put:{key}")
        self.reports[key] = text

    def get_report(self, key: str) -> str:
        self.events.append(f"get:{key}")
        return self.reports[key]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        table_name="test-feedbacks-table",
        index_name="pk-createdAt-index",
        partition_value="FEEDBACK",
        reports_bucket="test-reports-bucket",
        default_page_size=100,
        region="us-east-1",
        recipient_email="test@example.com",
        source_email="no-reply@example.com",
        mail_api_url="https://mail.example.test/api/send",
        mail_api_token="test-token",
        alert_sender_email="alerts@example.com",
        alert_recipient_email="oncall@example.com",
    )


@pytest.fixture
def sample_items() -> List[RawItem]:
    return [
        make_item("fb-1", "2026-01-05T10:00:00Z", rating="4", urgency="baixa"),
        make_item("fb-2", "2026-01-05T15:00:00Z", rating="5", urgency="alta"),
        make_item("fb-3", "2026-01-06T10:00:00Z", rating="3", urgency="media"),
    ]


@pytest.fixture
def fake_store(sample_items: List[RawItem]) -> FakeFeedbackStore:
    return FakeFeedbackStore(sample_items)


@pytest.fixture
def feedback_query(fake_store: FakeFeedbackStore) -> FeedbackQuery:
    return FeedbackQuery(store=fake_store, page_size=100)

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from feedbacks.errors import DecodingError, InputError
from feedbacks.store import FeedbackStore, RawItem
from feedbacks.values import (
    NumberValue,
    PlainValue,
    StringValue,
    TaggedValue,
    decode,
    encode,
    normalize_items,
)

logger = logging.getLogger(__name__)

DEFAULT_START_DATE = "2020-01-01T00:00:00Z"
DEFAULT_END_DATE = "2030-12-31T23:59:59Z"
DEFAULT_PAGE_SIZE = 100


@dataclass(frozen=True)
class PageCursor:
    """
    Continuation point of a paginated query: the store's last evaluated key.

    Opaque to this project; it is only validated, carried and handed back to
    the store verbatim. Key members must be strings or numbers.
    """

    key: Tuple[Tuple[str, TaggedValue], ...]

    def __post_init__(self) -> None:
        if not self.key:
            raise InputError("Cursor key must not be empty")
        for name, value in self.key:
            if not isinstance(value, (StringValue, NumberValue)):
                raise InputError(f"Cursor attribute {name!r} must be a string or number")

    @classmethod
    def from_store_key(cls, raw: Mapping[str, Any]) -> PageCursor:
        return cls(key=tuple((str(name), decode(wire)) for name, wire in raw.items()))

    @classmethod
    def from_token(cls, token: Any) -> PageCursor:
        """
        Rebuild a cursor from a caller-supplied nextToken.

        Accepts the wire-form mapping returned by to_token(), the same mapping
        JSON-encoded (query-string callers), or a mapping of plain strings.
        """
        if isinstance(token, str):
            try:
                token = json.loads(token)
            except json.JSONDecodeError as e:
                raise InputError(f"Invalid nextToken: {e}") from e
        if not isinstance(token, Mapping):
            raise InputError("Invalid nextToken: expected an object")

        key: List[Tuple[str, TaggedValue]] = []
        for name, raw in token.items():
            if isinstance(raw, str):
                key.append((str(name), StringValue(raw)))
                continue
            try:
                key.append((str(name), decode(raw)))
            except DecodingError as e:
                raise InputError(f"Invalid nextToken attribute {name!r}: {e}") from e
        return cls(key=tuple(key))

    def to_store_key(self) -> RawItem:
        return {name: encode(value) for name, value in self.key}

    def to_token(self) -> Dict[str, Any]:
        return self.to_store_key()


@dataclass
class QueryResult:
    records: List[Dict[str, PlainValue]]
    effective_start_date: str
    effective_end_date: str
    effective_urgency: Optional[str] = None
    next_cursor: Optional[PageCursor] = None

    def to_response(self) -> Dict[str, Any]:
        response: Dict[str, Any] = {
            "items": self.records,
            "count": len(self.records),
            "startDate": self.effective_start_date,
            "endDate": self.effective_end_date,
        }
        if self.next_cursor is not None:
            response["nextToken"] = self.next_cursor.to_token()
        if self.effective_urgency:
            response["urgency"] = self.effective_urgency
        return response


def resolve_window(start_date: Optional[str], end_date: Optional[str]) -> Tuple[str, str]:
    """Apply the default window to absent or empty bounds."""
    return (start_date or DEFAULT_START_DATE, end_date or DEFAULT_END_DATE)


@dataclass
class FeedbackQuery:
    """
    Paginated createdAt-window queries over a FeedbackStore.

    Holds no state between calls; the store is the only collaborator.
    """

    store: FeedbackStore
    page_size: int = DEFAULT_PAGE_SIZE

    def query(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        urgency: Optional[str] = None,
        cursor: Optional[PageCursor] = None,
        limit: Optional[int] = None,
    ) -> QueryResult:
        """
        Fetch one page of normalized feedback records.

        Args:
            start_date: Inclusive lower bound on createdAt (default 2020-01-01T00:00:00Z)
            end_date: Inclusive upper bound on createdAt (default 2030-12-31T23:59:59Z)
            urgency: Exact-match urgency filter, case-sensitive as supplied
            cursor: Continuation point returned by a previous call
            limit: Page size override

        Returns:
            QueryResult with the page's records and, when more matching
            records remain, the cursor to resume from

        Failure modes:
            - StoreError from the store propagates unchanged (no retries)
            - DecodingError if a row holds a value outside the tagged model
        """
        start, end = resolve_window(start_date, end_date)
        urgency = urgency or None
        page = self.store.query_page(
            start,
            end,
            urgency,
            cursor.to_store_key() if cursor is not None else None,
            limit or self.page_size,
        )

        records = normalize_items(page.items)
        next_cursor = (
            PageCursor.from_store_key(page.last_evaluated_key)
            if page.last_evaluated_key
            else None
        )
        logger.info(
            "Fetched %d feedbacks between %s and %s (more=%s)",
            len(records),
            start,
            end,
            next_cursor is not None,
        )
        return QueryResult(
            records=records,
            effective_start_date=start,
            effective_end_date=end,
            effective_urgency=urgency,
            next_cursor=next_cursor,
        )

    def iter_all(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        urgency: Optional[str] = None,
    ) -> Iterator[Dict[str, PlainValue]]:
        """Yield every record of the window, following cursors until exhausted."""
        cursor: Optional[PageCursor] = None
        while True:
            result = self.query(start_date, end_date, urgency, cursor)
            yield from result.records
            if result.next_cursor is None:
                return
            cursor = result.next_cursor

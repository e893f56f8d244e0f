"""
List-feedbacks entry points.

Two event shapes are accepted:
  - direct invocation: {"startDate", "endDate", "urgency", "nextToken", "limit"}
  - API Gateway proxy: same fields under "queryStringParameters" (may be null),
    recognized by an "httpMethod" or "requestContext" key

Direct callers get the query response mapping or a raised FeedbackError.
HTTP-shaped callers always get {statusCode, headers, body} with a JSON body.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

import boto3
from botocore.config import Config

from feedbacks.config import MAX_PAGE_SIZE, load_settings_from_env
from feedbacks.errors import DecodingError, FeedbackError, InputError, StoreError
from feedbacks.query import FeedbackQuery, PageCursor
from feedbacks.store import DynamoFeedbackStore

logger = logging.getLogger(__name__)

_query: Optional[FeedbackQuery] = None


def _response(status_code: int, body: Any) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json", "Access-Control-Allow-Origin": "*"},
        "body": json.dumps(body, ensure_ascii=False),
    }


def _error(status_code: int, message: str) -> Dict[str, Any]:
    return _response(status_code, {"error": message})


def is_http_event(event: Mapping[str, Any]) -> bool:
    return "httpMethod" in event or "requestContext" in event


def _optional_str(params: Mapping[str, Any], name: str, strip: bool = True) -> Optional[str]:
    value = params.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InputError(f"{name} must be a string")
    if strip:
        value = value.strip()
    return value or None


def _parse_limit(params: Mapping[str, Any]) -> Optional[int]:
    raw = params.get("limit")
    if raw in (None, ""):
        return None
    try:
        limit = int(raw)
    except (TypeError, ValueError) as e:
        raise InputError(f"limit must be an integer, got {raw!r}") from e
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise InputError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    return limit


def run_query(params: Mapping[str, Any], query: FeedbackQuery) -> Dict[str, Any]:
    """Validate request parameters, run one page of the query, build the response."""
    token = params.get("nextToken")
    cursor = PageCursor.from_token(token) if token not in (None, "", {}) else None

    result = query.query(
        start_date=_optional_str(params, "startDate"),
        end_date=_optional_str(params, "endDate"),
        urgency=_optional_str(params, "urgency", strip=False),
        cursor=cursor,
        limit=_parse_limit(params),
    )
    return result.to_response()


def handle(event: Optional[Mapping[str, Any]], query: FeedbackQuery) -> Dict[str, Any]:
    event = event or {}

    if not is_http_event(event):
        try:
            return run_query(event, query)
        except FeedbackError as e:
            logger.error("Error listing feedbacks: %s", e)
            raise

    params = event.get("queryStringParameters") or {}
    try:
        return _response(200, run_query(params, query))
    except InputError as e:
        logger.warning("Rejected list request: %s", e)
        return _error(400, str(e))
    except (StoreError, DecodingError) as e:
        logger.error("Error listing feedbacks: %s", e)
        return _error(500, str(e))


def _get_query() -> FeedbackQuery:
    global _query
    if _query is None:
        settings = load_settings_from_env()
        client = boto3.client(
            "dynamodb",
            region_name=settings.region,
            config=Config(retries={"max_attempts": 3, "mode": "standard"}),
        )
        store = DynamoFeedbackStore(
            client,
            table_name=settings.table_name,
            index_name=settings.index_name,
            partition_value=settings.partition_value,
        )
        _query = FeedbackQuery(store=store, page_size=settings.default_page_size)
    return _query


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    return handle(event, _get_query())

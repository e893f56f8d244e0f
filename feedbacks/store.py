from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from botocore.exceptions import BotoCoreError, ClientError

from feedbacks.errors import StoreError

logger = logging.getLogger(__name__)

RawItem = Dict[str, Any]  # attribute name -> wire-form tagged value


@dataclass
class StorePage:
    """One page of raw rows as returned by the store, plus its continuation key."""

    items: List[RawItem]
    last_evaluated_key: Optional[RawItem] = None


class FeedbackStore(Protocol):
    """Range-query capability over the feedback table, ordered by createdAt."""

    def query_page(
        self,
        start: str,
        end: str,
        urgency: Optional[str],
        exclusive_start_key: Optional[RawItem],
        limit: int,
    ) -> StorePage:
        ...


class DynamoFeedbackStore:
    """
    FeedbackStore backed by a DynamoDB table.

    Every feedback row lives under the same partition value (pk = "FEEDBACK")
    with createdAt as the range key of `index_name`, so one query with a
    BETWEEN condition returns the window in chronological order.
    """

    def __init__(
        self,
        client: Any,
        table_name: str,
        index_name: Optional[str] = None,
        partition_value: str = "FEEDBACK",
    ) -> None:
        self.client = client
        self.table_name = table_name
        self.index_name = index_name
        self.partition_value = partition_value

    def build_request(
        self,
        start: str,
        end: str,
        urgency: Optional[str],
        exclusive_start_key: Optional[RawItem],
        limit: int,
    ) -> Dict[str, Any]:
        names = {"#pk": "pk", "#createdAt": "createdAt"}
        values: Dict[str, Any] = {
            ":pk": {"S": self.partition_value},
            ":start": {"S": start},
            ":end": {"S": end},
        }
        request: Dict[str, Any] = {
            "TableName": self.table_name,
            "KeyConditionExpression": "#pk = :pk AND #createdAt BETWEEN :start AND :end",
            "ScanIndexForward": True,
            "Limit": limit,
        }
        if self.index_name:
            request["IndexName"] = self.index_name

        if urgency:
            names["#urgency"] = "urgency"
            values[":urgency"] = {"S": urgency}
            request["FilterExpression"] = "#urgency = :urgency"

        request["ExpressionAttributeNames"] = names
        request["ExpressionAttributeValues"] = values

        if exclusive_start_key:
            request["ExclusiveStartKey"] = exclusive_start_key
        return request

    def query_page(
        self,
        start: str,
        end: str,
        urgency: Optional[str],
        exclusive_start_key: Optional[RawItem],
        limit: int,
    ) -> StorePage:
        request = self.build_request(start, end, urgency, exclusive_start_key, limit)
        try:
            response = self.client.query(**request)
        except ClientError as e:
            error = e.response.get("Error", {})
            code = error.get("Code")
            logger.error("Error querying table %s: %s", self.table_name, e)
            raise StoreError(error.get("Message") or str(e), code=code) from e
        except BotoCoreError as e:
            logger.error("Error querying table %s: %s", self.table_name, e)
            raise StoreError(str(e)) from e

        return StorePage(
            items=list(response.get("Items", [])),
            last_evaluated_key=response.get("LastEvaluatedKey") or None,
        )

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Settings:
    """
    Process-wide configuration, read once from the environment.

    Nothing here changes after load_settings_from_env() returns.
    """

    table_name: str
    index_name: Optional[str]  # None queries the base table directly
    partition_value: str
    reports_bucket: str
    default_page_size: int
    region: str
    recipient_email: str
    source_email: str
    mail_api_url: str
    mail_api_token: Optional[str]
    alert_sender_email: str
    alert_recipient_email: str


MAX_PAGE_SIZE = 1000


def _int_from_env(name: str, default: str) -> int:
    raw = os.environ.get(name, default).strip() or default
    try:
        value = int(raw)
    except ValueError as e:
        raise RuntimeError(f"Invalid {name}: expected an integer, got {raw!r}") from e
    if value < 1 or value > MAX_PAGE_SIZE:
        raise RuntimeError(f"Invalid {name}: must be between 1 and {MAX_PAGE_SIZE}")
    return value


def load_settings_from_env() -> Settings:
    return Settings(
        table_name=os.environ.get("TABLE_NAME", "FeedbacksTable"),
        index_name=os.environ.get("TABLE_INDEX_NAME", "pk-createdAt-index").strip() or None,
        partition_value=os.environ.get("FEEDBACK_PARTITION", "FEEDBACK"),
        reports_bucket=os.environ.get("REPORTS_BUCKET", "feedback-weekly-reports"),
        default_page_size=_int_from_env("DEFAULT_PAGE_SIZE", "100"),
        region=os.environ.get("AWS_REGION", "us-east-1"),
        recipient_email=os.environ.get("RECIPIENT_EMAIL", ""),
        source_email=os.environ.get("SOURCE_EMAIL", ""),
        mail_api_url=os.environ.get("MAILTRAP_API_URL", "https://send.api.mailtrap.io/api/send"),
        mail_api_token=os.environ.get("MAILTRAP_API_TOKEN", "").strip() or None,
        alert_sender_email=os.environ.get("ALERT_SENDER_EMAIL", "hello@demomailtrap.co"),
        alert_recipient_email=os.environ.get("ALERT_RECIPIENT_EMAIL", ""),
    )

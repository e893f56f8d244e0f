"""
Outbound notifications.

  - send_report_email: read a stored weekly report and e-mail it through SES
  - send_critical_alert: e-mail a single critical feedback through the
    transactional mail API (HTTP)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional

import boto3
import httpx
from botocore.exceptions import BotoCoreError, ClientError

from feedbacks.config import Settings, load_settings_from_env
from feedbacks.errors import InputError, NotificationError
from reports.archive import ReportArchive
from reports.statistics import parse_rating
from reports.weekly import build_archive

logger = logging.getLogger(__name__)

REPORT_SUBJECT = "Relatório Semanal de Feedbacks"
ALERT_SUBJECT = "🚨 Feedback Recebido"
ALERT_TIMEZONE = timezone(timedelta(hours=-3), "America/Sao_Paulo")  # no DST since 2019
CRITICAL_CATEGORY = "critical"
CRITICAL_RATING_THRESHOLD = 2


def send_report_email(
    report_key: Optional[str],
    archive: ReportArchive,
    ses_client: Any,
    settings: Settings,
) -> str:
    """
    E-mail a previously stored report to the configured recipient.

    Failure modes:
        - InputError if report_key is missing or blank (before any store access)
        - StoreError if the report cannot be read
        - NotificationError if SES rejects the message
    """
    if report_key is None or not str(report_key).strip():
        raise InputError("reportKey is required")

    logger.info("RECIPIENT_EMAIL: %s", settings.recipient_email)
    logger.info("SOURCE_EMAIL: %s", settings.source_email)
    logger.info("BUCKET: %s", settings.reports_bucket)

    text = archive.get_report(report_key)

    try:
        response = ses_client.send_email(
            Source=settings.source_email,
            Destination={"ToAddresses": [settings.recipient_email]},
            Message={
                "Subject": {"Data": REPORT_SUBJECT, "Charset": "UTF-8"},
                "Body": {"Text": {"Data": text, "Charset": "UTF-8"}},
            },
        )
    except (ClientError, BotoCoreError) as e:
        logger.error("Erro ao enviar e-mail do relatório %s: %s", report_key, e)
        raise NotificationError(str(e)) from e

    message_id = response.get("MessageId", "")
    logger.info("Relatório enviado para %s (MessageId: %s)", settings.recipient_email, message_id)
    return f"Relatório {report_key} enviado com sucesso para {settings.recipient_email}"


def notify_report_handler(event: Optional[Dict[str, Any]], context: Any) -> str:
    report_key = (event or {}).get("reportKey")
    settings = load_settings_from_env()
    ses_client = boto3.client("ses", region_name=settings.region)
    return send_report_email(report_key, build_archive(settings), ses_client, settings)


@dataclass(frozen=True)
class FeedbackEvent:
    """Payload of a feedback.created bus event."""

    feedback_id: str
    full_name: str
    category: str
    comment: str
    rating: int
    is_critical: bool

    @classmethod
    def from_detail(cls, detail: Mapping[str, Any]) -> FeedbackEvent:
        if not isinstance(detail, Mapping):
            raise InputError("Event detail must be an object")

        rating_value = parse_rating(detail.get("rating"))
        rating = int(rating_value) if rating_value is not None else 0
        category = str(detail.get("category") or "")

        flag = detail.get("isCritical")
        if isinstance(flag, bool):
            is_critical = flag
        else:
            is_critical = (
                category.lower() == CRITICAL_CATEGORY
                or (rating_value is not None and rating <= CRITICAL_RATING_THRESHOLD)
            )

        return cls(
            feedback_id=str(detail.get("feedbackId") or ""),
            full_name=str(detail.get("fullName") or ""),
            category=category,
            comment=str(detail.get("comment") or ""),
            rating=rating,
            is_critical=is_critical,
        )


def build_alert_payload(event: FeedbackEvent, settings: Settings, now: datetime) -> Dict[str, Any]:
    sent_at = now.astimezone(ALERT_TIMEZONE).strftime("%Y-%m-%d %H:%M:%S")
    return {
        "from": {"email": settings.alert_sender_email, "name": "Feedbacks"},
        "to": [{"email": settings.alert_recipient_email}],
        "subject": ALERT_SUBJECT,
        "text": (
            f"ID: {event.feedback_id}\n"
            f"Nome: {event.full_name}\n"
            f"Categoria: {event.category}\n"
            f"Comentario: {event.comment}\n"
            f"Nota: {event.rating}\n"
            f"Data: {sent_at}"
        ),
        "category": "Feedback Alert",
    }


def send_critical_alert(
    detail: Mapping[str, Any],
    client: httpx.Client,
    settings: Settings,
    now: Optional[datetime] = None,
) -> str:
    """
    Deliver an alert e-mail for a critical feedback.

    Non-critical events are acknowledged without sending. Delivery problems
    are logged and reported in the returned outcome instead of raised, so the
    bus never redelivers the event because of the mail API.
    """
    event = FeedbackEvent.from_detail(detail)
    logger.info("Iniciando notify-critical para feedbackId=%s", event.feedback_id)

    if not event.is_critical:
        logger.info("Feedback não é crítico. Nenhum e-mail enviado.")
        return "Feedback não é crítico. Nenhum e-mail enviado."

    if not settings.mail_api_token:
        logger.error("Erro: MAILTRAP_API_TOKEN não configurado")
        return "Erro: MAILTRAP_API_TOKEN não configurado"

    payload = build_alert_payload(event, settings, now or datetime.now(ALERT_TIMEZONE))
    try:
        resp = client.post(
            settings.mail_api_url,
            json=payload,
            headers={"Authorization": f"Bearer {settings.mail_api_token}"},
        )
    except httpx.HTTPError as e:
        logger.error("Erro ao enviar via API: %s", e)
        return f"Erro: {e}"

    logger.info("Resposta HTTP recebida: %d", resp.status_code)
    if 200 <= resp.status_code < 300:
        return "E-mail enviado via API Mailtrap."
    return f"Falha ao enviar e-mail. Código HTTP: {resp.status_code}"


def notify_critical_handler(event: Dict[str, Any], context: Any) -> str:
    settings = load_settings_from_env()
    with httpx.Client(timeout=10.0) as client:
        return send_critical_alert(event.get("detail") or {}, client, settings)

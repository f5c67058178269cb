"""
Bug report routes.

Endpoints:
    POST /api/report-bug - Deliver a bug report to the configured webhook

Delivery is best effort: webhook failures are logged and the report is
always written to the log, so the request itself succeeds.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

import httpx
from fastapi import APIRouter, Depends, status

from ..config import Settings
from ..dependencies import get_app_settings, get_outbound_client
from ..errors import ApiError
from ..models import BugReportRequest, BugReportResponse
from .formatting import UNKNOWN_USER, build_body, build_subject, format_message_history

logger = logging.getLogger(__name__)

reports_router = APIRouter()


async def publish_to_webhook(
    http_client: httpx.AsyncClient,
    webhook_url: str,
    payload: Dict[str, Any],
    timeout: float,
) -> bool:
    """
    POST a bug report to the webhook.

    Returns:
        True if the webhook answered with 2xx, False otherwise
    """
    try:
        response = await http_client.post(webhook_url, json=payload, timeout=timeout)
    except httpx.HTTPError as e:
        # Delivery failures must not break the report request
        logger.warning(f"Bug report webhook unreachable: {e}", extra={"thread_id": payload.get("threadId")})
        return False

    if response.is_success:
        logger.info("Bug report sent via webhook", extra={"thread_id": payload.get("threadId")})
        return True

    logger.warning(
        f"Bug report webhook failed: {response.status_code}",
        extra={"thread_id": payload.get("threadId"), "response": response.text},
    )
    return False


@reports_router.post("/api/report-bug", response_model=BugReportResponse)
async def report_bug(
    report: BugReportRequest,
    settings: Settings = Depends(get_app_settings),
    http_client: httpx.AsyncClient = Depends(get_outbound_client),
) -> BugReportResponse:
    """
    Accept a bug report from a thread view.

    Either a pre-formatted messageHistory or the raw messages list must be
    provided; messages are formatted here.

    Raises:
        ApiError: 400 if threadId, threadTitle or the history is missing
    """
    message_history = report.messageHistory
    if not message_history and report.messages:
        message_history = format_message_history(report.messages)

    if not report.threadId or not report.threadTitle or not message_history:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            "Missing required fields",
            "threadId, threadTitle, and messageHistory or messages are required",
        )

    subject = build_subject(report.threadId, report.userEmail)
    body = build_body(report.threadId, report.threadTitle, message_history, report.userEmail)

    webhook_url = settings.BUG_REPORT_WEBHOOK_URL
    if webhook_url:
        await publish_to_webhook(
            http_client,
            webhook_url,
            {
                "to": settings.BUG_REPORT_RECIPIENT,
                "subject": subject,
                "body": body,
                "threadId": report.threadId,
                "userEmail": report.userEmail or UNKNOWN_USER,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            settings.WEBHOOK_TIMEOUT_SECONDS,
        )
    else:
        logger.info("No webhook URL configured, only logging bug report")

    # Always log the report as a fallback
    logger.info(
        f"Bug report received\nSubject: {subject}\n{body}",
        extra={"thread_id": report.threadId, "recipient": settings.BUG_REPORT_RECIPIENT},
    )

    return BugReportResponse(
        success=True,
        message="Bug report sent via webhook" if webhook_url else "Bug report logged",
    )

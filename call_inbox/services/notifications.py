import logging
from typing import Optional

import httpx

from call_inbox.core.config import settings
from call_inbox.phone import format_phone

logger = logging.getLogger(__name__)

NOTIFIABLE_STATUSES = ("missed", "claimed", "handled")


def build_notification(phone: str, status: str, extension: Optional[str] = None) -> dict:
    display = format_phone(phone, settings.default_country_code)
    if status == "missed":
        title = "New Missed Call"
        message = f"Call from {display}"
    else:
        title = "Call Updated"
        message = f"Call from {display} was {status} by {extension or 'unknown'}"
    return {
        "app_id": settings.onesignal_app_id,
        "headings": {"en": title},
        "contents": {"en": message},
        "included_segments": ["All"],
        "url": settings.app_url,
        "priority": 10 if status == "missed" else 5,
    }


def send_call_status_notification(
    phone: str,
    status: str,
    extension: Optional[str] = None,
    client: Optional[httpx.Client] = None,
) -> bool:
    """Push a call status notification to every subscriber.

    Never raises: delivery problems are logged and reported as ``False``.
    """
    if not settings.onesignal_app_id or not settings.onesignal_rest_api_key:
        logger.info("OneSignal not configured, skipping notification for %s (%s)", phone, status)
        return False
    payload = build_notification(phone, status, extension)
    headers = {"Authorization": f"Basic {settings.onesignal_rest_api_key}"}
    owns_client = client is None
    http = client or httpx.Client(timeout=10.0)
    try:
        response = http.post(settings.onesignal_api_url, json=payload, headers=headers)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.error(
            "OneSignal rejected notification for %s: %s %s",
            phone,
            exc.response.status_code,
            exc.response.text,
        )
        return False
    except httpx.HTTPError:
        logger.exception("Failed to send OneSignal notification for %s", phone)
        return False
    finally:
        if owns_client:
            http.close()
    logger.info("OneSignal notification sent: %s", payload["headings"]["en"])
    return True

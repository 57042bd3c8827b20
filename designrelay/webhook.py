# designrelay/webhook.py
import asyncio
import logging

import requests

from .errors import DeliveryError
from .models import WebhookPayload

log = logging.getLogger(__name__)


def post_payload(webhook_url: str, payload: WebhookPayload, timeout: float = 30.0):
    body = payload.model_dump(by_alias=True)
    log.info("[%s] Sending %s payload to webhook: %s", payload.job_id, payload.status, webhook_url)
    try:
        r = requests.post(webhook_url, json=body, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as e:
        log.error("[%s] Failed to notify webhook: %s", payload.job_id, e)
        raise DeliveryError(webhook_url, str(e)) from e
    log.info("[%s] Successfully sent webhook notification", payload.job_id)


class WebhookNotifier:
    """Single-attempt delivery of a job outcome. Blocking I/O runs off the event loop."""

    def __init__(self, webhook_url: str, timeout: float = 30.0):
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def notify(self, payload: WebhookPayload):
        await asyncio.to_thread(post_payload, self.webhook_url, payload, self.timeout)

"""Tests for the webhook notifier."""

import asyncio
from unittest.mock import MagicMock, patch

import pytest
import requests

from designrelay.errors import DeliveryError
from designrelay.models import CompletedPayload, FailedPayload
from designrelay.webhook import WebhookNotifier, post_payload

HOOK = "https://hooks.example.com/relay"


@patch("designrelay.webhook.requests.post")
def test_completed_payload_body(mock_post):
    mock_post.return_value = MagicMock(status_code=200)
    post_payload(HOOK, CompletedPayload(job_id="j1", generated_url="https://v0.dev/chat/abc"), timeout=5)
    mock_post.assert_called_once_with(
        HOOK, json={"jobId": "j1", "status": "completed", "generatedUrl": "https://v0.dev/chat/abc"}, timeout=5
    )


@patch("designrelay.webhook.requests.post")
def test_error_payload_body(mock_post):
    mock_post.return_value = MagicMock(status_code=200)
    asyncio.run(WebhookNotifier(HOOK).notify(FailedPayload(job_id="j2", error_message="boom")))
    _, kwargs = mock_post.call_args
    assert kwargs["json"] == {"jobId": "j2", "status": "error", "errorMessage": "boom"}


@patch("designrelay.webhook.requests.post")
def test_http_error_raises_delivery_error(mock_post):
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
    mock_post.return_value = response
    with pytest.raises(DeliveryError) as exc_info:
        post_payload(HOOK, FailedPayload(job_id="j3", error_message="boom"))
    assert "500 Server Error" in str(exc_info.value)
    assert mock_post.call_count == 1


@patch("designrelay.webhook.requests.post", side_effect=requests.ConnectionError("refused"))
def test_connection_error_raises_delivery_error(mock_post):
    with pytest.raises(DeliveryError):
        asyncio.run(WebhookNotifier(HOOK).notify(CompletedPayload(job_id="j4", generated_url="https://x")))

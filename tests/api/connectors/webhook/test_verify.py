"""Testes do handshake hub.challenge."""

from __future__ import annotations

import pytest

from api.connectors.webhook import WebhookChallengeError, verify_webhook_challenge


def test_verify_webhook_challenge_ok() -> None:
    params = {"hub.mode": "subscribe", "hub.verify_token": "token", "hub.challenge": "abc123"}

    assert verify_webhook_challenge(params, expected_token="token") == "abc123"


def test_verify_webhook_challenge_missing_token() -> None:
    params = {"hub.mode": "subscribe", "hub.verify_token": "token", "hub.challenge": "x"}

    with pytest.raises(WebhookChallengeError, match="missing_verify_token"):
        verify_webhook_challenge(params, expected_token=None)


def test_verify_webhook_challenge_invalid_token() -> None:
    params = {"hub.mode": "subscribe", "hub.verify_token": "wrong", "hub.challenge": "x"}

    with pytest.raises(WebhookChallengeError, match="verification_failed"):
        verify_webhook_challenge(params, expected_token="token")


def test_verify_webhook_challenge_wrong_mode() -> None:
    params = {"hub.mode": "unsubscribe", "hub.verify_token": "token", "hub.challenge": "x"}

    with pytest.raises(WebhookChallengeError):
        verify_webhook_challenge(params, expected_token="token")

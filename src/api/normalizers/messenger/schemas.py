"""Schemas do webhook Messenger Platform (Facebook e Instagram)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Participant(_Lenient):
    id: str = Field(min_length=1)


class MessengerAttachment(_Lenient):
    type: str = "file"
    payload: dict[str, Any] = Field(default_factory=dict)


class ReplyTo(_Lenient):
    mid: str | None = None


class MessengerMessage(_Lenient):
    mid: str = Field(min_length=1)
    text: str | None = None
    is_echo: bool = False
    attachments: list[MessengerAttachment] = Field(default_factory=list)
    reply_to: ReplyTo | None = None
    quick_reply: dict[str, Any] | None = None


class Postback(_Lenient):
    mid: str | None = None
    title: str | None = None
    payload: str | None = None


class MessagingEvent(_Lenient):
    sender: Participant
    recipient: Participant
    timestamp: int | str | None = None
    message: MessengerMessage | None = None
    postback: Postback | None = None


class MessengerEntry(_Lenient):
    id: str | None = None
    time: int | None = None
    messaging: list[MessagingEvent] = Field(default_factory=list)


class MessengerWebhookPayload(_Lenient):
    object: str | None = None
    entry: list[MessengerEntry] = Field(min_length=1)

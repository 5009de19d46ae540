"""Testes de derivação de thread keys."""

from __future__ import annotations

from app.domain.thread_key import (
    generate_contextual_thread_key,
    generate_thread_key,
    normalize_subject,
    subject_hash,
)


class TestGenerateThreadKey:
    def test_is_symmetric(self) -> None:
        assert generate_thread_key("sms", "+1", "+2") == generate_thread_key("sms", "+2", "+1")
        assert generate_thread_key("sms", "+2", "+1") == "sms:+1:+2"

    def test_native_context_wins(self) -> None:
        assert generate_thread_key("email", "a@x.com", "b@x.com", "T123") == "email:T123"


class TestSubjects:
    def test_reply_prefixes_are_stripped(self) -> None:
        assert normalize_subject("Re: RE: Fwd: Order #1234") == "order #1234"
        assert normalize_subject("FW: fw:Invoice") == "invoice"

    def test_reply_shares_subject_hash(self) -> None:
        assert subject_hash("Order #1234") == subject_hash("Re: order #1234")
        assert len(subject_hash("Order #1234")) == 8


class TestContextualKey:
    def test_suffix_order(self) -> None:
        key = generate_contextual_thread_key(
            "email:a:b",
            subject="Hello",
            reply_to_message_id="m1",
            conversation_id="c1",
        )
        assert key == f"email:a:b:subj:{subject_hash('Hello')}:reply:m1:conv:c1"

    def test_without_context_returns_base(self) -> None:
        assert generate_contextual_thread_key("sms:+1:+2") == "sms:+1:+2"

"""Schema do webhook de SMS (formato Twilio)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TwilioSmsPayload(BaseModel):
    """Campos form-urlencoded do webhook de mensagem.

    Campos MediaUrl{i}/MediaContentType{i} são lidos direto do form pelo
    extractor, pois a quantidade é variável.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message_sid: str | None = Field(default=None, alias="MessageSid")
    sms_sid: str | None = Field(default=None, alias="SmsSid")
    account_sid: str | None = Field(default=None, alias="AccountSid")
    from_number: str = Field(alias="From", min_length=1)
    to_number: str = Field(alias="To", min_length=1)
    body: str | None = Field(default=None, alias="Body")
    num_media: int = Field(default=0, alias="NumMedia", ge=0, le=10)
    num_segments: int | None = Field(default=None, alias="NumSegments")
    date_sent: str | None = Field(default=None, alias="DateSent")
    direction: str | None = Field(default=None, alias="Direction")
    sms_status: str | None = Field(default=None, alias="SmsStatus")
    message_status: str | None = Field(default=None, alias="MessageStatus")

    @property
    def sid(self) -> str | None:
        return self.message_sid or self.sms_sid

    @property
    def status(self) -> str | None:
        return self.message_status or self.sms_status

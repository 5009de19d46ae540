"""Schema do recurso de mensagem da Gmail API (users.messages.get)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class GmailHeader(_Lenient):
    name: str
    value: str = ""


class GmailBody(_Lenient):
    data: str | None = None
    size: int | None = None
    attachment_id: str | None = Field(default=None, alias="attachmentId")


class GmailPart(_Lenient):
    """Parte MIME; partes multipart trazem `parts` aninhadas."""

    part_id: str | None = Field(default=None, alias="partId")
    mime_type: str = Field(default="text/plain", alias="mimeType")
    filename: str | None = None
    headers: list[GmailHeader] = Field(default_factory=list)
    body: GmailBody = Field(default_factory=GmailBody)
    parts: list[GmailPart] = Field(default_factory=list)


class GmailMessage(_Lenient):
    id: str = Field(min_length=1)
    thread_id: str | None = Field(default=None, alias="threadId")
    label_ids: list[str] = Field(default_factory=list, alias="labelIds")
    snippet: str | None = None
    internal_date: str | int | None = Field(default=None, alias="internalDate")
    history_id: str | None = Field(default=None, alias="historyId")
    payload: GmailPart

    def header(self, name: str) -> str | None:
        """Valor do header (case-insensitive) na parte raiz."""
        wanted = name.lower()
        for header in self.payload.headers:
            if header.name.lower() == wanted:
                return header.value
        return None

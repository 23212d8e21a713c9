"""Typed containers shared across the client."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from .utils import b64encode_bytes, utcnow


@dataclass(frozen=True)
class ClientIdentity:
    """App registration and mailbox the client acts for."""

    client_id: str
    client_secret: str = field(repr=False)
    tenant_id: str
    acting_user_id: str


@dataclass(frozen=True)
class AccessToken:
    """Bearer token returned by the token endpoint."""

    value: str = field(repr=False)
    expires_at: Optional[datetime] = None

    def is_expired(self, now: datetime | None = None, skew: timedelta = timedelta(0)) -> bool:
        if self.expires_at is None:
            return False
        current = now or utcnow()
        return current + skew >= self.expires_at


@dataclass(frozen=True)
class Attachment:
    """File attachment; ``content_bytes`` is already base64 encoded."""

    name: str
    content_bytes: str

    @classmethod
    def from_bytes(cls, name: str, data: bytes) -> "Attachment":
        return cls(name=name, content_bytes=b64encode_bytes(data))

    @classmethod
    def from_path(cls, path: Path | str) -> "Attachment":
        path = Path(path)
        return cls.from_bytes(path.name, path.read_bytes())


@dataclass
class EmailMessage:
    """Outbound HTML message."""

    subject: str
    html_body: str
    to_address: str
    bcc_addresses: list[str] = field(default_factory=list)
    reply_to_addresses: list[str] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)


@dataclass
class FolderDescriptor:
    """Mail folder as returned by Graph."""

    display_name: str
    folder_id: str

    @classmethod
    def from_graph(cls, raw: dict) -> "FolderDescriptor":
        return cls(display_name=raw.get("displayName", ""), folder_id=raw["id"])

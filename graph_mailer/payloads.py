"""Builders for Graph request bodies. Pure functions, no I/O."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Union

from .models import Attachment, EmailMessage

FILE_ATTACHMENT_TYPE = "#microsoft.graph.fileAttachment"

AttachmentLike = Union[Attachment, Mapping[str, Any]]


def recipient(address: str) -> dict:
    return {"emailAddress": {"address": address}}


def recipients(addresses: Iterable[str] | None) -> list[dict]:
    return [recipient(address) for address in addresses or ()]


def file_attachment(attachment: AttachmentLike) -> dict:
    """Tag an attachment as a file attachment; name and content pass through as-is."""
    if isinstance(attachment, Attachment):
        name, content = attachment.name, attachment.content_bytes
    else:
        name, content = attachment["name"], attachment["contentBytes"]
    return {
        "@odata.type": FILE_ATTACHMENT_TYPE,
        "name": name,
        "contentBytes": content,
    }


def build_send_mail_payload(message: EmailMessage) -> dict:
    """Body for ``POST /users/{id}/sendMail``."""
    return {
        "message": {
            "subject": message.subject,
            "body": {"contentType": "HTML", "content": message.html_body},
            "toRecipients": [recipient(message.to_address)],
            "bccRecipients": recipients(message.bcc_addresses),
            "attachments": [file_attachment(item) for item in message.attachments or ()],
            "replyTo": recipients(message.reply_to_addresses),
        }
    }


def build_folder_payload(display_name: str) -> dict:
    return {"displayName": display_name}


def build_move_payload(destination_id: str) -> dict:
    return {"destinationId": destination_id}

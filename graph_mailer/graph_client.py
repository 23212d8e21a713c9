"""Microsoft Graph mailbox operations for a single acting user."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Optional, Sequence

import requests
from requests import Response

from .auth import (
    GRAPH_HOST,
    ClientCredentialsProvider,
    CredentialProvider,
    MsalCredentialProvider,
    TokenCache,
)
from .errors import FolderStep, RequestError, SubFlowStepError
from .models import AccessToken, ClientIdentity, EmailMessage, FolderDescriptor
from .payloads import (
    AttachmentLike,
    build_folder_payload,
    build_move_payload,
    build_send_mail_payload,
)
from .utils import path_segment

if TYPE_CHECKING:
    from .config import Settings

logger = logging.getLogger(__name__)

FOLDER_PAGE_SIZE = 100


class FolderScope(str, Enum):
    """Which mailbox the folder endpoints address."""

    ME = "me"
    ACTING_USER = "user"


class GraphMailClient:
    """Send, read and file messages in one mailbox.

    Every operation asks ``credential_provider`` for a token first; whether
    that token is reused between operations is up to the provider (see
    :class:`~graph_mailer.auth.TokenCache`).
    """

    def __init__(
        self,
        identity: ClientIdentity,
        credential_provider: CredentialProvider,
        session: requests.Session | None = None,
        *,
        resource_host: str = GRAPH_HOST,
        folder_scope: FolderScope = FolderScope.ME,
        timeout: float = 30.0,
    ) -> None:
        self.identity = identity
        self.credential_provider = credential_provider
        self.session = session or requests.Session()
        self.graph_base = f"{resource_host.rstrip('/')}/v1.0"
        self.folder_scope = FolderScope(folder_scope)
        self.timeout = timeout

    @classmethod
    def from_settings(
        cls, settings: "Settings", session: requests.Session | None = None
    ) -> "GraphMailClient":
        session = session or requests.Session()
        if settings.graph_token_backend == "msal":
            provider: CredentialProvider = MsalCredentialProvider(
                authority_host=settings.graph_authority_host,
                resource_host=settings.graph_resource_host,
                timeout=settings.graph_timeout,
            )
        else:
            provider = ClientCredentialsProvider(
                session,
                authority_host=settings.graph_authority_host,
                resource_host=settings.graph_resource_host,
                cache=TokenCache() if settings.graph_token_cache else None,
                timeout=settings.graph_timeout,
            )
        return cls(
            settings.identity,
            provider,
            session,
            resource_host=settings.graph_resource_host,
            folder_scope=FolderScope(settings.graph_folder_scope),
            timeout=settings.graph_timeout,
        )

    # -- public operations -------------------------------------------------

    def send_email(
        self,
        to_address: str,
        subject: str,
        html_body: str,
        attachments: Iterable[AttachmentLike] = (),
        bcc_addresses: Iterable[str] = (),
        reply_to_addresses: Optional[Sequence[str]] = None,
    ) -> None:
        """Send an HTML message from the acting user's mailbox."""
        token = self._token()
        message = EmailMessage(
            subject=subject,
            html_body=html_body,
            to_address=to_address,
            bcc_addresses=list(bcc_addresses or ()),
            reply_to_addresses=list(reply_to_addresses or ()),
            attachments=list(attachments or ()),
        )
        url = f"{self._user_root()}/sendMail"
        self._send(
            "POST", url, token, operation="send email", json_body=build_send_mail_payload(message)
        )
        logger.info("Email '%s' sent to %s", subject, to_address)

    def list_mails(self) -> list[dict]:
        """Return the first page of messages in the acting user's mailbox."""
        token = self._token()
        resp = self._send("GET", f"{self._user_root()}/messages", token, operation="list emails")
        return self._json(resp, "list emails").get("value") or []

    def get_mail_by_id(self, message_id: str) -> dict:
        token = self._token()
        url = f"{self._user_root()}/messages/{path_segment(message_id)}"
        resp = self._send("GET", url, token, operation="get email")
        return self._json(resp, "get email")

    def get_mail_attachments(self, message_id: str) -> list[dict]:
        token = self._token()
        url = f"{self._user_root()}/messages/{path_segment(message_id)}/attachments"
        resp = self._send("GET", url, token, operation="get email attachments")
        return self._json(resp, "get email attachments").get("value") or []

    def move_mail_to_folder(self, message_id: str, folder_name: str) -> dict:
        """Move a message into the folder called ``folder_name``, creating it if needed.

        Three steps, each aborting the rest on failure: look the folder up by
        exact display name, create it when absent, then move the message. A
        folder created before a failed move stays in place; the next call will
        find it.
        """
        token = self._token()

        folder = self.find_folder(folder_name, token=token)
        if folder is None:
            logger.info("Folder '%s' not found. Creating it...", folder_name)
            folder = self.create_folder(folder_name, token=token)
            logger.info("Folder '%s' created successfully.", folder_name)

        url = f"{self._folder_root()}/messages/{path_segment(message_id)}/move"
        resp = self._step(
            FolderStep.MOVE,
            "POST",
            url,
            token,
            operation="move email",
            json_body=build_move_payload(folder.folder_id),
        )
        moved = self._json(resp, "move email", step=FolderStep.MOVE)
        logger.info("Email %s moved to folder '%s'", message_id, folder.display_name)
        return moved

    # -- folder sub-flow ---------------------------------------------------

    def find_folder(
        self, folder_name: str, *, token: AccessToken | None = None
    ) -> Optional[FolderDescriptor]:
        """Look up a top-level folder by exact, case-sensitive display name."""
        token = token or self._token()
        operation = "fetch mail folders"
        url = f"{self._folder_root()}/mailFolders"
        params = {"$top": FOLDER_PAGE_SIZE}

        while url:
            resp = self._step(FolderStep.LOOKUP, "GET", url, token, operation=operation, params=params)
            payload = self._json(resp, operation, step=FolderStep.LOOKUP)
            folders = payload.get("value")
            if not isinstance(folders, list):
                logger.error("Folder listing has no value list: %s", resp.text)
                raise SubFlowStepError(
                    FolderStep.LOOKUP, operation, resp.text, status_code=resp.status_code
                )

            for raw in folders:
                if not isinstance(raw, dict) or raw.get("displayName") != folder_name:
                    continue
                if not raw.get("id"):
                    logger.error("Folder '%s' listed without an id: %s", folder_name, resp.text)
                    raise SubFlowStepError(
                        FolderStep.LOOKUP, operation, resp.text, status_code=resp.status_code
                    )
                return FolderDescriptor.from_graph(raw)

            url = payload.get("@odata.nextLink")
            params = None  # nextLink already carries the query
        return None

    def create_folder(self, folder_name: str, *, token: AccessToken | None = None) -> FolderDescriptor:
        token = token or self._token()
        operation = f'create folder "{folder_name}"'
        resp = self._step(
            FolderStep.CREATE,
            "POST",
            f"{self._folder_root()}/mailFolders",
            token,
            operation=operation,
            json_body=build_folder_payload(folder_name),
        )
        payload = self._json(resp, operation, step=FolderStep.CREATE)
        if "id" not in payload:
            logger.error("Folder creation response has no id: %s", resp.text)
            raise SubFlowStepError(
                FolderStep.CREATE, operation, resp.text, status_code=resp.status_code
            )
        return FolderDescriptor.from_graph(payload)

    # -- plumbing ----------------------------------------------------------

    def _token(self) -> AccessToken:
        return self.credential_provider.acquire_token(self.identity)

    def _user_root(self) -> str:
        return f"{self.graph_base}/users/{path_segment(self.identity.acting_user_id)}"

    def _folder_root(self) -> str:
        if self.folder_scope is FolderScope.ACTING_USER:
            return self._user_root()
        return f"{self.graph_base}/me"

    def _step(
        self,
        step: FolderStep,
        method: str,
        url: str,
        token: AccessToken,
        *,
        operation: str,
        json_body: dict | None = None,
        params: dict | None = None,
    ) -> Response:
        try:
            return self._send(
                method, url, token, operation=operation, json_body=json_body, params=params
            )
        except RequestError as exc:
            raise SubFlowStepError(step, operation, exc.body, status_code=exc.status_code) from exc

    def _send(
        self,
        method: str,
        url: str,
        token: AccessToken,
        *,
        operation: str,
        json_body: dict | None = None,
        params: dict | None = None,
    ) -> Response:
        headers = {"Authorization": f"Bearer {token.value}"}
        kwargs: dict[str, Any] = {"headers": headers, "timeout": self.timeout}
        if json_body is not None:
            headers["Content-Type"] = "application/json"
            kwargs["json"] = json_body
        if params:
            kwargs["params"] = params

        logger.debug("Graph %s %s", method, url)
        try:
            resp = self.session.request(method, url, **kwargs)
        except requests.RequestException:
            logger.exception("Graph request to %s failed", url)
            raise

        if not 200 <= resp.status_code < 300:
            logger.error("Failed to %s (%s): %s", operation, resp.status_code, resp.text)
            raise RequestError(operation, resp.text, status_code=resp.status_code)
        return resp

    @staticmethod
    def _json(resp: Response, operation: str, step: FolderStep | None = None) -> dict:
        try:
            payload = resp.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            return payload

        logger.error("Unexpected response body for %s: %s", operation, resp.text)
        if step is not None:
            raise SubFlowStepError(step, operation, resp.text, status_code=resp.status_code)
        raise RequestError(
            operation,
            resp.text,
            status_code=resp.status_code,
            message=f"Unexpected response body while trying to {operation}: {resp.text}",
        )

"""Microsoft Graph mail client using app-only (client-credentials) auth."""

from .auth import ClientCredentialsProvider, MsalCredentialProvider, TokenCache
from .errors import AuthError, FolderStep, GraphMailError, RequestError, SubFlowStepError
from .graph_client import FolderScope, GraphMailClient
from .models import AccessToken, Attachment, ClientIdentity, EmailMessage, FolderDescriptor

__all__ = [
    "AccessToken",
    "Attachment",
    "AuthError",
    "ClientCredentialsProvider",
    "ClientIdentity",
    "EmailMessage",
    "FolderDescriptor",
    "FolderScope",
    "FolderStep",
    "GraphMailClient",
    "GraphMailError",
    "MsalCredentialProvider",
    "RequestError",
    "SubFlowStepError",
    "TokenCache",
]

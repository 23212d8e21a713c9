"""Configuration management for the Graph mail client."""

from __future__ import annotations

from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .auth import AUTHORITY_HOST, GRAPH_HOST
from .models import ClientIdentity

# Load .env early so BaseSettings can pick values up seamlessly.
load_dotenv()


class Settings(BaseSettings):
    """App configuration derived from environment variables."""

    graph_client_id: str = Field(..., alias="GRAPH_CLIENT_ID")
    graph_client_secret: str = Field(..., alias="GRAPH_CLIENT_SECRET")
    graph_tenant_id: str = Field(..., alias="GRAPH_TENANT_ID")
    graph_mailbox: str = Field(..., alias="GRAPH_MAILBOX")
    graph_authority_host: str = Field(AUTHORITY_HOST, alias="GRAPH_AUTHORITY_HOST")
    graph_resource_host: str = Field(GRAPH_HOST, alias="GRAPH_RESOURCE_HOST")
    graph_folder_scope: Literal["me", "user"] = Field("me", alias="GRAPH_FOLDER_SCOPE")
    graph_token_backend: Literal["client_credentials", "msal"] = Field(
        "client_credentials", alias="GRAPH_TOKEN_BACKEND"
    )
    graph_token_cache: bool = Field(False, alias="GRAPH_TOKEN_CACHE")
    graph_timeout: float = Field(30.0, alias="GRAPH_TIMEOUT", gt=0)
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "graph_client_id",
        "graph_client_secret",
        "graph_tenant_id",
        "graph_mailbox",
        mode="before",
    )
    @classmethod
    def _require_non_blank(cls, value, info):
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError(f"{info.field_name} must not be blank")
        return value

    @field_validator("graph_authority_host", "graph_resource_host", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value):
        if isinstance(value, str):
            return value.strip().rstrip("/")
        return value

    @field_validator("graph_folder_scope", mode="before")
    @classmethod
    def _normalize_folder_scope(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def identity(self) -> ClientIdentity:
        return ClientIdentity(
            client_id=self.graph_client_id,
            client_secret=self.graph_client_secret,
            tenant_id=self.graph_tenant_id,
            acting_user_id=self.graph_mailbox,
        )

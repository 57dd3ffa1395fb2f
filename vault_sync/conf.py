"""
Store Configuration — Validated, immutable credentials for the remote document.

Reads the document credentials from environment variables:
    VAULT_GIST_ID = <remote document id>
    VAULT_GITHUB_TOKEN = <access token>
    VAULT_API_URL = <optional API base url>

Security Note:
    Never log the token or the document id. Only log variable names.
"""
import os
import logging
from typing import Any

from pydantic import BaseModel, Field, SecretStr, field_validator

from .exceptions import ConfigError

logger = logging.getLogger("vault_sync.conf")

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_ACCEPT = "application/vnd.github.v3+json"

ENV_DOCUMENT_ID = "VAULT_GIST_ID"
ENV_TOKEN = "VAULT_GITHUB_TOKEN"
ENV_API_URL = "VAULT_API_URL"


def _is_blank(value: Any) -> bool:
    if isinstance(value, SecretStr):
        value = value.get_secret_value()
    return value is None or not str(value).strip()


class StoreConfig(BaseModel):
    """Validated remote store configuration.

    Both ``document_id`` and ``token`` are required; an empty or missing
    value raises :class:`ConfigError` at construction, before any network
    or crypto call is attempted.
    """

    document_id: str = Field(default="", validate_default=True)
    token: SecretStr = Field(default=SecretStr(""), validate_default=True)
    api_url: str = Field(default=DEFAULT_API_URL)
    accept: str = Field(default=DEFAULT_ACCEPT)

    model_config = {"frozen": True}

    @field_validator("document_id", "token", mode="before")
    @classmethod
    def validate_required(cls, v: Any, info) -> Any:
        """Reject missing or blank credentials."""
        if _is_blank(v):
            raise ConfigError(
                "Document id and access token are required "
                f"(missing: {info.field_name})"
            )
        return v

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def document_url(self) -> str:
        """Endpoint of the remote document."""
        return f"{self.api_url}/gists/{self.document_id}"

    def headers(self) -> dict[str, str]:
        """Request headers carrying the bearer token."""
        return {
            "Authorization": f"Bearer {self.token.get_secret_value()}",
            "Accept": self.accept,
        }

    @classmethod
    def from_env(cls) -> "StoreConfig":
        """Create StoreConfig by loading values from environment.

        Returns:
            Populated StoreConfig instance.

        Raises:
            ConfigError: If the document id or token variables are unset.
        """
        document_id = os.environ.get(ENV_DOCUMENT_ID)
        token = os.environ.get(ENV_TOKEN)
        missing = [
            name for name, value in (
                (ENV_DOCUMENT_ID, document_id), (ENV_TOKEN, token)
            ) if _is_blank(value)
        ]
        if missing:
            raise ConfigError(
                f"Environment variables {', '.join(missing)} are required "
                "to reach the remote vault document"
            )
        logger.debug("Loaded store configuration from environment")
        return cls(
            document_id=document_id,
            token=token,
            api_url=os.environ.get(ENV_API_URL, DEFAULT_API_URL),
        )

"""Configuration settings for the ConvertKit API client.

This module defines the configuration settings for the client, including
OAuth application details, API endpoints, request behaviour and logging.
Settings are loaded from environment variables and .env files.
"""

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables.

    Every field can be set through a ``CONVERTKIT_*`` environment variable
    or a ``.env`` file, or passed by field name when constructing the
    settings directly.

    :param client_id: OAuth application client ID
    :type client_id: Optional[str]
    :param redirect_uri: OAuth redirect URI registered with Kit
    :type redirect_uri: Optional[str]
    :param access_token: Previously obtained access token
    :type access_token: Optional[str]
    :param refresh_token: Previously obtained refresh token
    :type refresh_token: Optional[str]
    :param api_url_base: Base URL of the Kit API, ending in ``/``
    :type api_url_base: str
    :param api_version: Version segment used for resource endpoints
    :type api_version: str
    :param oauth_authorize_url: OAuth authorization page URL
    :type oauth_authorize_url: str
    :param request_timeout: Per request timeout in seconds
    :type request_timeout: float
    :param rate_limit_retry_delay: Pause before retrying a rate limited call
    :type rate_limit_retry_delay: float
    :param site_url: URL of the site using the client, sent in the User-Agent
    :type site_url: str
    :param integration_name: Name of the embedding integration
    :type integration_name: Optional[str]
    :param integration_version: Version of the embedding integration
    :type integration_version: Optional[str]
    :param context: Free text tag appended to the User-Agent
    :type context: Optional[str]
    :param debug: Log to stdout at ``log_level`` through the sanitizing
        formatter, and to ``log_file`` when set
    :type debug: bool
    :param log_level: Logging level for the client loggers
    :type log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    :param log_file: Optional audit log file path
    :type log_file: Optional[str]
    :param code_verifier_path: File used to persist the PKCE code verifier
    :type code_verifier_path: Optional[str]
    :param encryption_key: Key or passphrase protecting the verifier file
    :type encryption_key: Optional[str]
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",  # Ignore extra fields in .env file
    )

    # OAuth application
    client_id: Optional[str] = Field(
        None, alias="CONVERTKIT_CLIENT_ID", description="OAuth client ID"
    )
    redirect_uri: Optional[str] = Field(
        None, alias="CONVERTKIT_REDIRECT_URI", description="OAuth redirect URI"
    )
    access_token: Optional[str] = Field(
        None, alias="CONVERTKIT_ACCESS_TOKEN", description="Stored access token"
    )
    refresh_token: Optional[str] = Field(
        None, alias="CONVERTKIT_REFRESH_TOKEN", description="Stored refresh token"
    )

    # Endpoints
    api_url_base: str = Field(
        "https://api.kit.com/",
        alias="CONVERTKIT_API_URL_BASE",
        description="Kit API base URL",
    )
    api_version: str = Field(
        "v4", alias="CONVERTKIT_API_VERSION", description="Kit API version"
    )
    oauth_authorize_url: str = Field(
        "https://app.kit.com/oauth/authorize",
        alias="CONVERTKIT_OAUTH_AUTHORIZE_URL",
        description="OAuth authorization page",
    )

    # Request behaviour
    request_timeout: float = Field(
        10.0, alias="CONVERTKIT_REQUEST_TIMEOUT", description="Timeout in seconds"
    )
    rate_limit_retry_delay: float = Field(
        2.0,
        alias="CONVERTKIT_RATE_LIMIT_RETRY_DELAY",
        description="Seconds to wait before retrying a 429 response",
    )

    # User-Agent
    site_url: str = Field(
        "", alias="CONVERTKIT_SITE_URL", description="Site URL for the User-Agent"
    )
    integration_name: Optional[str] = Field(None, alias="CONVERTKIT_INTEGRATION_NAME")
    integration_version: Optional[str] = Field(
        None, alias="CONVERTKIT_INTEGRATION_VERSION"
    )
    context: Optional[str] = Field(None, alias="CONVERTKIT_CONTEXT")

    # Logging
    debug: bool = Field(False, alias="CONVERTKIT_DEBUG")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", alias="CONVERTKIT_LOG_LEVEL"
    )
    log_file: Optional[str] = Field(None, alias="CONVERTKIT_LOG_FILE")

    # PKCE verifier storage
    code_verifier_path: Optional[str] = Field(
        None, alias="CONVERTKIT_CODE_VERIFIER_PATH"
    )
    encryption_key: Optional[str] = Field(None, alias="CONVERTKIT_ENCRYPTION_KEY")

    @field_validator("api_url_base")
    @classmethod
    def validate_api_url_base(cls, v: str) -> str:
        """Ensure the base URL ends with a single slash.

        :param v: The configured base URL
        :type v: str
        :return: Base URL ending in ``/``
        :rtype: str
        """
        return v.rstrip("/") + "/"

    @field_validator("request_timeout")
    @classmethod
    def validate_request_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout must be greater than 0")
        return v

    @field_validator("rate_limit_retry_delay")
    @classmethod
    def validate_rate_limit_retry_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("rate_limit_retry_delay must not be negative")
        return v

    @property
    def api_url(self) -> str:
        """Get the versioned resource base URL.

        :return: Base URL for v4 resource endpoints
        :rtype: str
        """
        return f"{self.api_url_base}{self.api_version}/"


settings = Settings()

"""Settings, read from the environment (and ``.env``) by pydantic-settings.

Every field maps to the upper-cased env var of the same name, so
``ai_api_key`` is ``AI_API_KEY``. ``settings`` is the process-wide instance.
"""

from enum import Enum
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "dev-insecure-key-change-me"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TEST = "test"


class WalletVerifierKind(str, Enum):
    """How wallet id tokens are checked at login."""
    HMAC = "hmac"
    ACCEPT_ALL = "accept_all"


class ConfigurationError(Exception):
    """The settings cannot be used in the current environment."""


class Settings(BaseSettings):
    """DeepVest API settings.

    Unsafe combinations (wildcard CORS, the accept-all wallet verifier
    outside tests, default secrets in production) are rejected by the
    ``validate_*`` methods, which ``main`` calls at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="development, production or test"
    )

    # Comma-separated; "*" is refused.
    cors_allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Origins the browser app is served from"
    )

    # Store
    database_url: str = Field(
        default="sqlite:///./deepvest.db",
        description="SQLAlchemy URL (sqlite or postgresql)"
    )
    # Pool knobs apply to PostgreSQL only.
    db_pool_size: int = Field(default=5, description="Persistent pooled connections")
    db_max_overflow: int = Field(default=10, description="Connections allowed above the pool size")
    db_pool_timeout: int = Field(default=30, description="Seconds to wait for a free connection")
    db_pool_recycle: int = Field(default=1800, description="Seconds after which a connection is replaced")

    # Session tokens
    jwt_secret_key: str = Field(
        default=DEFAULT_JWT_SECRET,
        description="HS256 key for session tokens"
    )
    jwt_algorithm: str = Field(default="HS256")
    token_expire_hours: int = Field(default=24, description="Session token lifetime")

    # Wallet login. accept_all exists for the test suite only.
    wallet_verifier: WalletVerifierKind = Field(
        default=WalletVerifierKind.HMAC,
        description="hmac or accept_all"
    )
    wallet_provider_secret: str = Field(
        default="",
        description="Key the wallet provider signs id tokens with"
    )

    audit_retention_days: int = Field(
        default=365,
        description="Audit entries older than this are purged at startup (0 keeps all)"
    )

    rate_limit_per_minute: int = Field(
        default=120,
        description="Requests per user (or per IP when anonymous) per minute"
    )

    # AI endpoints answer 503 while ai_api_key is empty.
    ai_model: str = Field(
        default="gemini/gemini-2.0-flash",
        description="LiteLLM model string"
    )
    ai_api_key: str = Field(default="", description="Provider API key")
    ai_api_base: str = Field(default="", description="Custom provider endpoint, if any")
    ai_timeout_seconds: float = Field(
        default=30.0,
        description="Bound on one completion call and on the download feeding a transcription"
    )
    ai_max_retries: int = Field(default=3, description="LiteLLM num_retries")
    ai_max_file_bytes: int = Field(
        default=20 * 1024 * 1024,
        description="Largest file accepted for transcription"
    )

    log_level: str = Field(default="INFO", description="Root log level")
    log_format: str = Field(default="json", description="json or text")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level

    def get_cors_origins(self) -> List[str]:
        origins = [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]
        if "*" in origins:
            raise ValueError("CORS_ALLOWED_ORIGINS may not contain '*'; list the origins explicitly")
        return origins

    def validate_wallet_config(self) -> None:
        """Raise ``ConfigurationError`` if accept-all is selected outside ``ENVIRONMENT=test``."""
        if self.wallet_verifier == WalletVerifierKind.ACCEPT_ALL and self.environment != Environment.TEST:
            raise ConfigurationError(
                "WALLET_VERIFIER=accept_all requires ENVIRONMENT=test; "
                "use WALLET_VERIFIER=hmac with WALLET_PROVIDER_SECRET"
            )

    def insecure_settings(self) -> List[str]:
        """What would be unsafe to deploy as configured. Empty when all is well."""
        problems = []
        if self.jwt_secret_key == DEFAULT_JWT_SECRET:
            problems.append("JWT_SECRET_KEY is the built-in default (generate one: openssl rand -hex 32)")
        if not self.wallet_provider_secret:
            problems.append("WALLET_PROVIDER_SECRET is empty, so no wallet login can succeed")
        local = [o for o in self.get_cors_origins() if "localhost" in o or "127.0.0.1" in o]
        if local:
            problems.append(f"CORS_ALLOWED_ORIGINS includes local origins {local}")
        return problems

    def validate_production_config(self) -> None:
        """Startup check.

        The wallet verifier rule holds everywhere. The ``insecure_settings``
        findings only abort startup in production; elsewhere ``main`` logs them.

        Raises:
            ConfigurationError: the configuration must not be started.
        """
        self.validate_wallet_config()
        if self.environment != Environment.PRODUCTION:
            return
        problems = self.insecure_settings()
        if problems:
            raise ConfigurationError(
                "Production configuration is insecure:\n  - " + "\n  - ".join(problems)
            )


settings = Settings()

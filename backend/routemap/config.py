"""
Route Map Backend: Application Configuration
=============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated when the app starts.

The two store values (SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY) are required
process configuration. A missing value is reported at startup and again,
as a 500 response, whenever a handler needs the store.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes are grouped by concern. Every upstream endpoint and table
    name is overridable so staging deployments can point at other projects.
    """

    # ── Backing store (PostgREST / Supabase REST) ─────────────────────────
    # Base URL without trailing slash, e.g. https://<project>.supabase.co
    supabase_url: str = Field(default="", description="Store base URL")

    # Service-role key: sent as both `apikey` and bearer token. Server-side only.
    supabase_service_role_key: str = Field(default="", description="Store access key")

    # Public (anon) key, only exposed through /config.js for the browser client
    supabase_anon_key: str = Field(default="", description="Public store key")

    route_table: str = Field(default="subsubroutes")
    address_table: str = Field(default="addresses")
    vendor_table: str = Field(default="vendors")
    camp_table: str = Field(default="camps")

    # Seconds. No retries are made, so this bounds every store call.
    store_timeout: float = Field(default=5.0, gt=0, le=60)

    # ── Geography services ────────────────────────────────────────────────
    overpass_url: str = Field(default="https://overpass-api.de/api/interpreter")
    overpass_user_agent: str = Field(default="routemap-backend/1.0")
    # The Overpass query itself asks for [timeout:25]; leave headroom above it
    overpass_timeout: float = Field(default=30.0, gt=0, le=120)

    zipcode_api_url: str = Field(
        default="https://www.juso.go.kr/api/totalMap/selectKarbSbdList"
    )
    # The boundary API rejects requests without a browser-like origin
    zipcode_referer: str = Field(default="https://maroowell.com/")
    zipcode_origin: str = Field(default="https://maroowell.com")
    zipcode_timeout: float = Field(default=10.0, gt=0, le=60)

    # ── Share page ────────────────────────────────────────────────────────
    # HTML template fetched and rewritten for /share (social preview tags)
    share_template_url: str = Field(default="")
    share_image_url: str = Field(default="")
    share_site_name: str = Field(default="Route Map")
    share_timeout: float = Field(default=5.0, gt=0, le=60)

    # ── Search ────────────────────────────────────────────────────────────
    search_default_limit: int = Field(default=50, ge=1, le=200)
    search_max_limit: int = Field(default=200, ge=1, le=1000)

    # ── CORS ──────────────────────────────────────────────────────────────
    # The mapping tool is served from several origins (Pages previews, custom
    # domain), so every origin is allowed by default.
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("supabase_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # SUPABASE_URL and supabase_url both work
        "extra": "ignore",
    }

    def missing_store_settings(self) -> List[str]:
        """Names of the required store variables that are not set."""
        missing = []
        if not self.supabase_url:
            missing.append("SUPABASE_URL")
        if not self.supabase_service_role_key:
            missing.append("SUPABASE_SERVICE_ROLE_KEY")
        return missing

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that critical settings are configured.
        When:  Called during app startup (lifespan).
        How:   Raises ValueError listing every missing variable.
        """
        missing = self.missing_store_settings()
        if missing:
            raise ValueError(
                "Configuration validation failed:\n"
                + "\n".join(f"  - {name} is not set" for name in missing)
            )


# Singleton instance, imported throughout the application
settings = Settings()

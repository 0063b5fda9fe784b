"""
Handscript Backend: Application Configuration
===============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before app starts.
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for local development. Deployments
    must provide the Cloudinary credentials; without them every store call
    fails and surfaces as a 400 to the client.
    """

    # ── Cloudinary ────────────────────────────────────────────────────────
    # Credentials from the Cloudinary console (Dashboard → API Keys)
    cloudinary_cloud_name: str = Field(default="", description="Cloudinary cloud name")
    cloudinary_api_key: str = Field(default="", description="Cloudinary API key")
    cloudinary_api_secret: str = Field(default="", description="Cloudinary API secret")

    # What: Folder (public_id prefix) every generated image is stored under.
    # Listing is restricted to this prefix.
    cloudinary_folder: str = Field(default="handwritten-text-images")

    # What: Page size for the list call (Admin API caps this at 500)
    cloudinary_max_results: int = Field(default=100, ge=1, le=500)

    @field_validator("cloudinary_folder")
    @classmethod
    def validate_folder(cls, v: str) -> str:
        """Strips surrounding slashes; the folder must not be empty."""
        folder = v.strip().strip("/")
        if not folder:
            raise ValueError("cloudinary_folder must not be empty")
        return folder

    # ── Renderer ──────────────────────────────────────────────────────────
    # What: Path to a TrueType handwriting font (e.g. Caveat, Homemade Apple).
    # Unset → Pillow's built-in scalable font.
    handwriting_font_path: Optional[str] = Field(default=None)

    # Default page is A4 at 300 dpi
    page_width: int = Field(default=2480, ge=400, le=6000)
    page_height: int = Field(default=3508, ge=400, le=8000)
    page_margin: int = Field(default=160, ge=0, le=1000)
    font_size: int = Field(default=64, ge=8, le=400)
    line_spacing: int = Field(default=96, ge=10, le=600)

    # What: Upper bound on submitted text, counted in characters
    max_text_length: int = Field(default=20_000, ge=1, le=1_000_000)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs
    cors_origins: str = Field(default="http://localhost:3000")

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

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # CLOUDINARY_FOLDER and cloudinary_folder both work
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that the media store credentials are configured.
        When:  Called during app startup (lifespan).
        How:   Collects every missing field and raises one ValueError listing them.
        """
        missing = [
            name.upper()
            for name in ("cloudinary_cloud_name", "cloudinary_api_key", "cloudinary_api_secret")
            if not getattr(self, name)
        ]
        if missing:
            raise ValueError(
                "Configuration validation failed:\n"
                + "\n".join(f"  - {name} is not set" for name in missing)
                + "\nFind these values at https://console.cloudinary.com/settings/api-keys"
            )


# Singleton instance, imported throughout the application
settings = Settings()

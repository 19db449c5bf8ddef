"""Runtime configuration."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

ENV_PREFIX = "PANDORA_"


class PandoraConfig(BaseModel):
    """Tunable values for capture, reconciliation and chapter segmentation."""

    base_url: str = "https://www.pandoracampus.it"
    downloads_dir: Path = Path("downloads")
    # page.pdf() requires headless Chromium
    headless: bool = True

    # Batch capture
    batch_size: int = Field(default=10, ge=1)
    batch_delay: float = Field(default=2.0, ge=0)

    # Files at or below this size are treated as blank renders
    min_valid_size: int = Field(default=1000, ge=0)

    # Browser timings
    navigation_timeout_ms: int = 30_000
    element_timeout_ms: int = 15_000
    login_timeout_ms: int = 15_000
    reader_timeout_ms: int = 30_000
    settle_delay: float = 3.0
    render_delay: float = 2.0

    # Chapter segmentation (case-insensitive)
    preface_pattern: str = r"premessa"
    chapter_pattern: str = r"^capitolo\s+\d+"

    max_title_length: int = 80

    @classmethod
    def from_env(cls, **overrides) -> "PandoraConfig":
        """Build a config from PANDORA_* environment variables.

        Keyword overrides win over the environment. A .env file in the
        working directory is loaded first.
        """
        load_dotenv()
        values: dict = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw.strip():
                values[name] = raw.strip()
        values.update({k: v for k, v in overrides.items() if v is not None})
        # pydantic coerces the string values to the declared field types
        return cls.model_validate(values)


class Credentials(BaseModel):
    """Login for the reader site."""

    email: str
    password: str

    @classmethod
    def from_env(cls) -> "Credentials":
        """Read PANDORA_EMAIL and PANDORA_PASSWORD.

        Raises:
            ValueError: If either variable is missing
        """
        load_dotenv()
        email = os.getenv(f"{ENV_PREFIX}EMAIL", "").strip()
        password = os.getenv(f"{ENV_PREFIX}PASSWORD", "").strip()
        if not email or not password:
            raise ValueError(
                f"Set {ENV_PREFIX}EMAIL and {ENV_PREFIX}PASSWORD (environment or .env)"
            )
        return cls(email=email, password=password)

"""Environment settings for blueprint-docs.

Settings are loaded from environment variables (``BLUEPRINT_DOCS_`` prefix)
and an optional ``.env`` file via pydantic-settings. They only provide
defaults for the command line; the documentation itself is driven by the
docconfig.json file (see ``blueprint_docs.config``).

Environment variables:
    BLUEPRINT_DOCS_CONFIG_PATH: Config file used when ``--project`` is not given
    BLUEPRINT_DOCS_SOURCE_ROOT: Directory scanned when no paths are given
    BLUEPRINT_DOCS_POLL_INTERVAL: Seconds between source checks in watch mode
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Command line defaults, frozen after initialization."""

    model_config = SettingsConfigDict(
        env_prefix="BLUEPRINT_DOCS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    config_path: str = "./docconfig.json"
    source_root: str = "."
    poll_interval: float = 1.0


settings = Settings()

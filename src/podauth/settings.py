"""Environment toggles for the integration test harness.

These are resolved once here; the auth pipeline itself only receives plain
booleans and durations.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class HarnessSettings(BaseSettings):
    """Harness toggles loaded from the environment or a ``.env`` file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    auto_regenerate: bool = Field(
        default=True,
        alias="AUTO_REGENERATE",
        description="Regenerate expired or missing auth data during test setup",
    )

    interact_seconds: int = Field(
        default=0,
        ge=0,
        alias="INTERACT",
        description="Pause between UI steps so a human can follow along",
    )

    @property
    def interact(self) -> timedelta:
        return timedelta(seconds=self.interact_seconds)


@lru_cache
def get_settings() -> HarnessSettings:
    settings = HarnessSettings()
    logger.debug(
        f"Harness settings: auto_regenerate={settings.auto_regenerate}, "
        f"interact={settings.interact_seconds}s"
    )
    return settings

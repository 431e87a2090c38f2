# File: podscribe/features/asr_providers/data/env_settings_store.py
import os

from podscribe.core.config.settings import settings as app_settings
from ..domain.interfaces import ISettingsStore
from ..domain.models import AsrSettings


class EnvSettingsStore(ISettingsStore):
    """
    Reads ASR credentials from environment variables on every load(),
    so a changed credential takes effect on the next task.
    """

    def load(self) -> AsrSettings:
        return AsrSettings(
            asr_provider=os.getenv("ASR_PROVIDER") or None,
            volc_app_key=os.getenv("VOLC_ASR_APP_KEY", ""),
            volc_access_key=os.getenv("VOLC_ASR_ACCESS_KEY", ""),
            tencent_app_id=os.getenv("TENCENT_ASR_APP_ID", ""),
            tencent_secret_id=os.getenv("TENCENT_ASR_SECRET_ID", ""),
            tencent_secret_key=os.getenv("TENCENT_ASR_SECRET_KEY", ""),
            language=os.getenv("ASR_LANGUAGE", app_settings.ASR_DEFAULT_LANGUAGE),
        )


class StaticSettingsStore(ISettingsStore):
    """Fixed settings, for embedding callers and tests."""

    def __init__(self, settings: AsrSettings):
        self.settings = settings

    def load(self) -> AsrSettings:
        return self.settings

# File: podscribe/features/asr_providers/service/registry.py
import logging
from typing import Dict, Iterable, List, Optional

from podscribe.core.config.settings import settings as app_settings
from ..data.tencent_adapter import TencentFlashProvider
from ..data.volcengine_adapter import VolcengineProvider
from ..domain.interfaces import IAsrProvider
from ..domain.models import AsrSettings

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """
    Lookup table of ASR backends by id. Built explicitly; importing a provider
    module never registers anything.
    """

    def __init__(self, providers: Iterable[IAsrProvider] = ()):
        self._providers: Dict[str, IAsrProvider] = {}
        for provider in providers:
            self.register(provider)

    def register(self, provider: IAsrProvider) -> None:
        if provider.id in self._providers:
            logger.warning(f"Replacing ASR provider '{provider.id}'")
        self._providers[provider.id] = provider

    def get(self, provider_id: str) -> Optional[IAsrProvider]:
        return self._providers.get(provider_id)

    def all(self) -> List[IAsrProvider]:
        return list(self._providers.values())

    def get_active(self, settings: AsrSettings) -> Optional[IAsrProvider]:
        return self.get(settings.asr_provider or app_settings.ASR_DEFAULT_PROVIDER)

    def is_asr_configured(self, settings: AsrSettings) -> bool:
        provider = self.get_active(settings)
        return provider.is_configured(settings) if provider else False


def build_default_registry() -> ProviderRegistry:
    """The built-in backends, constructed once at startup."""
    return ProviderRegistry([VolcengineProvider(), TencentFlashProvider()])

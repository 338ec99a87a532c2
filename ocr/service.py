import logging
from pathlib import Path
from typing import Dict, Optional, Type, Union

from models import OcrResult
from ocr.providers.base import OcrProvider
from ocr.providers.google_vision import GoogleVisionProvider
from ocr.providers.mock import MockProvider
from ocr.providers.ocr_space import OcrSpaceProvider
from ocr.providers.textract import TextractProvider
from ocr.providers.vision_chat import VisionChatProvider
from pipeline.config import OcrProviderName, ScannerConfig


logger = logging.getLogger(__name__)

PROVIDERS: Dict[OcrProviderName, Type[OcrProvider]] = {
    OcrProviderName.MOCK: MockProvider,
    OcrProviderName.OCR_SPACE: OcrSpaceProvider,
    OcrProviderName.GOOGLE_VISION: GoogleVisionProvider,
    OcrProviderName.AWS_TEXTRACT: TextractProvider,
    OcrProviderName.VISION_CHAT: VisionChatProvider,
}


def build_provider(config: ScannerConfig, name: Optional[OcrProviderName] = None) -> OcrProvider:
    name = OcrProviderName(name or config.ocr_provider)
    provider_cls = PROVIDERS[name]
    return provider_cls(config.provider_config(name))


class OcrService:
    """Resolves the configured provider once and runs extractions through it."""

    def __init__(self, config: ScannerConfig, provider: Optional[OcrProvider] = None):
        self.config = config
        self.provider = provider or build_provider(config)
        self.enhanced = config.enhanced_prompt
        if self.enhanced and not self.provider.supports_enhanced:
            logger.info(
                "Provider %s has no enhanced mode; using standard extraction",
                self.provider.name.value,
            )

    @property
    def provider_name(self) -> str:
        return self.provider.name.value

    @property
    def uses_enhanced_prompt(self) -> bool:
        return self.enhanced and self.provider.supports_enhanced

    def extract_text(self, image_path: Union[str, Path]) -> OcrResult:
        return self.provider.extract_text(image_path, enhanced=self.enhanced)

    def fallback_result(self) -> OcrResult:
        """Mock result stamped with this service's provider (used on timeouts)."""
        return self.provider.fallback_result()

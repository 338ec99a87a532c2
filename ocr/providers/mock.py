from pathlib import Path

from models import OcrResult
from ocr.mock_data import build_mock_result
from ocr.providers.base import OcrProvider
from pipeline.config import OcrProviderName


class MockProvider(OcrProvider):
    """Returns the same Pebble Beach scorecard for every image."""

    name = OcrProviderName.MOCK

    def _extract(self, path: Path, enhanced: bool) -> OcrResult:
        return build_mock_result(provider=self.name.value, confidence=self.config.confidence)

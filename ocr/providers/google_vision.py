from pathlib import Path

from models import OcrResult
from ocr.exceptions import ProviderUnavailableError
from ocr.providers.base import OcrProvider
from pipeline.config import OcrProviderName


class GoogleVisionProvider(OcrProvider):
    """Placeholder for Google Cloud Vision. Always degrades to mock data."""

    name = OcrProviderName.GOOGLE_VISION

    def _extract(self, path: Path, enhanced: bool) -> OcrResult:
        raise ProviderUnavailableError(
            "Google Vision API not yet implemented. Configure a different provider."
        )

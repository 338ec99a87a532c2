from pathlib import Path

from models import OcrResult
from ocr.exceptions import ProviderUnavailableError
from ocr.providers.base import OcrProvider
from pipeline.config import OcrProviderName


class TextractProvider(OcrProvider):
    """Placeholder for AWS Textract. Always degrades to mock data."""

    name = OcrProviderName.AWS_TEXTRACT

    def _extract(self, path: Path, enhanced: bool) -> OcrResult:
        raise ProviderUnavailableError(
            "AWS Textract not yet implemented. Configure a different provider."
        )

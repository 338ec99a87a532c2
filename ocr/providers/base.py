import logging
import time
from pathlib import Path
from typing import Union

from models import OcrResult
from ocr.exceptions import ProviderUnavailableError
from ocr.mock_data import build_mock_result
from pipeline.config import OcrProviderConfig, OcrProviderName


logger = logging.getLogger(__name__)


class OcrProvider:
    """Common contract for OCR backends.

    Subclasses implement ``_extract`` and raise ProviderUnavailableError for
    transport, auth or not-implemented failures; ``extract_text`` turns those
    into the deterministic mock result so callers always get an OcrResult.
    InvalidFormatError is not caught here.
    """

    name: OcrProviderName
    supports_enhanced = False

    def __init__(self, config: OcrProviderConfig):
        self.config = config

    def extract_text(self, image_path: Union[str, Path], enhanced: bool = False) -> OcrResult:
        path = Path(image_path)
        use_enhanced = enhanced and self.supports_enhanced
        started = time.monotonic()
        try:
            result = self._extract(path, use_enhanced)
        except ProviderUnavailableError as e:
            logger.warning(
                "OCR provider %s failed for %s, using mock data: %s",
                self.name.value, path, e,
            )
            result = self.fallback_result()
        result.processing_time_ms = int((time.monotonic() - started) * 1000)
        result.enhanced_format = use_enhanced and not result.used_fallback
        return result

    def fallback_result(self) -> OcrResult:
        result = build_mock_result(provider=self.name.value)
        result.used_fallback = True
        return result

    def _extract(self, path: Path, enhanced: bool) -> OcrResult:
        raise NotImplementedError

    def _read_image(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise ProviderUnavailableError(f"Cannot read image {path}: {e}") from e

import logging
from pathlib import Path
from typing import Any, Dict, Mapping

import requests

from models import OcrLine, OcrResult, OcrWord
from ocr.exceptions import ProviderUnavailableError
from ocr.providers.base import OcrProvider
from pipeline.config import OcrProviderName


logger = logging.getLogger(__name__)

DEFAULT_URL = "https://api.ocr.space/parse/image"


class OcrSpaceProvider(OcrProvider):
    """OCR.space REST API (multipart upload, table mode)."""

    name = OcrProviderName.OCR_SPACE

    def _extract(self, path: Path, enhanced: bool) -> OcrResult:
        if not self.config.api_key:
            raise ProviderUnavailableError("OCR.space API key not configured (OCRSPACE_API_KEY)")

        image = self._read_image(path)
        try:
            response = requests.post(
                self.config.base_url or DEFAULT_URL,
                files={"file": (path.name, image)},
                data={
                    "apikey": self.config.api_key,
                    "language": self.config.language,
                    "isOverlayRequired": "true",
                    "detectOrientation": "true",
                    "scale": "true",
                    "isTable": "true",
                },
                timeout=self.config.timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise ProviderUnavailableError(f"OCR.space request failed: {e}") from e
        except ValueError as e:
            raise ProviderUnavailableError(f"OCR.space returned non-JSON body: {e}") from e

        if payload.get("IsErroredOnProcessing"):
            raise ProviderUnavailableError(f"OCR.space error: {payload.get('ErrorMessage')}")

        return self.parse_response(payload)

    def parse_response(self, payload: Mapping[str, Any]) -> OcrResult:
        results = payload.get("ParsedResults") or []
        if not results:
            return OcrResult(provider=self.name.value)

        first = results[0]
        overlay = first.get("TextOverlay") or {}
        words = []
        lines = []
        for line in overlay.get("Lines") or []:
            line_words = [
                OcrWord(
                    text=word.get("WordText", ""),
                    confidence=self.calculate_word_confidence(word),
                    bbox=word.get("Left", 0),
                )
                for word in line.get("Words") or []
            ]
            words.extend(line_words)
            lines.append(OcrLine(
                text=line.get("LineText") or " ".join(w.text for w in line_words),
                confidence=0.9,
                words=line_words,
            ))

        return OcrResult(
            raw_text=first.get("ParsedText", ""),
            confidence=0.95 if overlay.get("HasOverlay") else 0.70,
            words=words,
            lines=lines,
            provider=self.name.value,
        )

    def calculate_word_confidence(self, word: Dict[str, Any]) -> float:
        """Estimate word confidence from its shape; never above 1.0."""
        text = str(word.get("WordText", ""))
        confidence = self.config.confidence
        if text.replace(".", "", 1).isdigit():
            confidence += 0.1
        if len(text) > 2:
            confidence += 0.05
        try:
            height = int(word.get("Height", 10))
            width = int(word.get("Width", 10))
        except (TypeError, ValueError):
            height = width = 10
        if height > 15 and width > 15:
            confidence += 0.05
        return min(confidence, 1.0)

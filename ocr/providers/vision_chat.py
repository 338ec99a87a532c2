import logging
from pathlib import Path
from typing import Optional

from google import genai
from google.genai import types

from models import OcrResult
from ocr.exceptions import InvalidFormatError, ProviderUnavailableError
from ocr.formatting import (
    enhance_flat_data,
    enhanced_properties,
    extract_json_object,
    flat_properties,
    format_enhanced_text,
    format_flat_text,
    lines_from_text,
    process_player_scores,
    process_tee_boxes,
    section_confidence,
    words_from_text,
)
from ocr.prompts import RawEnhancedScorecard, build_enhanced_prompt, build_standard_prompt
from ocr.providers.base import OcrProvider
from pipeline.config import OcrProviderName
from quality.validator import GolfDataValidator, ValidationPolicy


logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
RAW_TEXT_CONFIDENCE = 0.9
MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}


def _get_mime_type(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix not in MIME_TYPES:
        raise ValueError(
            f"Unsupported file type: {suffix}. "
            f"Supported: {', '.join(sorted(MIME_TYPES.keys()))}"
        )
    return MIME_TYPES[suffix]


class VisionChatProvider(OcrProvider):
    """Multimodal chat-completion OCR through the Gemini API.

    Standard mode asks for the flat schema and tolerates a prose reply.
    Enhanced mode asks for the nested schema and requires JSON back.
    """

    name = OcrProviderName.VISION_CHAT
    supports_enhanced = True

    def __init__(self, config, client: Optional[genai.Client] = None,
                 validator: Optional[GolfDataValidator] = None):
        super().__init__(config)
        self._client = client
        self._validator = validator or GolfDataValidator(ValidationPolicy.STRICT)

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self.config.api_key:
                raise ProviderUnavailableError(
                    "GOOGLE_API_KEY is not set. Get an API key at https://aistudio.google.com/apikey"
                )
            self._client = genai.Client(
                api_key=self.config.api_key,
                http_options=types.HttpOptions(timeout=int(self.config.timeout_seconds * 1000)),
            )
        return self._client

    def _load_image_part(self, path: Path) -> types.Part:
        return types.Part.from_bytes(data=self._read_image(path), mime_type=_get_mime_type(path))

    def _call(self, part: types.Part, enhanced: bool) -> str:
        client = self._get_client()
        if enhanced:
            config = types.GenerateContentConfig(
                response_mime_type="application/json",
                response_json_schema=RawEnhancedScorecard.model_json_schema(),
            )
            prompt = build_enhanced_prompt()
        else:
            config = types.GenerateContentConfig(response_mime_type="application/json")
            prompt = build_standard_prompt()
        try:
            response = client.models.generate_content(
                model=self.config.model or DEFAULT_MODEL,
                contents=[part, prompt],
                config=config,
            )
        # Transport seam: any client/network failure degrades to mock data.
        except Exception as e:
            raise ProviderUnavailableError(f"Vision chat request failed: {e}") from e
        return response.text or ""

    def _extract(self, path: Path, enhanced: bool) -> OcrResult:
        part = self._load_image_part(path)
        content = self._call(part, enhanced)
        if enhanced:
            return self.parse_enhanced(content)
        return self.parse_standard(content)

    # ================================================================
    # Reply parsing
    # ================================================================

    def parse_standard(self, content: str) -> OcrResult:
        data = extract_json_object(content)
        if data is None:
            # Prose reply: keep it as plain OCR text.
            return OcrResult(
                raw_text=content,
                confidence=RAW_TEXT_CONFIDENCE,
                words=words_from_text(content),
                lines=lines_from_text(content),
                provider=self.name.value,
            )

        structured = enhance_flat_data(data)
        text = format_flat_text(structured)
        return OcrResult(
            raw_text=text,
            confidence=RAW_TEXT_CONFIDENCE,
            words=words_from_text(text),
            lines=lines_from_text(text),
            provider=self.name.value,
            structured_data=structured,
            golf_course_properties=flat_properties(structured),
        )

    def parse_enhanced(self, content: str) -> OcrResult:
        data = extract_json_object(content)
        if data is None:
            logger.warning("Enhanced reply was not JSON: %.500s", content)
            raise InvalidFormatError("Invalid JSON response from OCR provider")

        data = dict(data)
        data["validation_errors"] = self._validator.validate_enhanced_payload(data)
        if isinstance(data.get("tee_boxes"), list):
            data["tee_boxes"] = process_tee_boxes([t for t in data["tee_boxes"] if isinstance(t, dict)])
        if isinstance(data.get("player_scores"), list):
            data["player_scores"] = process_player_scores(
                [p for p in data["player_scores"] if isinstance(p, dict)]
            )
        data["overall_confidence"] = section_confidence(data)

        text = format_enhanced_text(data)
        return OcrResult(
            raw_text=text,
            confidence=data["overall_confidence"],
            words=words_from_text(text),
            lines=lines_from_text(text),
            provider=self.name.value,
            structured_data=data,
            golf_course_properties=enhanced_properties(data),
        )

from ocr.providers.base import OcrProvider
from ocr.providers.google_vision import GoogleVisionProvider
from ocr.providers.mock import MockProvider
from ocr.providers.ocr_space import OcrSpaceProvider
from ocr.providers.textract import TextractProvider
from ocr.providers.vision_chat import VisionChatProvider

__all__ = [
    "GoogleVisionProvider",
    "MockProvider",
    "OcrProvider",
    "OcrSpaceProvider",
    "TextractProvider",
    "VisionChatProvider",
]

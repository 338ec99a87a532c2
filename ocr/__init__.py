from ocr.exceptions import InvalidFormatError, OcrError, ProviderUnavailableError
from ocr.service import PROVIDERS, OcrService, build_provider

__all__ = [
    "InvalidFormatError",
    "OcrError",
    "OcrService",
    "PROVIDERS",
    "ProviderUnavailableError",
    "build_provider",
]

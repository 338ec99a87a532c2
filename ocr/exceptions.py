class OcrError(Exception):
    """Base for OCR provider errors."""


class ProviderUnavailableError(OcrError):
    """Transport, auth or not-implemented failure. Recovered with mock data."""


class InvalidFormatError(OcrError):
    """Provider returned a payload that does not match the promised structure."""

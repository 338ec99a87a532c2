"""Scanner configuration.

Configuration is built once (usually from the environment) and passed
into constructors. Nothing here is read or mutated at call time.
"""

import os
from enum import Enum
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field


class OcrProviderName(str, Enum):
    """Closed set of OCR backends."""
    MOCK = "mock"
    OCR_SPACE = "ocrspace"
    GOOGLE_VISION = "google"
    AWS_TEXTRACT = "aws"
    VISION_CHAT = "vision_chat"


class OcrProviderConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    driver: OcrProviderName
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout_seconds: float = Field(30.0, gt=0)
    language: str = "eng"
    model: Optional[str] = None
    confidence: float = Field(0.8, ge=0.0, le=1.0)


class ImageProcessingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_width: int = Field(2048, gt=0)
    max_height: int = Field(2048, gt=0)
    quality: int = Field(85, ge=1, le=100)
    contrast: int = 20
    sharpen: int = 10
    allow_upscale: bool = False


class ReconciliationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    course_confidence_threshold: float = Field(0.85, ge=0.0, le=1.0)
    min_completeness: int = Field(70, ge=0, le=100)
    match_retry_attempts: int = Field(2, ge=1)


class TrainingThresholds(BaseModel):
    """Training-candidate cut-offs. Independent of the course threshold."""
    model_config = ConfigDict(frozen=True)

    high_confidence: float = 0.8
    high_completeness: int = 70
    low_confidence: float = 0.7
    low_completeness: int = 60


def default_providers() -> Dict[OcrProviderName, OcrProviderConfig]:
    return {
        OcrProviderName.MOCK: OcrProviderConfig(
            driver=OcrProviderName.MOCK, timeout_seconds=5, confidence=0.95,
        ),
        OcrProviderName.OCR_SPACE: OcrProviderConfig(
            driver=OcrProviderName.OCR_SPACE,
            base_url="https://api.ocr.space/parse/image",
            timeout_seconds=30,
        ),
        OcrProviderName.GOOGLE_VISION: OcrProviderConfig(
            driver=OcrProviderName.GOOGLE_VISION, timeout_seconds=30,
        ),
        OcrProviderName.AWS_TEXTRACT: OcrProviderConfig(
            driver=OcrProviderName.AWS_TEXTRACT, timeout_seconds=30,
        ),
        OcrProviderName.VISION_CHAT: OcrProviderConfig(
            driver=OcrProviderName.VISION_CHAT,
            model="gemini-2.5-flash",
            timeout_seconds=60,
        ),
    }


class ScannerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    ocr_provider: OcrProviderName = OcrProviderName.MOCK
    enhanced_prompt: bool = False
    providers: Dict[OcrProviderName, OcrProviderConfig] = Field(default_factory=default_providers)
    imaging: ImageProcessingConfig = Field(default_factory=ImageProcessingConfig)
    reconciliation: ReconciliationConfig = Field(default_factory=ReconciliationConfig)
    training: TrainingThresholds = Field(default_factory=TrainingThresholds)
    database_dsn: Optional[str] = None
    max_concurrent_scans: int = Field(4, ge=1)
    model_version: str = "v1"

    def provider_config(self, name: Optional[OcrProviderName] = None) -> OcrProviderConfig:
        name = name or self.ocr_provider
        return self.providers.get(name) or OcrProviderConfig(driver=name)

    def with_provider(self, name: OcrProviderName, enhanced: Optional[bool] = None) -> "ScannerConfig":
        """Copy of this config pointing at another provider."""
        update = {"ocr_provider": name}
        if enhanced is not None:
            update["enhanced_prompt"] = enhanced
        return self.model_copy(update=update)

    @classmethod
    def from_env(cls) -> "ScannerConfig":
        load_dotenv()

        def _flag(key: str, default: str = "false") -> bool:
            return os.getenv(key, default).strip().lower() in ("1", "true", "yes", "on")

        providers = default_providers()
        providers[OcrProviderName.MOCK] = providers[OcrProviderName.MOCK].model_copy(
            update={"confidence": float(os.getenv("MOCK_OCR_CONFIDENCE", "0.95"))}
        )
        providers[OcrProviderName.OCR_SPACE] = providers[OcrProviderName.OCR_SPACE].model_copy(update={
            "api_key": os.getenv("OCRSPACE_API_KEY"),
            "base_url": os.getenv("OCRSPACE_URL", "https://api.ocr.space/parse/image"),
            "timeout_seconds": float(os.getenv("OCRSPACE_TIMEOUT", "30")),
            "language": os.getenv("OCRSPACE_LANGUAGE", "eng"),
        })
        providers[OcrProviderName.GOOGLE_VISION] = providers[OcrProviderName.GOOGLE_VISION].model_copy(
            update={"api_key": os.getenv("GOOGLE_VISION_API_KEY")}
        )
        providers[OcrProviderName.AWS_TEXTRACT] = providers[OcrProviderName.AWS_TEXTRACT].model_copy(
            update={"api_key": os.getenv("AWS_ACCESS_KEY_ID")}
        )
        providers[OcrProviderName.VISION_CHAT] = providers[OcrProviderName.VISION_CHAT].model_copy(update={
            "api_key": os.getenv("GOOGLE_API_KEY"),
            "model": os.getenv("SCORECARD_VISION_MODEL", "gemini-2.5-flash"),
            "timeout_seconds": float(os.getenv("SCORECARD_VISION_TIMEOUT", "60")),
        })

        return cls(
            ocr_provider=OcrProviderName(os.getenv("SCORECARD_OCR_PROVIDER", "mock")),
            enhanced_prompt=_flag("SCORECARD_OCR_ENHANCED_PROMPT"),
            providers=providers,
            imaging=ImageProcessingConfig(
                max_width=int(os.getenv("SCORECARD_IMAGE_MAX_WIDTH", "2048")),
                max_height=int(os.getenv("SCORECARD_IMAGE_MAX_HEIGHT", "2048")),
                quality=int(os.getenv("SCORECARD_IMAGE_QUALITY", "85")),
            ),
            reconciliation=ReconciliationConfig(
                course_confidence_threshold=float(os.getenv("SCORECARD_COURSE_CONFIDENCE", "0.85")),
                min_completeness=int(os.getenv("SCORECARD_MIN_COMPLETENESS", "70")),
            ),
            database_dsn=os.getenv("DATABASE_URL"),
            max_concurrent_scans=int(os.getenv("SCORECARD_MAX_CONCURRENT_SCANS", "4")),
            model_version=os.getenv("SCORECARD_MODEL_VERSION", "v1"),
        )

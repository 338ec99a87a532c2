import pytest
import shutil
import time

from factories import (
    InMemoryCourseStore,
    InMemoryRoundStore,
    InMemoryScanStore,
    InMemoryTrainingStore,
)
from models import ScanResult, ScanStatus
from ocr.exceptions import InvalidFormatError
from ocr.mock_data import build_mock_result
from ocr.providers import MockProvider
from ocr.service import OcrService
from pipeline.batch import BatchItem, BatchReport, convert_scans_to_courses, process_batch
from pipeline.config import OcrProviderConfig, OcrProviderName, ScannerConfig, default_providers
from pipeline.processor import ScanProcessingError, ScorecardPipeline
from reconciliation import NO_DATA_ERROR, ReconciliationEngine, ReconciliationResult
from training.service import TrainingDataService


class SlowProvider(MockProvider):
    def _extract(self, path, enhanced):
        time.sleep(0.5)
        return super()._extract(path, enhanced)


class GarbledProvider(MockProvider):
    def _extract(self, path, enhanced):
        raise InvalidFormatError("Invalid JSON response from OCR provider")


class CrashingProvider(MockProvider):
    def _extract(self, path, enhanced):
        raise AttributeError("'list' object has no attribute 'get'")


class BrokenScanStore(InMemoryScanStore):
    async def create_scan(self, scan):
        raise RuntimeError("database unavailable")


@pytest.fixture
def stores():
    return {
        "courses": InMemoryCourseStore(),
        "rounds": InMemoryRoundStore(),
        "scans": InMemoryScanStore(),
        "training": InMemoryTrainingStore(),
    }


def _pipeline(stores, config=None, ocr=None):
    config = config or ScannerConfig()
    return ScorecardPipeline(
        config,
        ocr=ocr,
        engine=ReconciliationEngine(stores["courses"], stores["rounds"], config=config.reconciliation),
        scan_store=stores["scans"],
        training=TrainingDataService(stores["training"], thresholds=config.training),
    )


# ================================================================
# Single scan
# ================================================================

@pytest.mark.asyncio
async def test_mock_scan_end_to_end(stores, scorecard_image):
    outcome = await _pipeline(stores).process(scorecard_image, user_id="u1")

    scan = outcome.scan
    assert outcome.completed
    assert scan.id in stores["scans"].scans
    assert stores["scans"].scans[scan.id].status == ScanStatus.COMPLETED
    assert scan.processed_image_ref.endswith("processed/card.jpg")
    assert scan.raw_ocr_payload["provider"] == "mock"
    assert scan.parsed_data.course_name == "Pebble Beach Golf Links"
    assert scan.parsed_data.confidence_score == pytest.approx(0.95)
    assert scan.confidence_scores["overall"] == pytest.approx(0.95)

    result = outcome.reconciliation
    assert result.course_created
    assert result.round_created
    assert result.scores_created == 36
    assert stores["courses"].courses[0].tee_name == "Championship"
    assert stores["rounds"].rounds[0].total_score == 73

    record = outcome.training_record
    assert record.scan_id == scan.id
    assert record.is_training_candidate
    assert record.data_completeness_score == 100
    assert len(stores["training"].records) == 1


@pytest.mark.asyncio
async def test_second_scan_matches_existing_course(stores, scorecard_image):
    pipeline = _pipeline(stores)
    await pipeline.process(scorecard_image, user_id="u1")
    outcome = await pipeline.process(scorecard_image, user_id="u2")

    assert outcome.reconciliation.course_matched
    assert len(stores["courses"].courses) == 1
    assert len(stores["rounds"].rounds) == 2


@pytest.mark.asyncio
async def test_low_confidence_scan_is_staged(stores, scorecard_image):
    providers = default_providers()
    providers[OcrProviderName.MOCK] = OcrProviderConfig(driver=OcrProviderName.MOCK, confidence=0.5)
    outcome = await _pipeline(stores, ScannerConfig(providers=providers)).process(
        scorecard_image, user_id="u1"
    )

    assert outcome.completed
    assert outcome.reconciliation.added_to_unverified
    assert stores["courses"].courses == []
    assert stores["courses"].unverified[0].name == "Pebble Beach Golf Links"
    assert stores["rounds"].rounds == []


@pytest.mark.asyncio
async def test_missing_image_fails_scan(stores, tmp_path):
    outcome = await _pipeline(stores).process(tmp_path / "missing.jpg", user_id="u1")

    assert outcome.scan.status == ScanStatus.FAILED
    assert "Image not found" in outcome.scan.error_message
    assert stores["scans"].scans[outcome.scan.id].status == ScanStatus.FAILED
    assert outcome.reconciliation is None
    assert outcome.training_record is None
    assert stores["training"].records == []


@pytest.mark.asyncio
async def test_failure_raised_on_request(stores, tmp_path):
    with pytest.raises(ScanProcessingError) as exc_info:
        await _pipeline(stores).process(tmp_path / "missing.jpg", raise_on_failure=True)
    assert exc_info.value.scan.status == ScanStatus.FAILED


@pytest.mark.asyncio
async def test_invalid_provider_reply_fails_scan(stores, scorecard_image):
    config = ScannerConfig()
    ocr = OcrService(config, provider=GarbledProvider(config.provider_config()))
    outcome = await _pipeline(stores, config, ocr).process(scorecard_image)

    assert outcome.scan.status == ScanStatus.FAILED
    assert outcome.scan.error_message == "Invalid JSON response from OCR provider"


@pytest.mark.asyncio
async def test_truncated_image_fails_scan(stores, scorecard_image):
    data = scorecard_image.read_bytes()
    scorecard_image.write_bytes(data[: len(data) // 2])

    outcome = await _pipeline(stores).process(scorecard_image, user_id="u1")

    assert outcome.scan.status == ScanStatus.FAILED
    assert "Cannot open image" in outcome.scan.error_message
    assert [s.status for s in stores["scans"].scans.values()] == [ScanStatus.FAILED]
    assert outcome.reconciliation is None


@pytest.mark.asyncio
async def test_unexpected_stage_error_fails_scan(stores, scorecard_image):
    config = ScannerConfig()
    ocr = OcrService(config, provider=CrashingProvider(config.provider_config()))

    outcome = await _pipeline(stores, config, ocr).process(scorecard_image)

    assert outcome.scan.status == ScanStatus.FAILED
    assert outcome.scan.error_message == "Processing failed: 'list' object has no attribute 'get'"
    assert stores["scans"].scans[outcome.scan.id].status == ScanStatus.FAILED
    assert stores["training"].records == []


@pytest.mark.asyncio
async def test_ocr_timeout_uses_mock_data(stores, scorecard_image, monkeypatch):
    monkeypatch.setattr("pipeline.processor.OCR_TIMEOUT_GRACE_SECONDS", 0.0)
    providers = default_providers()
    providers[OcrProviderName.MOCK] = OcrProviderConfig(driver=OcrProviderName.MOCK, timeout_seconds=0.05)
    config = ScannerConfig(providers=providers)
    ocr = OcrService(config, provider=SlowProvider(config.provider_config()))

    outcome = await _pipeline(stores, config, ocr).process(scorecard_image, user_id="u1")

    assert outcome.completed
    assert outcome.ocr_result.used_fallback
    assert outcome.scan.parsed_data.course_name == "Pebble Beach Golf Links"


@pytest.mark.asyncio
async def test_pipeline_without_stores(scorecard_image):
    outcome = await ScorecardPipeline(ScannerConfig()).process(scorecard_image)
    assert outcome.completed
    assert outcome.scan.id
    assert outcome.reconciliation is None
    assert outcome.training_record is None


def test_from_pool_wires_repositories(mock_pool):
    pool, _ = mock_pool
    pipeline = ScorecardPipeline.from_pool(ScannerConfig(model_version="v2"), pool)
    assert pipeline.engine.materializer is not None
    assert pipeline.scan_store is not None
    assert pipeline.training.model_version == "v2"


# ================================================================
# Batch
# ================================================================

@pytest.mark.asyncio
async def test_batch_report(stores, scorecard_image):
    second = scorecard_image.with_name("card2.jpg")
    shutil.copy(scorecard_image, second)
    missing = scorecard_image.with_name("missing.jpg")

    report = await process_batch(
        _pipeline(stores), [scorecard_image, second, missing], user_id="u1", max_concurrent=2,
    )

    assert report.processed == 3
    assert report.created == 1
    assert report.rounds_created == 2
    assert report.scores_created == 72
    assert report.skipped == 1
    assert len(report.errors) == 1
    assert report.errors[0].startswith(str(missing))
    assert [i.status for i in report.items] == ["completed", "completed", "failed"]


@pytest.mark.asyncio
async def test_batch_item_exception_does_not_stop_batch(stores, scorecard_image):
    stores["scans"] = BrokenScanStore()
    report = await process_batch(_pipeline(stores), [scorecard_image])

    assert report.processed == 1
    assert report.items[0].status == "error"
    assert report.errors == [f"{scorecard_image}: database unavailable"]


@pytest.mark.asyncio
async def test_convert_scans_to_courses(stores):
    good = ScanResult(
        id="s1",
        status=ScanStatus.COMPLETED,
        original_image_ref="card.jpg",
        raw_ocr_payload=build_mock_result().model_dump(mode="json"),
    )
    empty = ScanResult(id="s2", status=ScanStatus.COMPLETED, original_image_ref="blank.jpg")
    engine = ReconciliationEngine(stores["courses"])

    report = await convert_scans_to_courses(engine, [good, empty])

    assert report.processed == 2
    # mock payload carries no confidence_score, so the course is staged
    assert report.unverified_courses == 1
    assert report.skipped == 1
    assert report.errors == [f"s2: {NO_DATA_ERROR}"]


def test_batch_report_counts():
    report = BatchReport()
    report.add(BatchItem(source="a", reconciliation=ReconciliationResult(course_created=True, course_id="c1")))
    report.add(BatchItem(source="b", reconciliation=ReconciliationResult(added_to_unverified=True)))
    report.add(BatchItem(source="c", reconciliation=ReconciliationResult(errors=["bad"]), errors=["bad"]))
    assert report.created == 1
    assert report.unverified_courses == 1
    assert report.skipped == 1
    assert report.errors == ["c: bad"]


# ================================================================
# Configuration
# ================================================================

def test_config_from_env(monkeypatch):
    monkeypatch.setenv("SCORECARD_OCR_PROVIDER", "ocrspace")
    monkeypatch.setenv("SCORECARD_OCR_ENHANCED_PROMPT", "yes")
    monkeypatch.setenv("OCRSPACE_API_KEY", "k123")
    monkeypatch.setenv("OCRSPACE_TIMEOUT", "12")
    monkeypatch.setenv("SCORECARD_COURSE_CONFIDENCE", "0.9")
    monkeypatch.setenv("SCORECARD_MAX_CONCURRENT_SCANS", "8")

    config = ScannerConfig.from_env()

    assert config.ocr_provider == OcrProviderName.OCR_SPACE
    assert config.enhanced_prompt
    assert config.provider_config().api_key == "k123"
    assert config.provider_config().timeout_seconds == 12
    assert config.reconciliation.course_confidence_threshold == pytest.approx(0.9)
    assert config.max_concurrent_scans == 8


def test_with_provider_copies_config():
    config = ScannerConfig()
    vision = config.with_provider(OcrProviderName.VISION_CHAT, enhanced=True)
    assert vision.provider_config().model == "gemini-2.5-flash"
    assert vision.enhanced_prompt
    assert config.ocr_provider == OcrProviderName.MOCK

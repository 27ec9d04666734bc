import json

import pytest
from unittest.mock import AsyncMock

from semantic_chunking.models.analysis import TrackingContext
from semantic_chunking.models.usage import FeatureType, TokenUsage
from semantic_chunking.services.usage_tracker import UsageTracker

class TestUsageTracker:
    """토큰 사용량 추적 테스트"""

    @pytest.mark.asyncio
    async def test_track_writes_jsonl(self, tracker, tmp_path, morph_usage):
        """JSON Lines 파일에 기록"""
        context = TrackingContext(tenant_id="tenant_1", document_id="doc_1")
        log_id = await tracker.track_token_usage(morph_usage, context)

        assert log_id
        log_files = list(tmp_path.glob("usage_*.jsonl"))
        assert len(log_files) == 1

        lines = log_files[0].read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1
        record = json.loads(lines[0])
        assert record["log_id"] == log_id
        assert record["feature_type"] == "morphological_analysis"
        assert record["tenant_id"] == "tenant_1"
        assert record["document_id"] == "doc_1"
        assert record["input_tokens"] == 100

    @pytest.mark.asyncio
    async def test_appends_lines(self, tracker, tmp_path, morph_usage):
        """같은 날짜 로그는 한 파일에 추가"""
        await tracker.track_token_usage(morph_usage)
        await tracker.track_token_usage(morph_usage)

        log_file = next(tmp_path.glob("usage_*.jsonl"))
        assert len(log_file.read_text(encoding="utf-8").splitlines()) == 2

    @pytest.mark.asyncio
    async def test_recent_logs(self, tracker, morph_usage):
        """최근 로그 조회"""
        for _ in range(3):
            await tracker.track_token_usage(morph_usage)

        assert len(tracker.get_recent_logs()) == 3
        assert len(tracker.get_recent_logs(limit=2)) == 2

    @pytest.mark.asyncio
    async def test_usage_summary(self, tracker, morph_usage):
        """기능별/테넌트별 집계"""
        chunk_usage = TokenUsage(
            feature_type=FeatureType.SEMANTIC_CHUNKING,
            model_id="claude-3-haiku-20240307",
            input_tokens=300,
            output_tokens=120,
        )
        await tracker.track_token_usage(morph_usage, TrackingContext(tenant_id="a"))
        await tracker.track_token_usage(chunk_usage, TrackingContext(tenant_id="a"))
        await tracker.track_token_usage(chunk_usage, TrackingContext(tenant_id="b"))

        summary = tracker.get_usage_summary()
        assert summary["features"]["semantic_chunking"]["calls"] == 2
        assert summary["total_tokens"] == 150 + 420 * 2

        tenant_summary = tracker.get_usage_summary(tenant_id="a")
        assert tenant_summary["features"]["semantic_chunking"]["calls"] == 1
        assert tenant_summary["total_tokens"] == 150 + 420

    @pytest.mark.asyncio
    async def test_failure_returns_empty_id(self, tracker, morph_usage):
        """기록 실패는 예외 대신 빈 ID"""
        tracker._save_log_to_file = AsyncMock(side_effect=RuntimeError("disk full"))
        assert await tracker.track_token_usage(morph_usage) == ""

    @pytest.mark.asyncio
    async def test_file_error_keeps_memory_log(self, tmp_path, morph_usage):
        """파일 저장에 실패해도 메모리 로그는 유지"""
        blocker = tmp_path / "blocked"
        blocker.write_text("파일", encoding="utf-8")
        tracker = UsageTracker(log_dir=str(blocker / "logs"))

        log_id = await tracker.track_token_usage(morph_usage)

        assert log_id
        assert len(tracker.get_recent_logs()) == 1

@pytest.fixture
def tracker(tmp_path):
    return UsageTracker(log_dir=str(tmp_path))

@pytest.fixture
def morph_usage():
    return TokenUsage(
        feature_type=FeatureType.MORPHOLOGICAL_ANALYSIS,
        model_id="claude-3-5-haiku-20241022",
        input_tokens=100,
        output_tokens=50,
    )

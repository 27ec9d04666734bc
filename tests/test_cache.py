import threading

import pytest

from semantic_chunking.models.analysis import AnalysisMetadata, AnalysisProvider, MorphologicalResult
from semantic_chunking.utils.cache import MorphologyCache

class FakeClock:
    """테스트용 시계 (초 단위)"""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

class TestCacheKey:
    """캐시 키 테스트"""

    def test_key_ignores_surrounding_whitespace(self):
        """앞뒤 공백은 키에 영향 없음"""
        assert MorphologyCache.make_key("  문장입니다.  ", "claude") == MorphologyCache.make_key("문장입니다.", "claude")

    def test_key_includes_provider(self):
        """제공자가 다르면 다른 키"""
        assert MorphologyCache.make_key("문장", "claude") != MorphologyCache.make_key("문장", "rule-based")

    def test_key_uses_full_text(self):
        """앞부분이 같아도 전체 텍스트가 다르면 다른 키"""
        prefix = "가" * 200
        assert MorphologyCache.make_key(prefix + "끝", "claude") != MorphologyCache.make_key(prefix + "다", "claude")

class TestMorphologyCache:
    """형태소 분석 캐시 테스트"""

    def test_get_missing(self, cache):
        """없는 키는 None"""
        assert cache.get("missing") is None

    def test_set_and_get(self, cache, result):
        """저장한 값 조회"""
        cache.set("key", result)
        assert cache.get("key") == result

    def test_last_write_wins(self, cache, result):
        """같은 키에 다시 저장하면 마지막 값"""
        other = result.model_copy(update={"sentences": ["다른 문장."]})
        cache.set("key", result)
        cache.set("key", other)
        assert cache.get("key") == other

    def test_expiry(self, cache, clock, result):
        """TTL이 지나면 조회되지 않음"""
        cache.set("key", result)

        clock.now = 600
        assert cache.get("key") == result

        clock.now = 600.5
        assert cache.get("key") is None
        assert cache.stats().size == 0

    def test_stats(self, cache, clock, result):
        """항목 수와 가장 오래된 항목의 경과 시간 (ms)"""
        stats = cache.stats()
        assert stats.size == 0
        assert stats.oldest_age is None

        cache.set("a", result)
        clock.now = 5
        cache.set("b", result)
        clock.now = 10

        stats = cache.stats()
        assert stats.size == 2
        assert stats.oldest_age == pytest.approx(10000)

    def test_stats_purges_expired(self, cache, clock, result):
        """만료된 항목은 통계에서 제외"""
        cache.set("old", result)
        clock.now = 500
        cache.set("new", result)
        clock.now = 700

        stats = cache.stats()
        assert stats.size == 1
        assert stats.oldest_age == pytest.approx(200000)

    def test_clear(self, cache, result):
        """캐시 초기화"""
        cache.set("a", result)
        cache.set("b", result)
        cache.clear()
        assert cache.stats().size == 0
        assert cache.get("a") is None

    def test_no_ttl(self, clock, result):
        """ttl_seconds=None이면 만료되지 않음"""
        cache = MorphologyCache(ttl_seconds=None, clock=clock)
        cache.set("key", result)
        clock.now = 10 ** 9
        assert cache.get("key") == result

    def test_negative_ttl(self):
        """음수 TTL은 허용하지 않음"""
        with pytest.raises(ValueError):
            MorphologyCache(ttl_seconds=-1)

    def test_independent_instances(self, result):
        """인스턴스끼리 상태를 공유하지 않음"""
        first = MorphologyCache()
        second = MorphologyCache()
        first.set("key", result)
        assert second.get("key") is None

    def test_expired_entries_swept_on_write(self, clock, result):
        """조회되지 않는 만료 항목도 저장 중에 정리됨"""
        cache = MorphologyCache(ttl_seconds=1, clock=clock, max_size=None, sweep_interval=100)

        for i in range(1000):
            cache.set(f"paragraph:{i}", result)
            clock.now += 10

        assert len(cache) <= 100
        assert cache.stats().size == 0

    def test_sweep_keeps_live_entries(self, clock, result):
        """정리할 때 만료되지 않은 항목은 유지"""
        cache = MorphologyCache(ttl_seconds=600, clock=clock, max_size=None, sweep_interval=2)

        cache.set("old", result)
        clock.now = 601
        cache.set("new", result)

        assert len(cache) == 1
        assert cache.get("new") == result

    def test_max_size_evicts_oldest(self, clock, result):
        """max_size를 넘으면 가장 오래된 항목부터 제거"""
        cache = MorphologyCache(ttl_seconds=None, clock=clock, max_size=3)

        for key in ("a", "b", "c"):
            cache.set(key, result)
            clock.now += 1
        # 다시 저장하면 가장 최근 항목이 됨
        cache.set("a", result)
        cache.set("d", result)

        assert len(cache) == 3
        assert cache.get("b") is None
        assert cache.get("a") == result
        assert cache.get("d") == result

    @pytest.mark.parametrize("kwargs", [{"max_size": 0}, {"sweep_interval": 0}])
    def test_invalid_limits(self, kwargs):
        """크기/정리 주기는 양수"""
        with pytest.raises(ValueError):
            MorphologyCache(**kwargs)

    def test_values_are_copied(self, cache, result):
        """저장/조회한 값을 수정해도 캐시 항목은 그대로"""
        cache.set("key", result)
        result.sentences.append("저장 후 수정.")

        fetched = cache.get("key")
        fetched.sentence_boundaries.append(999)

        again = cache.get("key")
        assert again.sentences == ["첫 번째 문장입니다."]
        assert again.sentence_boundaries == [11]

    def test_concurrent_writes(self, result):
        """여러 스레드에서 동시에 써도 항목이 유실되지 않음"""
        cache = MorphologyCache()

        def writer(worker: int):
            for i in range(100):
                cache.set(f"{worker}:{i}", result)

        threads = [threading.Thread(target=writer, args=(worker,)) for worker in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert cache.stats().size == 800

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def cache(clock):
    return MorphologyCache(ttl_seconds=600, clock=clock)

@pytest.fixture
def result():
    """캐시할 분석 결과"""
    return MorphologicalResult(
        sentences=["첫 번째 문장입니다."],
        sentence_boundaries=[11],
        metadata=AnalysisMetadata(method=AnalysisProvider.RULE_BASED, cached=False, processing_time=1.2)
    )

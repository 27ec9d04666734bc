from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional
import hashlib
import logging
import time

from semantic_chunking.models.analysis import CacheStats, MorphologicalResult

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: MorphologicalResult
    inserted_at: float

class MorphologyCache:
    """형태소 분석 결과 메모리 캐시 (TTL)

    프로세스 안에서만 유효하며 재시작하면 사라집니다.
    스레드에서 공유해도 구조가 깨지지 않도록 Lock으로 보호합니다.
    저장/조회 시 값을 복사하므로 호출한 쪽에서 결과를 수정해도 캐시 항목은 바뀌지 않습니다.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = 600,
        clock: Callable[[], float] = time.monotonic,
        max_size: Optional[int] = 1000,
        sweep_interval: int = 100
    ):
        if ttl_seconds is not None and ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be >= 0, got {ttl_seconds}")
        if max_size is not None and max_size <= 0:
            raise ValueError(f"max_size must be > 0, got {max_size}")
        if sweep_interval <= 0:
            raise ValueError(f"sweep_interval must be > 0, got {sweep_interval}")
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self.sweep_interval = sweep_interval
        self._clock = clock
        # 삽입 순서 = 오래된 순서
        self._entries: Dict[str, CacheEntry] = {}
        self._writes = 0
        self._lock = Lock()

    def __len__(self) -> int:
        """만료 여부와 관계없이 보관 중인 항목 수"""
        with self._lock:
            return len(self._entries)

    @staticmethod
    def make_key(text: str, provider: str) -> str:
        """캐시 키 생성 (앞뒤 공백을 제거한 텍스트 + 제공자)"""
        normalized = text.strip()
        hash_key = hashlib.md5(normalized.encode("utf-8")).hexdigest()
        return f"morph:{provider}:{hash_key}"

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        if self.ttl_seconds is None:
            return False
        return now - entry.inserted_at > self.ttl_seconds

    def _purge_expired(self, now: float) -> int:
        """만료된 항목 삭제 (Lock을 잡은 상태에서 호출)"""
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def get(self, key: str) -> Optional[MorphologicalResult]:
        """캐시에서 값 조회. 만료된 항목은 삭제하고 None 반환"""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_expired(entry, self._clock()):
                del self._entries[key]
                return None
            return entry.value.model_copy(deep=True)

    def set(self, key: str, value: MorphologicalResult) -> None:
        """캐시에 값 저장 (같은 키는 마지막 저장이 우선)

        sweep_interval번 저장할 때마다 만료 항목을 정리하고,
        max_size를 넘으면 가장 오래된 항목부터 제거합니다.
        """
        with self._lock:
            now = self._clock()
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(key=key, value=value.model_copy(deep=True), inserted_at=now)

            self._writes += 1
            if self._writes % self.sweep_interval == 0:
                purged = self._purge_expired(now)
                if purged:
                    logger.debug(f"형태소 분석 캐시 만료 항목 정리: {purged}개 삭제")

            if self.max_size is not None:
                while len(self._entries) > self.max_size:
                    del self._entries[next(iter(self._entries))]

    def stats(self) -> CacheStats:
        """캐시 통계 조회 (만료 항목 정리 후)"""
        with self._lock:
            now = self._clock()
            self._purge_expired(now)

            if not self._entries:
                return CacheStats(size=0, oldest_age=None)

            oldest = min(entry.inserted_at for entry in self._entries.values())
            return CacheStats(size=len(self._entries), oldest_age=(now - oldest) * 1000)

    def clear(self) -> None:
        """캐시 초기화"""
        with self._lock:
            size = len(self._entries)
            self._entries.clear()
        if size:
            logger.debug(f"형태소 분석 캐시 초기화: {size}개 항목 삭제")

import json
import uuid
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional
import aiofiles
import logging

from semantic_chunking.models.analysis import TrackingContext
from semantic_chunking.models.usage import TokenUsage, TokenUsageLog
from semantic_chunking.config.settings import settings

logger = logging.getLogger(__name__)

class UsageTracker:
    """LLM 토큰 사용량 추적 서비스

    호출한 쪽의 흐름을 막지 않도록 모든 실패는 로그만 남기고 삼킵니다.
    """

    def __init__(self, log_dir: Optional[str] = None):
        self.log_dir = Path(log_dir or settings.usage_log_dir)

        # 메모리 캐시 (최근 1000개 로그)
        self._cache: List[TokenUsageLog] = []
        self._cache_limit = 1000

    async def track_token_usage(
        self,
        usage: TokenUsage,
        context: Optional[TrackingContext] = None
    ) -> str:
        """토큰 사용량 기록"""
        try:
            log_id = str(uuid.uuid4())
            context = context or TrackingContext()

            log_entry = TokenUsageLog(
                log_id=log_id,
                tenant_id=context.tenant_id,
                document_id=context.document_id,
                **usage.model_dump()
            )

            self._cache.append(log_entry)
            if len(self._cache) > self._cache_limit:
                self._cache.pop(0)

            await self._save_log_to_file(log_entry)

            logger.debug(
                f"토큰 사용량 기록: {usage.feature_type.value} "
                f"in={usage.input_tokens} out={usage.output_tokens} tenant={context.tenant_id}"
            )
            return log_id

        except Exception as e:
            logger.error(f"토큰 사용량 기록 실패: {str(e)}")
            return ""

    async def _save_log_to_file(self, log_entry: TokenUsageLog):
        """JSON Lines 형식으로 날짜별 파일에 저장"""
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            date_str = log_entry.timestamp.strftime("%Y-%m-%d")
            log_file = self.log_dir / f"usage_{date_str}.jsonl"

            log_data = log_entry.model_dump(mode="json")

            async with aiofiles.open(log_file, "a", encoding="utf-8") as f:
                await f.write(json.dumps(log_data, ensure_ascii=False) + "\n")

        except Exception as e:
            logger.error(f"토큰 사용량 파일 저장 실패: {str(e)}")

    def get_recent_logs(self, limit: int = 100) -> List[TokenUsageLog]:
        """최근 로그 조회"""
        return self._cache[-limit:]

    def get_usage_summary(self, tenant_id: Optional[str] = None) -> Dict[str, Any]:
        """기능별 토큰 사용량 집계 (메모리 캐시 기준)"""
        totals: Dict[str, Dict[str, int]] = defaultdict(
            lambda: {"calls": 0, "input_tokens": 0, "output_tokens": 0}
        )

        for log in self._cache:
            if tenant_id and log.tenant_id != tenant_id:
                continue
            bucket = totals[log.feature_type.value]
            bucket["calls"] += 1
            bucket["input_tokens"] += log.input_tokens
            bucket["output_tokens"] += log.output_tokens

        return {
            "tenant_id": tenant_id,
            "features": dict(totals),
            "total_tokens": sum(b["input_tokens"] + b["output_tokens"] for b in totals.values())
        }

# 전역 사용량 추적 인스턴스
usage_tracker = UsageTracker()

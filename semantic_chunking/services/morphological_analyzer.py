"""형태소 분석기

Claude로 한국어 문장 경계를 분석하고, 실패하면 규칙 기반으로 폴백합니다.
같은 텍스트를 다시 분석하지 않도록 결과를 캐시합니다.
"""
from langchain_anthropic import ChatAnthropic
from typing import Any, List, Optional, Union
import json
import logging
import re
import time

from semantic_chunking.chains.prompts import SENTENCE_BOUNDARY_PROMPT
from semantic_chunking.config.settings import settings
from semantic_chunking.models.analysis import (
    AnalysisMetadata,
    AnalysisProvider,
    CacheStats,
    MorphologicalResult,
    TrackingContext,
)
from semantic_chunking.models.usage import FeatureType, TokenUsage
from semantic_chunking.services.usage_tracker import UsageTracker, usage_tracker as default_usage_tracker
from semantic_chunking.utils.cache import MorphologyCache
from semantic_chunking.utils.korean_splitter import KoreanTextSplitter, split_paragraphs
from semantic_chunking.utils.sentence_boundary import (
    calculate_boundaries,
    find_sentence_boundaries as find_rule_based_boundaries,
    split_sentences,
)

logger = logging.getLogger(__name__)

JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")

class SegmentationError(Exception):
    """LLM 문장 분리 응답을 사용할 수 없음"""


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def message_text(message: Any) -> str:
    """LangChain 메시지 content를 문자열로 변환 (텍스트 블록 리스트 포함)"""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content)


def usage_from_message(message: Any, feature_type: FeatureType, model_id: str) -> TokenUsage:
    """응답 메시지의 usage_metadata에서 토큰 사용량 추출"""
    usage_metadata = getattr(message, "usage_metadata", None) or {}
    details = usage_metadata.get("input_token_details") or {}
    return TokenUsage(
        feature_type=feature_type,
        model_provider="anthropic",
        model_id=model_id,
        input_tokens=usage_metadata.get("input_tokens", 0),
        output_tokens=usage_metadata.get("output_tokens", 0),
        metadata={
            "cache_creation_input_tokens": details.get("cache_creation", 0),
            "cache_read_input_tokens": details.get("cache_read", 0),
        },
    )


def should_track_usage(tracking_context: Optional[TrackingContext]) -> bool:
    """테넌트가 지정된 호출만 토큰 사용량 기록"""
    return tracking_context is not None and bool(tracking_context.tenant_id)


def parse_sentence_response(raw: str) -> List[str]:
    """Claude 응답에서 {"sentences": [...]} 추출"""
    json_match = JSON_OBJECT_PATTERN.search(raw)
    if not json_match:
        raise SegmentationError("Invalid JSON response from Claude")

    try:
        parsed = json.loads(json_match.group(0))
    except json.JSONDecodeError as e:
        raise SegmentationError(f"Malformed JSON response from Claude: {e}") from e

    sentences = parsed.get("sentences") if isinstance(parsed, dict) else None
    if not isinstance(sentences, list):
        raise SegmentationError("Response has no sentence list")

    sentences = [str(s).strip() for s in sentences if str(s).strip()]
    if not sentences:
        raise SegmentationError("Response sentence list is empty")
    return sentences


class SentenceSegmenter:
    """문장 분리 기능 인터페이스"""

    method: AnalysisProvider

    async def segment(
        self,
        text: str,
        tracking_context: Optional[TrackingContext] = None
    ) -> MorphologicalResult:
        raise NotImplementedError


class RuleBasedSentenceSegmenter(SentenceSegmenter):
    """규칙 기반 문장 분리 (폴백)"""

    method = AnalysisProvider.RULE_BASED

    def segment_sync(self, text: str) -> MorphologicalResult:
        start = time.perf_counter()
        sentences = split_sentences(text)
        return MorphologicalResult(
            sentences=sentences,
            sentence_boundaries=calculate_boundaries(text, sentences),
            metadata=AnalysisMetadata(
                method=self.method,
                cached=False,
                processing_time=_elapsed_ms(start),
            ),
        )

    async def segment(
        self,
        text: str,
        tracking_context: Optional[TrackingContext] = None
    ) -> MorphologicalResult:
        return self.segment_sync(text)


class ClaudeSentenceSegmenter(SentenceSegmenter):
    """Claude API 기반 문장 분리"""

    method = AnalysisProvider.CLAUDE

    def __init__(
        self,
        llm: Optional[Any] = None,
        model: Optional[str] = None,
        usage_tracker: Optional[UsageTracker] = None
    ):
        self.model = model or settings.morphological_model
        self.usage_tracker = usage_tracker or default_usage_tracker
        self._llm = llm

    def _initialize_llm(self):
        """Claude LLM 초기화"""
        return ChatAnthropic(
            anthropic_api_key=settings.anthropic_api_key,
            model=self.model,
            max_tokens=settings.morphological_max_tokens,
            temperature=settings.temperature,
            timeout=settings.llm_timeout_seconds,
        )

    @property
    def llm(self):
        if self._llm is None:
            self._llm = self._initialize_llm()
        return self._llm

    async def segment(
        self,
        text: str,
        tracking_context: Optional[TrackingContext] = None
    ) -> MorphologicalResult:
        start = time.perf_counter()
        prompt = SENTENCE_BOUNDARY_PROMPT.format(text=text)

        response = await self.llm.ainvoke(prompt)
        await self._track_usage(response, tracking_context)

        sentences = parse_sentence_response(message_text(response))

        return MorphologicalResult(
            sentences=sentences,
            sentence_boundaries=calculate_boundaries(text, sentences),
            metadata=AnalysisMetadata(
                method=self.method,
                cached=False,
                processing_time=_elapsed_ms(start),
            ),
        )

    async def _track_usage(self, response: Any, tracking_context: Optional[TrackingContext]):
        if not should_track_usage(tracking_context):
            return
        try:
            usage = usage_from_message(response, FeatureType.MORPHOLOGICAL_ANALYSIS, self.model)
            await self.usage_tracker.track_token_usage(usage, tracking_context)
        except Exception as e:
            logger.warning(f"Token usage tracking failed: {e}")


class FallbackSentenceSegmenter(SentenceSegmenter):
    """기본 분리기가 실패하면 폴백 분리기 결과를 반환"""

    def __init__(self, primary: SentenceSegmenter, fallback: SentenceSegmenter):
        self.primary = primary
        self.fallback = fallback
        self.method = primary.method

    async def segment(
        self,
        text: str,
        tracking_context: Optional[TrackingContext] = None
    ) -> MorphologicalResult:
        try:
            return await self.primary.segment(text, tracking_context)
        except Exception as e:
            logger.warning(
                f"{self.primary.method.value} sentence segmentation failed, "
                f"falling back to {self.fallback.method.value}: {e}"
            )
            return await self.fallback.segment(text, tracking_context)


def _empty_result() -> MorphologicalResult:
    return MorphologicalResult(
        sentences=[],
        sentence_boundaries=[],
        metadata=AnalysisMetadata(
            method=AnalysisProvider.RULE_BASED,
            cached=False,
            processing_time=0,
        ),
    )


class MorphologicalAnalyzer:
    """형태소 분석 서비스 (캐시 + Claude/규칙 기반 분리기)"""

    def __init__(
        self,
        cache: Optional[MorphologyCache] = None,
        llm: Optional[Any] = None,
        usage_tracker: Optional[UsageTracker] = None
    ):
        if cache is None:
            cache = MorphologyCache(ttl_seconds=settings.cache_ttl, max_size=settings.cache_max_size)
        self.cache = cache
        self.rule_based = RuleBasedSentenceSegmenter()
        self.claude = FallbackSentenceSegmenter(
            ClaudeSentenceSegmenter(llm=llm, usage_tracker=usage_tracker),
            self.rule_based,
        )

    def _segmenter_for(self, provider: AnalysisProvider) -> SentenceSegmenter:
        if provider == AnalysisProvider.RULE_BASED:
            return self.rule_based
        return self.claude

    async def analyze(
        self,
        text: str,
        provider: Optional[Union[str, AnalysisProvider]] = None,
        use_cache: Optional[bool] = None,
        tracking_context: Optional[TrackingContext] = None
    ) -> MorphologicalResult:
        """형태소 분석 수행

        Claude를 우선 사용하고 실패 시 규칙 기반으로 폴백합니다.
        폴백 결과도 같은 키로 캐시되어 반복 실패 시 API를 다시 호출하지 않습니다.
        """
        provider = AnalysisProvider(provider or settings.default_provider)
        if use_cache is None:
            use_cache = settings.use_cache

        if not text or not text.strip():
            return _empty_result()

        cache_key = self.cache.make_key(text, provider.value)

        if use_cache:
            start = time.perf_counter()
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached.model_copy(update={
                    "metadata": cached.metadata.model_copy(update={
                        "cached": True,
                        "processing_time": _elapsed_ms(start),
                    })
                })

        result = await self._segmenter_for(provider).segment(text, tracking_context)

        if use_cache:
            self.cache.set(cache_key, result)

        logger.debug(
            f"[MorphologicalAnalyzer] 분석 완료 method={result.metadata.method.value} "
            f"sentences={len(result.sentences)} time={result.metadata.processing_time:.1f}ms"
        )
        return result

    async def find_sentence_boundaries(
        self,
        text: str,
        provider: Optional[Union[str, AnalysisProvider]] = None,
        use_cache: Optional[bool] = None,
        tracking_context: Optional[TrackingContext] = None
    ) -> List[int]:
        """문장 끝 위치만 반환 (청킹 통합용)"""
        result = await self.analyze(text, provider, use_cache, tracking_context)
        return result.sentence_boundaries

    async def split_by_natural_boundaries(
        self,
        text: str,
        max_size: int,
        provider: Optional[Union[str, AnalysisProvider]] = None,
        use_cache: Optional[bool] = None,
        tracking_context: Optional[TrackingContext] = None
    ) -> List[str]:
        """분석된 문장 경계로 자연 경계 분할

        max_size를 넘는 단락만 분석하고, 나머지 분할 규칙은 규칙 기반 분할기와 같습니다.
        """
        splitter = KoreanTextSplitter(max_size=max_size)

        paragraph_boundaries = {}
        if len(text.strip()) > max_size:
            for paragraph in split_paragraphs(text):
                if len(paragraph) > max_size and paragraph not in paragraph_boundaries:
                    paragraph_boundaries[paragraph] = await self.find_sentence_boundaries(
                        paragraph, provider, use_cache, tracking_context
                    )

        splitter.boundary_finder = lambda p: paragraph_boundaries.get(p) or find_rule_based_boundaries(p)
        return splitter.split_text(text)

    def get_cache_stats(self) -> CacheStats:
        return self.cache.stats()

    def clear_cache(self) -> None:
        self.cache.clear()

# 전역 형태소 분석기 인스턴스
morphological_analyzer = MorphologicalAnalyzer()


async def analyze_morphology(
    text: str,
    provider: Optional[Union[str, AnalysisProvider]] = None,
    use_cache: Optional[bool] = None,
    tracking_context: Optional[TrackingContext] = None
) -> MorphologicalResult:
    return await morphological_analyzer.analyze(text, provider, use_cache, tracking_context)


async def find_sentence_boundaries_with_nlp(
    text: str,
    provider: Optional[Union[str, AnalysisProvider]] = None,
    use_cache: Optional[bool] = None,
    tracking_context: Optional[TrackingContext] = None
) -> List[int]:
    return await morphological_analyzer.find_sentence_boundaries(text, provider, use_cache, tracking_context)


async def split_by_natural_boundaries_with_nlp(
    text: str,
    max_size: int,
    provider: Optional[Union[str, AnalysisProvider]] = None,
    use_cache: Optional[bool] = None,
    tracking_context: Optional[TrackingContext] = None
) -> List[str]:
    return await morphological_analyzer.split_by_natural_boundaries(
        text, max_size, provider, use_cache, tracking_context
    )


def get_cache_stats() -> CacheStats:
    """캐시 통계 조회 (디버깅용)"""
    return morphological_analyzer.get_cache_stats()


def clear_cache() -> None:
    """캐시 초기화"""
    morphological_analyzer.clear_cache()

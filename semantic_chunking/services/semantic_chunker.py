"""AI 기반 시맨틱 청킹

파이프라인:
1. Pre-chunking (규칙 기반, 큰 단위: 2000자)
2. AI Semantic Re-chunking (Claude Haiku, 배치 병렬 처리)
3. Post-processing (짧은 청크 병합, 인덱스 재정렬)

Claude를 쓸 수 없거나 세그먼트 처리에 실패하면 해당 세그먼트만 규칙 기반으로 폴백합니다.
"""
from langchain_anthropic import ChatAnthropic
from langchain_core.messages import HumanMessage, SystemMessage
from typing import Any, Callable, List, NamedTuple, Optional, Tuple
import asyncio
import json
import logging
import re

from semantic_chunking.chains.prompts import (
    SEGMENT_USER_PROMPT,
    SEMANTIC_CHUNK_SYSTEM_PROMPT_EN,
    SEMANTIC_CHUNK_SYSTEM_PROMPT_KO,
)
from semantic_chunking.config.settings import Settings, settings as default_settings
from semantic_chunking.models.analysis import TrackingContext
from semantic_chunking.models.chunk import ChunkMetadata, ChunkType, SemanticChunk, SemanticChunkOptions
from semantic_chunking.models.usage import FeatureType
from semantic_chunking.services.chunk_classifier import infer_chunk_type
from semantic_chunking.services.morphological_analyzer import message_text, should_track_usage, usage_from_message
from semantic_chunking.services.usage_tracker import UsageTracker, usage_tracker as default_usage_tracker
from semantic_chunking.utils.korean_splitter import PARAGRAPH_BREAK, split_by_natural_boundaries, split_paragraphs
from semantic_chunking.utils.sentence_boundary import is_korean_document

logger = logging.getLogger(__name__)

MARKDOWN_HEADER = re.compile(r"^#{1,6}\s", re.MULTILINE)
# 헤더 앞에서 분할 (헤더 자체는 다음 세그먼트에 유지)
MAJOR_HEADER_SPLIT = re.compile(r"(?=^#{1,3}\s)", re.MULTILINE)
JSON_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")

ProgressCallback = Callable[[int, int], None]

class ChunkDraft(NamedTuple):
    """AI/규칙 기반 분할 결과 (위치 정보 부여 전)"""
    content: str
    type: ChunkType
    topic: str


def pre_chunk(content: str, max_size: int) -> List[str]:
    """1차 규칙 기반 분할 (큰 단위)

    - 마크다운 문서: 헤더(#~###) 기준 분할
    - 일반 텍스트/PDF: 빈 줄 기준 분할
    - max_size를 넘는 부분은 문장 경계 기반으로 재분할
    """
    if not content or not content.strip():
        return []

    if MARKDOWN_HEADER.search(content):
        major_splits = MAJOR_HEADER_SPLIT.split(content)
        logger.debug(f"preChunk: markdown document, {len(major_splits)} header sections")
    else:
        major_splits = PARAGRAPH_BREAK.split(content)
        logger.debug(f"preChunk: plain text document, {len(major_splits)} paragraphs")

    segments = []
    for split in major_splits:
        trimmed = split.strip()
        if not trimmed:
            continue
        if len(trimmed) <= max_size:
            segments.append(trimmed)
        else:
            segments.extend(split_by_natural_boundaries(trimmed, max_size))

    return segments


def parse_ai_response(response: str) -> List[ChunkDraft]:
    """AI 응답에서 JSON 배열을 추출하고 유효성 검증. 실패하면 빈 리스트"""
    try:
        json_match = JSON_ARRAY_PATTERN.search(response)
        if not json_match:
            raise ValueError("No JSON array found in response")

        parsed = json.loads(json_match.group(0))
        if not isinstance(parsed, list):
            raise ValueError("Response is not an array")

        drafts = []
        for item in parsed:
            if not isinstance(item, dict):
                continue
            content = str(item.get("content") or "").strip()
            if not content:
                continue
            raw_type = str(item.get("type") or "")
            try:
                chunk_type = ChunkType(raw_type)
            except ValueError:
                chunk_type = infer_chunk_type(content)
            drafts.append(ChunkDraft(content, chunk_type, str(item.get("topic") or "").strip()))
        return drafts

    except ValueError as e:
        # json.JSONDecodeError도 ValueError
        logger.warning(f"Failed to parse AI response for semantic chunking: {e} (preview: {response[:200]!r})")
        return []


def locate_in_source(content: str, text: str, cursor: int) -> Tuple[int, int]:
    """원본에서 청크의 (시작, 끝) 위치 찾기

    분할기가 단락을 "\\n\\n"으로 다시 이어 붙인 청크는 원본 그대로가 아니므로
    첫 단락과 마지막 단락의 위치로 범위를 정합니다.
    AI가 내용을 바꿔 찾을 수 없으면 커서 위치를 사용합니다.
    """
    found = content.find(text, cursor)
    if found != -1:
        return found, found + len(text)

    pieces = split_paragraphs(text)
    if pieces:
        start = content.find(pieces[0], cursor)
        if start != -1:
            last = content.find(pieces[-1], start)
            if last != -1:
                return start, last + len(pieces[-1])
            return start, min(len(content), start + len(text))

    start = min(len(content), cursor)
    return start, min(len(content), start + len(text))


def merge_short_chunks(chunks: List[SemanticChunk], min_size: int) -> List[SemanticChunk]:
    """너무 짧은 청크를 같은 타입의 이전 청크와 병합"""
    if len(chunks) <= 1:
        return list(chunks)

    result: List[SemanticChunk] = []
    for chunk in chunks:
        if not result:
            result.append(chunk)
            continue

        last = result[-1]
        if len(chunk.content) < min_size and chunk.type == last.type:
            topic = last.topic
            if chunk.topic and chunk.topic not in topic:
                topic = f"{topic}, {chunk.topic}" if topic else chunk.topic
            result[-1] = last.model_copy(update={
                "content": f"{last.content}\n\n{chunk.content}",
                "topic": topic,
                "metadata": last.metadata.model_copy(update={"end_offset": chunk.metadata.end_offset}),
            })
        else:
            result.append(chunk)

    return result


class SemanticChunker:
    """시맨틱 청킹 서비스"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        llm: Optional[Any] = None,
        usage_tracker: Optional[UsageTracker] = None
    ):
        self.settings = settings or default_settings
        self.usage_tracker = usage_tracker or default_usage_tracker
        self._llm = llm

    def default_options(self) -> SemanticChunkOptions:
        return SemanticChunkOptions(
            min_chunk_size=self.settings.min_chunk_size,
            max_chunk_size=self.settings.max_chunk_size,
            pre_chunk_size=self.settings.pre_chunk_size,
            model=self.settings.semantic_model,
            batch_size=self.settings.batch_size,
            batch_delay_ms=self.settings.batch_delay_ms,
        )

    def is_enabled(self) -> bool:
        """AI 기반 시맨틱 청킹 활성화 여부 (LLM 주입 시 항상 활성)"""
        if self.settings.disable_semantic_chunking:
            return False
        return self._llm is not None or self.settings.is_semantic_chunking_enabled()

    def _get_llm(self, model: str):
        if self._llm is None:
            self._llm = ChatAnthropic(
                anthropic_api_key=self.settings.anthropic_api_key,
                model=model,
                max_tokens=self.settings.semantic_max_tokens,
                temperature=self.settings.temperature,
                timeout=self.settings.llm_timeout_seconds,
            )
        return self._llm

    def fallback_to_rule_based(self, segment: str, options: SemanticChunkOptions) -> List[ChunkDraft]:
        """규칙 기반 청킹 (AI 실패/비활성 시)"""
        pieces = split_by_natural_boundaries(segment, options.max_chunk_size)
        return [ChunkDraft(piece, infer_chunk_type(piece), "") for piece in pieces]

    async def chunk_segment_with_ai(
        self,
        segment: str,
        options: SemanticChunkOptions,
        tracking_context: Optional[TrackingContext] = None
    ) -> List[ChunkDraft]:
        """단일 세그먼트를 AI로 의미 단위 분할

        시스템 프롬프트(분할 규칙)는 프롬프트 캐싱 대상이고 세그먼트는 사용자 메시지로 전달합니다.
        """
        system_prompt = SEMANTIC_CHUNK_SYSTEM_PROMPT_KO if is_korean_document(segment) else SEMANTIC_CHUNK_SYSTEM_PROMPT_EN
        model = options.model or self.settings.semantic_model

        messages = [
            SystemMessage(content=[{
                "type": "text",
                "text": system_prompt,
                "cache_control": {"type": "ephemeral"},
            }]),
            HumanMessage(content=SEGMENT_USER_PROMPT.format(segment=segment)),
        ]

        try:
            response = await self._get_llm(model).ainvoke(messages)
        except Exception as e:
            logger.error(f"AI semantic chunking failed, falling back to rule-based: {e} (segment length {len(segment)})")
            return self.fallback_to_rule_based(segment, options)

        if should_track_usage(tracking_context):
            try:
                usage = usage_from_message(response, FeatureType.SEMANTIC_CHUNKING, model)
                await self.usage_tracker.track_token_usage(usage, tracking_context)
            except Exception as e:
                logger.warning(f"Token usage tracking failed: {e}")

        drafts = parse_ai_response(message_text(response))
        if not drafts:
            logger.warning(f"AI returned empty chunks, falling back to rule-based (segment length {len(segment)})")
            return self.fallback_to_rule_based(segment, options)

        return drafts

    async def semantic_chunk(
        self,
        content: str,
        options: Optional[SemanticChunkOptions] = None,
        on_progress: Optional[ProgressCallback] = None,
        tracking_context: Optional[TrackingContext] = None
    ) -> List[SemanticChunk]:
        """메인 시맨틱 청킹 함수"""
        opts = options or self.default_options()
        use_ai = self.is_enabled()
        if not use_ai:
            logger.info("Semantic chunking disabled, falling back to rule-based chunking")

        # 1. 규칙 기반 1차 분할
        segments = pre_chunk(content, opts.pre_chunk_size)
        logger.info(f"Pre-chunking completed: {len(segments)} segments")
        if not segments:
            return []

        # 2. 세그먼트별 2차 분할 (배치 병렬 처리)
        segment_drafts: List[List[ChunkDraft]] = []
        for i in range(0, len(segments), opts.batch_size):
            batch = segments[i:i + opts.batch_size]

            if use_ai:
                results = await asyncio.gather(*[
                    self.chunk_segment_with_ai(segment, opts, tracking_context) for segment in batch
                ])
            else:
                results = [self.fallback_to_rule_based(segment, opts) for segment in batch]
            segment_drafts.extend(results)

            done = min(i + opts.batch_size, len(segments))
            if on_progress:
                on_progress(done, len(segments))

            # 배치 간 딜레이 (rate limit 방지)
            if use_ai and done < len(segments) and opts.batch_delay_ms > 0:
                await asyncio.sleep(opts.batch_delay_ms / 1000)

        chunks = self._assemble(content, segment_drafts)

        # 3. 후처리: 짧은 청크 병합 + 인덱스 재정렬
        merged = merge_short_chunks(chunks, opts.min_chunk_size)
        final_chunks = [chunk.model_copy(update={"index": idx}) for idx, chunk in enumerate(merged)]

        logger.info(f"Semantic chunking completed: {len(segments)} segments -> {len(final_chunks)} chunks")
        return final_chunks

    @staticmethod
    def _assemble(content: str, segment_drafts: List[List[ChunkDraft]]) -> List[SemanticChunk]:
        """분할 결과에 인덱스와 원본 기준 위치 부여"""
        chunks: List[SemanticChunk] = []
        cursor = 0

        for segment_index, drafts in enumerate(segment_drafts):
            for draft in drafts:
                start, end = locate_in_source(content, draft.content, cursor)
                chunks.append(SemanticChunk(
                    content=draft.content,
                    type=draft.type,
                    topic=draft.topic,
                    index=len(chunks),
                    metadata=ChunkMetadata(
                        start_offset=start,
                        end_offset=end,
                        original_segment_index=segment_index,
                    ),
                ))
                cursor = end

        return chunks

# 전역 시맨틱 청커 인스턴스
semantic_chunker = SemanticChunker()


async def semantic_chunk(
    content: str,
    options: Optional[SemanticChunkOptions] = None,
    on_progress: Optional[ProgressCallback] = None,
    tracking_context: Optional[TrackingContext] = None
) -> List[SemanticChunk]:
    return await semantic_chunker.semantic_chunk(content, options, on_progress, tracking_context)


def is_semantic_chunking_enabled() -> bool:
    return semantic_chunker.is_enabled()

from typing import List, Optional, Sequence, Tuple
import logging

from semantic_chunking.config.settings import settings
from semantic_chunking.models.chunk import ChunkPreview, ChunkPreviewSummary, ChunkWarning, SemanticChunk
from semantic_chunking.services.quality_scorer import calculate_semantic_quality_score

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 200
SHORT_CHUNK_LENGTH = 100
LONG_CHUNK_LENGTH = 800
LOW_QUALITY_SCORE = 50

QUESTION_MARKERS = ("Q:", "질문:")
ANSWER_MARKERS = ("A:", "답변:")


def _is_incomplete_qa(content: str) -> bool:
    has_question = any(marker in content for marker in QUESTION_MARKERS)
    has_answer = any(marker in content for marker in ANSWER_MARKERS)
    return has_question and not has_answer


def build_chunk_preview(
    chunks: Sequence[SemanticChunk],
    auto_approve_threshold: Optional[int] = None
) -> Tuple[List[ChunkPreview], ChunkPreviewSummary]:
    """청크별 품질 점수/자동 승인 여부와 전체 요약(경고 포함) 생성"""
    threshold = auto_approve_threshold if auto_approve_threshold is not None else settings.auto_approve_threshold

    previews = []
    for chunk in chunks:
        quality_score = calculate_semantic_quality_score(chunk)
        content_preview = chunk.content
        if len(content_preview) > PREVIEW_LENGTH:
            content_preview = content_preview[:PREVIEW_LENGTH] + "..."

        previews.append(ChunkPreview(
            index=chunk.index,
            content=chunk.content,
            content_preview=content_preview,
            type=chunk.type,
            topic=chunk.topic,
            quality_score=quality_score,
            auto_approved=quality_score >= threshold,
        ))

    warnings = []

    short_count = sum(1 for p in previews if len(p.content) < SHORT_CHUNK_LENGTH)
    if short_count:
        warnings.append(ChunkWarning(
            type="too_short",
            count=short_count,
            message=f"{short_count}개 청크가 {SHORT_CHUNK_LENGTH}자 미만으로 짧습니다."
        ))

    long_count = sum(1 for p in previews if len(p.content) > LONG_CHUNK_LENGTH)
    if long_count:
        warnings.append(ChunkWarning(
            type="too_long",
            count=long_count,
            message=f"{long_count}개 청크가 {LONG_CHUNK_LENGTH}자를 초과합니다."
        ))

    incomplete_count = sum(1 for p in previews if _is_incomplete_qa(p.content))
    if incomplete_count:
        warnings.append(ChunkWarning(
            type="incomplete_qa",
            count=incomplete_count,
            message=f"{incomplete_count}개 Q&A 쌍이 불완전합니다."
        ))

    low_quality_count = sum(1 for p in previews if p.quality_score < LOW_QUALITY_SCORE)
    if low_quality_count:
        warnings.append(ChunkWarning(
            type="low_quality",
            count=low_quality_count,
            message=f"{low_quality_count}개 청크의 품질 점수가 {LOW_QUALITY_SCORE}점 미만입니다."
        ))

    total = len(previews)
    auto_approved_count = sum(1 for p in previews if p.auto_approved)
    summary = ChunkPreviewSummary(
        total_chunks=total,
        avg_quality_score=sum(p.quality_score for p in previews) / total if total else 0.0,
        auto_approved_count=auto_approved_count,
        pending_count=total - auto_approved_count,
        warnings=warnings,
    )

    logger.info(
        f"Chunk preview built: {total} chunks, avg quality {summary.avg_quality_score:.2f}, "
        f"{auto_approved_count} auto-approved"
    )
    return previews, summary

"""시맨틱 청크 품질 점수 (0-100)

각 신호는 독립적인 순수 함수로 점수 변화량을 반환하고,
calculate_semantic_quality_score가 합산 후 0-100으로 제한합니다.

원점수 범위는 -5 ~ 100이며 100은 qa 타입만 도달할 수 있습니다.
그래서 제한 후에도 qa > paragraph, 주제 있음 > 주제 없음이 유지됩니다.
"""
from typing import Dict

from semantic_chunking.models.chunk import ChunkType, SemanticChunk
from semantic_chunking.utils.sentence_boundary import ends_with_complete_sentence

BASE_SCORE = 50
MIN_SCORE = 0
MAX_SCORE = 100

# 적정 길이 구간 (문자 수)
IDEAL_MIN_LENGTH = 100
IDEAL_MAX_LENGTH = 800
LONG_PENALTY_STEP = 400

TOPIC_BONUS = 10
NATURAL_ENDING_BONUS = 10
MEANINGLESS_PENALTY = -20
MEANINGFUL_RATIO_THRESHOLD = 0.3

TYPE_BONUS: Dict[ChunkType, int] = {
    ChunkType.QA: 10,
    ChunkType.HEADER: 5,
    ChunkType.TABLE: 3,
    ChunkType.LIST: 3,
    ChunkType.CODE: 0,
    ChunkType.PARAGRAPH: 0,
}


def length_signal(content: str) -> int:
    length = len(content)
    if length < 10:
        return -35
    if length < 20:
        return -20
    if length < 50:
        return 5
    if length < IDEAL_MIN_LENGTH:
        return 10
    if length <= IDEAL_MAX_LENGTH:
        return 20
    # 적정 구간을 넘으면 400자마다 5점씩 감소, -20 하한
    overflow_steps = (length - IDEAL_MAX_LENGTH) // LONG_PENALTY_STEP
    return max(-20, 10 - overflow_steps * 5)


def topic_signal(topic: str) -> int:
    return TOPIC_BONUS if topic and topic.strip() else 0


def type_signal(chunk_type: ChunkType) -> int:
    return TYPE_BONUS.get(ChunkType(chunk_type), 0)


def boundary_signal(content: str) -> int:
    return NATURAL_ENDING_BONUS if ends_with_complete_sentence(content) else 0


def meaningful_content_signal(content: str) -> int:
    """숫자/공백/특수문자만 많은 청크 감점 (문자 비율 30% 미만)"""
    if not content:
        return MEANINGLESS_PENALTY
    letters = sum(1 for char in content if char.isalpha())
    if letters < len(content) * MEANINGFUL_RATIO_THRESHOLD:
        return MEANINGLESS_PENALTY
    return 0


def calculate_semantic_quality_score(chunk: SemanticChunk) -> int:
    """시맨틱 청크 품질 점수 계산"""
    score = (
        BASE_SCORE
        + length_signal(chunk.content)
        + topic_signal(chunk.topic)
        + type_signal(chunk.type)
        + boundary_signal(chunk.content)
        + meaningful_content_signal(chunk.content)
    )
    return max(MIN_SCORE, min(MAX_SCORE, score))

from typing import Callable, List, Tuple
import re

from semantic_chunking.models.chunk import ChunkType

QUESTION_LINE = re.compile(r"^\s*(?:Q|질문|문)\s*[:：]", re.IGNORECASE | re.MULTILINE)
ANSWER_LINE = re.compile(r"^\s*(?:A|답변|답)\s*[:：]", re.IGNORECASE | re.MULTILINE)
ATX_HEADER = re.compile(r"^#{1,6} ")
INDENTED_LINE = re.compile(r"^(?: {4}|\t)")
TABLE_DELIMITER_ROW = re.compile(
    r"^\s*\|?\s*:?-{3,}:?\s*(?:\|\s*:?-{3,}:?\s*)+\|?\s*$", re.MULTILINE
)
LIST_ITEM = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+")


def _non_blank_lines(content: str) -> List[str]:
    return [line for line in content.split("\n") if line.strip()]


def _majority(lines: List[str], pattern: re.Pattern) -> bool:
    if not lines:
        return False
    matched = sum(1 for line in lines if pattern.match(line))
    return matched * 2 > len(lines)


def is_qa(content: str) -> bool:
    """질문 줄 뒤에 답변 줄이 오는 Q&A 쌍"""
    question = QUESTION_LINE.search(content)
    if not question:
        return False
    return ANSWER_LINE.search(content, question.end()) is not None


def is_header(content: str) -> bool:
    """첫 번째 비어 있지 않은 줄이 마크다운 ATX 헤더"""
    lines = _non_blank_lines(content)
    return bool(lines) and ATX_HEADER.match(lines[0]) is not None


def is_code(content: str) -> bool:
    """펜스 코드 블록 또는 들여쓰기 코드"""
    stripped = content.strip()
    if len(stripped) >= 6 and stripped.startswith("```") and stripped.endswith("```"):
        return True
    return _majority(_non_blank_lines(content), INDENTED_LINE)


def is_table(content: str) -> bool:
    """마크다운 테이블 구분선 (| --- | --- |)"""
    return TABLE_DELIMITER_ROW.search(content) is not None


def is_list(content: str) -> bool:
    """대부분의 줄이 목록 기호로 시작"""
    return _majority(_non_blank_lines(content), LIST_ITEM)


# 우선순위 순서. 먼저 일치하는 규칙이 이김 (코드 블록 안의 목록은 code)
CHUNK_TYPE_RULES: List[Tuple[ChunkType, Callable[[str], bool]]] = [
    (ChunkType.QA, is_qa),
    (ChunkType.HEADER, is_header),
    (ChunkType.CODE, is_code),
    (ChunkType.TABLE, is_table),
    (ChunkType.LIST, is_list),
]


def infer_chunk_type(content: str) -> ChunkType:
    """청크 콘텐츠에서 타입 추론"""
    if not content or not content.strip():
        return ChunkType.PARAGRAPH

    for chunk_type, predicate in CHUNK_TYPE_RULES:
        if predicate(content):
            return chunk_type

    return ChunkType.PARAGRAPH

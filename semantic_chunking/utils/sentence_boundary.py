from typing import List
import re

# 한국어 문장 종결어미
# 합쇼체(격식) → 해요체(비격식) → 해라체/반말 순서. 긴 어미를 먼저 둬야 정규식이 짧은 어미로 끊지 않음
KOREAN_SENTENCE_ENDINGS = [
    "습니다", "입니다", "됩니다", "합니다", "습니까", "입니까",
    "거든요", "잖아요", "을까요",
    "네요", "군요", "나요", "가요", "세요", "어요", "아요",
    "죠", "요",
    "다", "냐", "니", "자",
]

SENTENCE_TERMINALS = ".!?。！？"

# 문장 끝 뒤에 올 수 있는 닫는 따옴표/괄호
_CLOSERS = "\"'”’)\\]」』》〉"

KOREAN_SENTENCE_END_PATTERN = re.compile(
    r"(?:" + "|".join(KOREAN_SENTENCE_ENDINGS) + r")"
    r"[" + re.escape(SENTENCE_TERMINALS) + r"]?"
    r"[" + _CLOSERS + r"]*"
    r"(?:\s+|$)"
)

# 영어 및 기타 언어. 뒤에 공백/문서 끝이 와야 하므로 "a.b", "3.14"는 경계가 아님
GENERAL_SENTENCE_END_PATTERN = re.compile(
    r"[" + re.escape(SENTENCE_TERMINALS) + r"]+"
    r"[" + _CLOSERS + r"]*"
    r"(?:\s+|$)"
)

HANGUL_PATTERN = re.compile(r"[가-힣]")


def find_sentence_boundaries(text: str) -> List[int]:
    """텍스트 내 모든 문장 경계(끝 위치) 찾기

    한국어 종결어미를 우선 찾고 일반 구두점으로 보완합니다.
    각 경계는 종결 부호와 뒤따르는 공백을 지난 위치이며, 오름차순으로 중복 없이 반환됩니다.
    경계를 찾지 못하면 빈 리스트를 반환합니다.
    """
    if not text or not text.strip():
        return []

    boundaries = set()

    for match in KOREAN_SENTENCE_END_PATTERN.finditer(text):
        boundaries.add(match.end())

    for match in GENERAL_SENTENCE_END_PATTERN.finditer(text):
        boundaries.add(match.end())

    return sorted(boundaries)


def split_sentences(text: str) -> List[str]:
    """규칙 기반 문장 분리. 경계가 없으면 전체 텍스트를 한 문장으로 취급"""
    if not text or not text.strip():
        return []

    sentences = []
    start = 0
    for boundary in find_sentence_boundaries(text):
        sentence = text[start:boundary].strip()
        if sentence:
            sentences.append(sentence)
        start = boundary

    remaining = text[start:].strip()
    if remaining:
        sentences.append(remaining)

    if not sentences:
        sentences.append(text.strip())

    return sentences


def calculate_boundaries(original_text: str, sentences: List[str]) -> List[int]:
    """문장 목록으로부터 원본 텍스트 기준 문장 끝 위치 계산

    이전 매칭 끝부터 순차적으로 검색하므로 같은 문장이 반복되어도 위치가 겹치지 않습니다.
    원본에서 찾을 수 없는 문장은 문장 길이만큼 커서를 이동합니다 (텍스트 길이로 제한).
    """
    boundaries: List[int] = []
    current_pos = 0
    text_length = len(original_text)

    for sentence in sentences:
        trimmed = sentence.strip()
        if not trimmed:
            continue

        start = original_text.find(trimmed, current_pos)
        if start != -1:
            current_pos = start + len(trimmed)
        else:
            current_pos = min(text_length, current_pos + len(trimmed))

        if not boundaries or boundaries[-1] != current_pos:
            boundaries.append(current_pos)

    return boundaries


def ends_with_complete_sentence(content: str) -> bool:
    """청크가 종결 부호나 한국어 종결어미로 끝나는지 확인 (닫는 따옴표/괄호는 무시)"""
    trimmed = content.strip().rstrip(_CLOSERS.replace("\\", "")).rstrip()
    if not trimmed:
        return False

    if trimmed[-1] in SENTENCE_TERMINALS:
        return True

    return any(trimmed.endswith(ending) for ending in KOREAN_SENTENCE_ENDINGS)


def is_korean_document(text: str) -> bool:
    """한글 비율이 10%를 넘으면 한국어 문서로 판단"""
    if not text:
        return False
    return len(HANGUL_PATTERN.findall(text)) > len(text) * 0.1

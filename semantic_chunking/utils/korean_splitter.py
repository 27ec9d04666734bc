from typing import Callable, List, Optional
import re

from semantic_chunking.utils.sentence_boundary import find_sentence_boundaries

# 두 개 이상의 연속 줄바꿈 (사이에 공백이 있어도 단락 경계로 취급)
PARAGRAPH_BREAK = re.compile(r"\n[^\S\n]*\n\s*")

# 강제 분할 시 공백을 찾는 구간 (예산의 마지막 20%)
HARD_CUT_WINDOW_RATIO = 0.2

BoundaryFinder = Callable[[str], List[int]]


def split_paragraphs(text: str) -> List[str]:
    """빈 줄 기준 단락 분리 (빈 단락 제외)"""
    if not text or not text.strip():
        return []
    return [p.strip() for p in PARAGRAPH_BREAK.split(text.strip()) if p.strip()]


class KoreanTextSplitter:
    """한국어 특화 텍스트 분할기

    단락 → 문장 → 공백 순서로 자연스러운 경계를 우선해 max_size 이내의 세그먼트로 나눕니다.
    문장 경계는 기본적으로 규칙 기반이며, boundary_finder로 다른 분석 결과를 쓸 수 있습니다.
    """

    def __init__(self, max_size: int = 600, boundary_finder: Optional[BoundaryFinder] = None):
        if max_size <= 0:
            raise ValueError(f"max_size must be > 0, got {max_size}")
        self.max_size = max_size
        self.boundary_finder = boundary_finder or find_sentence_boundaries

    def split_text(self, text: str) -> List[str]:
        """텍스트를 자연스러운 경계에서 분할"""
        if not text or not text.strip():
            return []

        stripped = text.strip()
        if len(stripped) <= self.max_size:
            return [stripped]

        segments = []
        current_segment = ""

        for paragraph in split_paragraphs(stripped):
            if len(paragraph) <= self.max_size:
                pieces = [paragraph]
            else:
                pieces = self._split_paragraph(paragraph)

            # 짧은 단락들은 max_size 이내에서 하나로 묶음
            for piece in pieces:
                candidate = f"{current_segment}\n\n{piece}" if current_segment else piece
                if len(candidate) <= self.max_size:
                    current_segment = candidate
                else:
                    if current_segment:
                        segments.append(current_segment)
                    current_segment = piece

        if current_segment:
            segments.append(current_segment)

        return segments

    def _split_paragraph(self, paragraph: str) -> List[str]:
        """max_size를 넘는 단락을 문장 경계 기준으로 분할"""
        boundaries = sorted({b for b in self.boundary_finder(paragraph) if 0 < b <= len(paragraph)})

        # 문장 경계가 없으면 공백 기준 강제 분할 (최후의 수단)
        if not boundaries:
            return self._hard_split(paragraph)

        sentences = []
        start = 0
        for boundary in boundaries:
            sentences.append(paragraph[start:boundary])
            start = boundary
        if paragraph[start:].strip():
            sentences.append(paragraph[start:])

        segments = []
        current_segment = ""

        for sentence in sentences:
            candidate = current_segment + sentence
            if len(candidate.strip()) <= self.max_size:
                current_segment = candidate
            else:
                if current_segment.strip():
                    segments.append(current_segment.strip())
                # max_size보다 긴 문장은 자르지 않고 단독 세그먼트로 유지
                current_segment = sentence

        if current_segment.strip():
            segments.append(current_segment.strip())

        return segments

    def _hard_split(self, paragraph: str) -> List[str]:
        """문장 경계가 없는 긴 단락을 공백 위치에서 강제 분할"""
        segments = []
        remaining = paragraph.strip()
        window = max(1, int(self.max_size * HARD_CUT_WINDOW_RATIO))

        while len(remaining) > self.max_size:
            cut = self.max_size
            window_start = self.max_size - window

            # 예산 끝 바로 다음 글자가 공백이어도 단어 중간이 아님
            for pos in range(self.max_size, window_start - 1, -1):
                if pos > 0 and remaining[pos].isspace():
                    cut = pos
                    break

            piece = remaining[:cut].strip()
            if piece:
                segments.append(piece)
            remaining = remaining[cut:].lstrip()

        if remaining:
            segments.append(remaining)

        return segments


def split_by_natural_boundaries(text: str, max_size: int) -> List[str]:
    """자연스러운 경계(단락, 문장)에서 텍스트를 max_size 이내로 분할"""
    return KoreanTextSplitter(max_size=max_size).split_text(text)

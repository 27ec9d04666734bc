import pytest

from semantic_chunking.utils.sentence_boundary import (
    calculate_boundaries,
    ends_with_complete_sentence,
    find_sentence_boundaries,
    is_korean_document,
    split_sentences,
)

class TestFindSentenceBoundaries:
    """문장 경계 탐지 테스트"""

    def test_empty_text(self):
        """빈 텍스트는 경계 없음"""
        assert find_sentence_boundaries("") == []
        assert find_sentence_boundaries("   \n ") == []

    def test_korean_sentences(self, korean_text):
        """한국어 종결어미 + 마침표 경계"""
        boundaries = find_sentence_boundaries(korean_text)
        assert boundaries == [12, len(korean_text)]

    def test_korean_ending_without_punctuation(self):
        """마침표 없는 종결어미도 공백 앞이면 경계"""
        text = "오늘은 날씨가 좋다 내일은 비가 온대요"
        boundaries = find_sentence_boundaries(text)
        assert text.index("내일은") in boundaries
        assert boundaries[-1] == len(text)

    def test_english_sentences(self):
        """영어 구두점 경계"""
        text = "Hello world. This is a test!"
        assert find_sentence_boundaries(text) == [13, len(text)]

    def test_decimal_is_not_boundary(self):
        """소수점은 경계가 아님"""
        assert find_sentence_boundaries("3.14 is pi") == []

    def test_closing_quote_included(self):
        """닫는 따옴표는 문장에 포함"""
        text = '그가 "좋아요." 라고 말했다.'
        boundaries = find_sentence_boundaries(text)
        assert text.index("라고") in boundaries

    def test_boundaries_sorted_unique_in_range(self, mixed_text):
        """경계는 오름차순, 중복 없음, 텍스트 범위 내"""
        boundaries = find_sentence_boundaries(mixed_text)
        assert boundaries == sorted(set(boundaries))
        assert all(0 < b <= len(mixed_text) for b in boundaries)

    def test_deterministic(self, mixed_text):
        """같은 입력은 같은 결과"""
        assert find_sentence_boundaries(mixed_text) == find_sentence_boundaries(mixed_text)

class TestSplitSentences:
    """규칙 기반 문장 분리 테스트"""

    def test_split_korean(self, korean_text):
        """한국어 문장 분리"""
        assert split_sentences(korean_text) == ["첫 번째 문장입니다.", "두 번째 문장이에요."]

    def test_no_boundary_returns_whole_text(self):
        """경계가 없으면 전체를 한 문장으로"""
        assert split_sentences("  no boundary here  ") == ["no boundary here"]

    def test_empty(self):
        """빈 텍스트는 빈 리스트"""
        assert split_sentences("") == []

    def test_round_trip_non_whitespace(self, mixed_text):
        """공백을 제외한 모든 글자가 순서대로 보존"""
        sentences = split_sentences(mixed_text)
        joined = "".join("".join(s.split()) for s in sentences)
        assert joined == "".join(mixed_text.split())

class TestCalculateBoundaries:
    """문장 목록 → 원본 기준 위치 계산 테스트"""

    def test_sentence_positions(self, korean_text):
        """문장 끝 위치 계산"""
        sentences = ["첫 번째 문장입니다.", "두 번째 문장이에요."]
        assert calculate_boundaries(korean_text, sentences) == [11, len(korean_text)]

    def test_repeated_sentences(self):
        """같은 문장이 반복되어도 순차적으로 위치 계산"""
        assert calculate_boundaries("좋아요. 좋아요.", ["좋아요.", "좋아요."]) == [4, 9]

    def test_missing_sentence_clamped(self):
        """원본에 없는 문장은 텍스트 길이를 넘지 않음"""
        assert calculate_boundaries("abc", ["zzzzzz"]) == [3]

    def test_empty_sentences_skipped(self):
        """빈 문장은 무시"""
        assert calculate_boundaries("하나. 둘.", ["", "하나."]) == [3]

class TestSentenceHelpers:
    """문장 보조 함수 테스트"""

    @pytest.mark.parametrize("content", [
        "끝났습니다.",
        "끝났습니다",
        "정말 그랬어요",
        'He said "yes."',
        "그가 말했다.)",
    ])
    def test_complete_sentence(self, content):
        """종결 부호/종결어미로 끝나는 청크"""
        assert ends_with_complete_sentence(content)

    @pytest.mark.parametrize("content", ["", "   ", "미완성 문장인데 그래서", "cut off mid"])
    def test_incomplete_sentence(self, content):
        """문장 중간에서 끊긴 청크"""
        assert not ends_with_complete_sentence(content)

    def test_is_korean_document(self):
        """한글 비율 판단"""
        assert is_korean_document("안녕하세요 hello")
        assert not is_korean_document("hello world, 한")
        assert not is_korean_document("")

@pytest.fixture
def korean_text():
    """두 문장짜리 한국어 텍스트"""
    return "첫 번째 문장입니다. 두 번째 문장이에요."

@pytest.fixture
def mixed_text():
    """한국어/영어 혼합 텍스트"""
    return (
        "메이플스토리는 2003년에 출시되었습니다. 정말 오래됐죠? "
        "It is still popular! 버전은 3.14가 아니다\n\n"
        "새 단락입니다 그리고 끝"
    )

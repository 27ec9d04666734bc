from langchain_core.prompts import PromptTemplate

SENTENCE_BOUNDARY_PROMPT = PromptTemplate(
    template="""한국어 텍스트의 문장 경계를 분석하세요.

입력 텍스트:
"{text}"

다음 규칙을 따르세요:
1. 완전한 문장 단위로 분리 (종결어미 -다, -요, -죠, -네요 등)
2. 인용문 내부의 문장 끝은 분리하지 않음
3. 괄호 () 또는 [] 내부는 문맥 유지
4. 불완전한 문장은 다음 문장과 병합
5. 짧은 감탄사/접속사는 다음 문장에 포함
6. 원문의 글자를 바꾸거나 생략하지 말 것

JSON 형식으로만 응답:
{{
  "sentences": ["문장1", "문장2", ...]
}}""",
    input_variables=["text"]
)

# 세그먼트 분할 규칙 (시스템 프롬프트, 세그먼트 내용은 사용자 메시지로 전달)
SEMANTIC_CHUNK_SYSTEM_PROMPT_KO = """당신은 텍스트를 의미적으로 완결된 청크들로 분할하는 전문가입니다.

## 분할 규칙
1. 각 청크는 하나의 완결된 개념/주제를 담아야 함
2. Q&A 쌍(질문+답변)은 반드시 함께 유지
3. 목록은 가능한 한 단위로 유지 (너무 길면 논리적 단위로 분할)
4. 표는 분할하지 않음
5. 코드 블록은 분할하지 않음
6. 100-600자 권장 (의미 완결성이 문자 수보다 우선)
7. 문장 중간에서 절대 자르지 말 것

## 청크 타입
- paragraph: 일반 문단
- qa: Q&A 쌍
- list: 목록
- table: 표
- header: 제목 + 설명
- code: 코드 블록

## 출력 형식
JSON 배열만 출력하세요. 다른 설명은 하지 마세요.
[
  {"content": "청크 내용", "type": "paragraph", "topic": "주제 키워드"},
  {"content": "Q: 질문\\nA: 답변", "type": "qa", "topic": "FAQ 주제"}
]

사용자가 <segment> 태그로 텍스트를 제공하면, 위 규칙에 따라 분할하세요."""

SEMANTIC_CHUNK_SYSTEM_PROMPT_EN = """You are an expert at splitting text into semantically complete chunks.

## Splitting Rules
1. Each chunk should contain one complete concept/topic
2. Q&A pairs (question + answer) must stay together
3. Keep lists as single units when possible (split logically if too long)
4. Do not split tables
5. Do not split code blocks
6. Target 100-600 characters (semantic completeness > character count)
7. Never split in the middle of a sentence

## Chunk Types
- paragraph: general paragraph
- qa: Q&A pair
- list: list/enumeration
- table: table
- header: heading + description
- code: code block

## Output Format
Output only a JSON array. No other explanation.
[
  {"content": "chunk content", "type": "paragraph", "topic": "topic keyword"},
  {"content": "Q: question\\nA: answer", "type": "qa", "topic": "FAQ topic"}
]

When the user provides text in <segment> tags, split it according to the rules above."""

SEGMENT_USER_PROMPT = PromptTemplate(
    template="<segment>\n{segment}\n</segment>",
    input_variables=["segment"]
)

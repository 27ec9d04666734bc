from pydantic import BaseModel, Field
from typing import List, Optional
from enum import Enum

class ChunkType(str, Enum):
    """청크 콘텐츠 타입"""
    QA = "qa"
    HEADER = "header"
    CODE = "code"
    TABLE = "table"
    LIST = "list"
    PARAGRAPH = "paragraph"

class ChunkMetadata(BaseModel):
    """청크 위치 메타데이터"""
    start_offset: int = Field(0, description="원본 텍스트 기준 시작 위치", ge=0)
    end_offset: int = Field(0, description="원본 텍스트 기준 끝 위치", ge=0)
    original_segment_index: int = Field(0, description="1차 분할 세그먼트 인덱스", ge=0)

    class Config:
        frozen = True

class SemanticChunk(BaseModel):
    """의미 단위로 분할된 청크"""
    content: str = Field(..., description="청크 내용")
    type: ChunkType = Field(ChunkType.PARAGRAPH, description="청크 타입")
    topic: str = Field("", description="주제 키워드 (없을 수 있음)")
    index: int = Field(0, description="형제 청크 사이에서의 0 기반 순서", ge=0)
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata, description="위치 메타데이터")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "content": "Q: 환불은 언제 되나요?\nA: 결제 후 7일 이내에 환불됩니다.",
                "type": "qa",
                "topic": "환불 정책",
                "index": 0,
                "metadata": {
                    "start_offset": 0,
                    "end_offset": 38,
                    "original_segment_index": 0
                }
            }
        }

class SemanticChunkOptions(BaseModel):
    """시맨틱 청킹 옵션"""
    min_chunk_size: int = Field(100, description="최소 청크 크기 (이보다 짧으면 병합)", gt=0)
    max_chunk_size: int = Field(600, description="최대 청크 크기", gt=0)
    pre_chunk_size: int = Field(2000, description="1차 분할 크기", gt=0)
    model: Optional[str] = Field(None, description="AI 모델 (기본: 설정값)")
    batch_size: int = Field(5, description="동시 처리 세그먼트 수", gt=0)
    batch_delay_ms: int = Field(100, description="배치 간 딜레이 (ms)", ge=0)

class ChunkWarning(BaseModel):
    """청크 프리뷰 경고"""
    type: str = Field(..., description="경고 유형: too_short, too_long, incomplete_qa, low_quality")
    count: int = Field(..., description="해당 청크 수")
    message: str = Field(..., description="경고 메시지")

class ChunkPreview(BaseModel):
    """청크 프리뷰 항목"""
    index: int
    content: str
    content_preview: str = Field(..., description="200자 미리보기")
    type: ChunkType
    topic: str = ""
    quality_score: int = Field(..., description="품질 점수 (0-100)", ge=0, le=100)
    auto_approved: bool = Field(..., description="자동 승인 여부")

class ChunkPreviewSummary(BaseModel):
    """청크 프리뷰 요약"""
    total_chunks: int
    avg_quality_score: float
    auto_approved_count: int
    pending_count: int
    warnings: List[ChunkWarning] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "total_chunks": 12,
                "avg_quality_score": 81.5,
                "auto_approved_count": 7,
                "pending_count": 5,
                "warnings": [
                    {
                        "type": "too_short",
                        "count": 2,
                        "message": "2개 청크가 100자 미만으로 짧습니다."
                    }
                ]
            }
        }

from pydantic import BaseModel, Field
from typing import List, Optional
from enum import Enum

class AnalysisProvider(str, Enum):
    """문장 경계 분석 제공자"""
    CLAUDE = "claude"
    RULE_BASED = "rule-based"

class AnalysisMetadata(BaseModel):
    """분석 메타데이터"""
    method: AnalysisProvider = Field(..., description="실제로 사용된 분석 방법")
    cached: bool = Field(False, description="캐시 적중 여부")
    processing_time: float = Field(0, description="분석 소요 시간 (ms)", ge=0)

    class Config:
        frozen = True

class MorphologicalResult(BaseModel):
    """형태소 분석 결과"""
    sentences: List[str] = Field(default_factory=list, description="분리된 문장들")
    sentence_boundaries: List[int] = Field(default_factory=list, description="각 문장의 끝 위치 (원본 텍스트 기준)")
    metadata: AnalysisMetadata

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "sentences": ["첫 번째 문장입니다.", "두 번째 문장이에요."],
                "sentence_boundaries": [11, 23],
                "metadata": {
                    "method": "claude",
                    "cached": False,
                    "processing_time": 812.4
                }
            }
        }

class CacheStats(BaseModel):
    """캐시 통계"""
    size: int = Field(..., description="유효한 캐시 항목 수")
    oldest_age: Optional[float] = Field(None, description="가장 오래된 항목의 경과 시간 (ms), 비어 있으면 None")

class TrackingContext(BaseModel):
    """토큰 추적 컨텍스트"""
    tenant_id: Optional[str] = Field(None, description="테넌트 ID")
    document_id: Optional[str] = Field(None, description="문서 ID")

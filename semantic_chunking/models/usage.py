from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime
from enum import Enum

class FeatureType(str, Enum):
    """토큰을 소비한 기능"""
    MORPHOLOGICAL_ANALYSIS = "morphological_analysis"
    SEMANTIC_CHUNKING = "semantic_chunking"

class TokenUsage(BaseModel):
    """LLM 호출 1회의 토큰 사용량"""
    feature_type: FeatureType = Field(..., description="기능 유형")
    model_provider: str = Field("anthropic", description="모델 제공자")
    model_id: str = Field(..., description="모델 ID")
    input_tokens: int = Field(0, description="입력 토큰 수", ge=0)
    output_tokens: int = Field(0, description="출력 토큰 수", ge=0)
    metadata: Dict[str, Any] = Field(default_factory=dict, description="추가 정보 (캐시 토큰 등)")

class TokenUsageLog(TokenUsage):
    """저장되는 토큰 사용량 로그"""
    log_id: Optional[str] = Field(None, description="로그 고유 ID")
    timestamp: datetime = Field(default_factory=datetime.now, description="로그 생성 시간")
    tenant_id: Optional[str] = Field(None, description="테넌트 ID")
    document_id: Optional[str] = Field(None, description="문서 ID")

    class Config:
        json_schema_extra = {
            "example": {
                "log_id": "0b5e2c9e-2f0a-4a55-9a57-0c1f3d1f5e21",
                "feature_type": "morphological_analysis",
                "model_provider": "anthropic",
                "model_id": "claude-3-5-haiku-20241022",
                "input_tokens": 320,
                "output_tokens": 140,
                "tenant_id": "tenant_abc123",
                "timestamp": "2026-01-15T10:30:00"
            }
        }

# semantic_chunking/config/settings.py
from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # API Keys
    anthropic_api_key: Optional[str] = None  # 없으면 규칙 기반으로만 동작

    # Claude 설정
    morphological_model: str = "claude-3-5-haiku-20241022"  # 문장 경계 분석용
    semantic_model: str = "claude-3-haiku-20240307"  # 시맨틱 청킹용
    morphological_max_tokens: int = 2048
    semantic_max_tokens: int = 4096
    temperature: float = 0.0
    llm_timeout_seconds: Optional[float] = 60.0

    # 형태소 분석 캐시 설정
    default_provider: str = "claude"  # claude, rule-based
    use_cache: bool = True
    cache_ttl: int = 600  # 10분
    cache_max_size: int = 1000

    # 청킹 설정
    min_chunk_size: int = 100
    max_chunk_size: int = 600
    pre_chunk_size: int = 2000
    batch_size: int = 5
    batch_delay_ms: int = 100
    disable_semantic_chunking: bool = False

    # 품질/승인 설정
    auto_approve_threshold: int = 85

    # 토큰 사용량 로그
    usage_log_dir: str = "logs/token_usage"

    class Config:
        env_file = ".env"
        case_sensitive = False

    def is_semantic_chunking_enabled(self) -> bool:
        """Claude 기반 시맨틱 청킹 사용 가능 여부"""
        if self.disable_semantic_chunking:
            return False
        return bool(self.anthropic_api_key) and self.anthropic_api_key != "your_anthropic_api_key_here"

settings = Settings()

from typing import Dict, Tuple
import logging
import yaml

logger = logging.getLogger(__name__)


def extract_frontmatter(content: str) -> Tuple[Dict, str]:
    """YAML 프론트매터 추출. 프론트매터가 없거나 깨졌으면 빈 dict와 원문 반환"""
    metadata = {}
    body = content

    if content.startswith('---'):
        end_index = content.find('---', 3)
        if end_index != -1:
            try:
                loaded = yaml.safe_load(content[3:end_index].strip()) or {}
            except yaml.YAMLError as e:
                logger.warning(f"Failed to parse YAML frontmatter: {e}")
                return metadata, body

            if isinstance(loaded, dict):
                metadata = loaded
                body = content[end_index + 3:].strip()

    return metadata, body

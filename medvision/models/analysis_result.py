# medvision/models/analysis_result.py
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Union

STRUCTURED_FIELDS = ('description', 'diagnosis', 'extra_comments')


class ResultShape(Enum):
    """클라이언트가 요청하는 분석 결과 형식"""
    STRUCTURED = "structured"
    FREE_TEXT = "free_text"


@dataclass(frozen=True)
class StructuredResult:
    """
    description / diagnosis / extra_comments 세 필드로 구성된 구조화 결과.
    timestamp는 정규화 시점에 서버가 부여합니다.
    """
    description: str
    diagnosis: str
    extra_comments: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FreeTextResult:
    """모델의 서술형 응답을 그대로 담는 자유 텍스트 결과."""
    content: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


AnalysisResult = Union[StructuredResult, FreeTextResult]

# medvision/models/__init__.py
from .analysis_result import (
    ResultShape,
    StructuredResult,
    FreeTextResult,
    AnalysisResult,
    STRUCTURED_FIELDS,
)
from .history_record import HistoryRecord

__all__ = [
    'ResultShape',
    'StructuredResult',
    'FreeTextResult',
    'AnalysisResult',
    'STRUCTURED_FIELDS',
    'HistoryRecord',
]

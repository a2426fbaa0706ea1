# medvision/client/__init__.py
from .analysis_client import AnalysisClient, AnalysisClientError, unwrap_result, unwrap_record

__all__ = ['AnalysisClient', 'AnalysisClientError', 'unwrap_result', 'unwrap_record']

# medvision/core/errors.py
"""
분석 파이프라인의 오류 분류 체계.

모든 오류는 AnalysisError를 상속하며, 전역 에러 핸들러는 error_code와 http_status를 이용해
{"error": ..., "error_code": ...} 형식의 응답을 만듭니다.
"""
from typing import Optional


class AnalysisError(Exception):
    """분석 파이프라인에서 발생하는 모든 오류의 기반 클래스"""
    error_code = "ANALYSIS_FAILED"
    http_status = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "error_code": self.error_code}


class InputValidationError(AnalysisError):
    """이미지 입력이 비어 있거나 형식이 잘못된 경우"""
    error_code = "VALIDATION_ERROR"
    http_status = 400


class ConfigurationError(AnalysisError):
    """OPENAI_API_KEY 등 필수 설정이 누락된 경우. 재시도 대상이 아닙니다."""
    error_code = "CONFIGURATION_ERROR"
    http_status = 500


class UnauthenticatedError(AnalysisError):
    """유효한 세션(JWT)이 없는 경우"""
    error_code = "UNAUTHENTICATED"
    http_status = 401


class ModelInvocationError(AnalysisError):
    """
    OpenAI 호출이 실패한 경우.
    HTTP 오류 응답이면 status_code, status_text, body를 함께 보관합니다.
    """
    error_code = "MODEL_INVOCATION_FAILED"
    http_status = 502

    def __init__(self, message: str, status_code: Optional[int] = None,
                 status_text: Optional[str] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text
        self.body = body

    def to_dict(self) -> dict:
        payload = super().to_dict()
        if self.status_code is not None:
            payload["upstream_status"] = self.status_code
        return payload


class UnparseableResultError(AnalysisError):
    """모델 응답을 어떤 파싱 단계로도 해석하지 못한 경우"""
    error_code = "UNPARSEABLE_RESULT"
    http_status = 502

    def __init__(self, message: str, content: str = ""):
        super().__init__(message)
        self.content = content


class PersistenceError(AnalysisError):
    """분석은 성공했지만 이력 저장에 실패한 경우. 전체 요청을 실패로 처리합니다."""
    error_code = "PERSISTENCE_FAILED"
    http_status = 500

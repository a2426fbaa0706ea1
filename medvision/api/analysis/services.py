# medvision/api/analysis/services.py
import logging
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol, Union

from medvision.core.errors import (
    AnalysisError,
    InputValidationError,
    UnauthenticatedError,
)
from medvision.core.security import AuthProvider
from medvision.models import AnalysisResult, HistoryRecord, ResultShape
from medvision.services.response_normalizer import normalize_response
from medvision.utils.datetime_utils import DateTimeUtils
from medvision.utils.image_encoding import encode_image

from .prompts import instruction_for, output_schema_for


class ModelClient(Protocol):
    def analyze_image(self, image_url: str, instruction: str,
                      output_schema: Optional[Dict[str, Any]] = None) -> str:
        ...


class HistoryStore(Protocol):
    def save_result(self, user_id: str, image_type: str, result: AnalysisResult) -> HistoryRecord:
        ...

    def list_for_user(self, user_id: str, limit: int = 20) -> List[HistoryRecord]:
        ...


class AnalysisState(Enum):
    """분석 요청 한 건의 처리 단계"""
    RECEIVED = "received"
    AUTHENTICATING = "authenticating"
    ENCODING = "encoding"
    INVOKING = "invoking"
    NORMALIZING = "normalizing"
    PERSISTING = "persisting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class AnalysisService:
    """
    이미지 분석 요청의 유일한 진입점.
    입력 검증 -> 인증 -> 이미지 인코딩 -> 모델 호출 -> 응답 정규화 -> 이력 저장 순서로 진행합니다.

    인증/모델/저장소는 모두 생성자로 주입받으며, 요청 간에 공유되는 변경 가능한 상태는 없습니다.
    """

    def __init__(self, auth_provider: AuthProvider, model_client: ModelClient,
                 store: Optional[HistoryStore] = None, persistence_enabled: bool = True,
                 clock: Callable[[], datetime] = DateTimeUtils.now):
        if persistence_enabled and store is None:
            raise ValueError("persistence_enabled=True이면 store가 필요합니다.")
        self.auth_provider = auth_provider
        self.model_client = model_client
        self.store = store
        self.persistence_enabled = persistence_enabled
        self.clock = clock

    def analyze(self, image: Union[str, bytes], image_type: str,
                shape: ResultShape = ResultShape.STRUCTURED) -> Union[HistoryRecord, AnalysisResult]:
        """
        이미지를 분석하고 결과를 저장합니다.

        :param image: base64 문자열, data URL 또는 원본 bytes
        :param image_type: 클라이언트가 선언한 MIME 타입
        :param shape: 요청한 결과 형식
        :return: 저장된 HistoryRecord (저장이 비활성화된 경우 AnalysisResult)
        :raises AnalysisError: 단계별 실패 (InputValidationError, UnauthenticatedError,
            ConfigurationError, ModelInvocationError, UnparseableResultError, PersistenceError)
        """
        request_id = uuid.uuid4().hex[:8]
        state = AnalysisState.RECEIVED

        def advance(next_state: AnalysisState):
            nonlocal state
            logging.debug(f"analysis {request_id}: {state.value} -> {next_state.value}")
            state = next_state

        try:
            # 입력 형식 검사는 로컬 검사이므로 인증보다 먼저 수행합니다.
            if not image:
                raise InputValidationError("imageBase64 is required")

            advance(AnalysisState.AUTHENTICATING)
            user_id = self.auth_provider.resolve_user_id()
            if not user_id:
                raise UnauthenticatedError("Authentication required")

            advance(AnalysisState.ENCODING)
            image_url = encode_image(image, image_type)

            advance(AnalysisState.INVOKING)
            raw_text = self.model_client.analyze_image(
                image_url,
                instruction_for(shape),
                output_schema_for(shape),
            )

            advance(AnalysisState.NORMALIZING)
            result = normalize_response(raw_text, self.clock(), shape)

            if not self.persistence_enabled:
                advance(AnalysisState.SUCCEEDED)
                return result

            advance(AnalysisState.PERSISTING)
            record = self.store.save_result(user_id, image_type, result)

            advance(AnalysisState.SUCCEEDED)
            logging.info(f"이미지 분석 완료 (request: {request_id}, user_id: {user_id}, Doc ID: {record.id})")
            return record

        except AnalysisError as e:
            failed_at = state
            advance(AnalysisState.FAILED)
            logging.warning(f"이미지 분석 실패 (request: {request_id}, 단계: {failed_at.value}): "
                            f"{e.error_code} - {e.message}")
            raise

    def history(self, limit: int = 20) -> List[HistoryRecord]:
        """인증된 사용자의 분석 이력을 최신순으로 반환합니다."""
        user_id = self.auth_provider.resolve_user_id()
        if not user_id:
            raise UnauthenticatedError("Authentication required")
        if self.store is None:
            return []
        return self.store.list_for_user(user_id, limit)

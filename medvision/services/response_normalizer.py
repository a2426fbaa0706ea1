# medvision/services/response_normalizer.py
"""
모델이 반환한 원본 텍스트를 정규화된 분석 결과(AnalysisResult)로 변환합니다.

파싱은 아래 순서의 전략을 차례로 시도하며, 앞 단계가 실패한 경우에만 다음 단계로 넘어갑니다.
1. 전체 텍스트를 JSON으로 파싱
2. 텍스트 안에서 처음으로 해석 가능한 {...} 객체를 찾아 파싱
3. (자유 텍스트 형식을 요청한 경우에만) 원본 텍스트 전체를 content로 감싸기
모든 단계가 실패하면 UnparseableResultError를 발생시킵니다.
"""
import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List

from medvision.core.errors import UnparseableResultError
from medvision.models import (
    AnalysisResult,
    FreeTextResult,
    ResultShape,
    StructuredResult,
    STRUCTURED_FIELDS,
)
from medvision.utils.datetime_utils import DateTimeUtils

# 오류 메시지에 포함할 원본 응답의 최대 길이
PREVIEW_LENGTH = 200

_decoder = json.JSONDecoder()


class ResponseParseError(ValueError):
    """개별 파싱 전략이 실패했음을 나타냅니다."""


ParseStrategy = Callable[[str, ResultShape], Dict[str, Any]]


def _fit_shape(payload: Any, shape: ResultShape) -> Dict[str, Any]:
    """파싱된 객체가 요청한 형식을 만족하는지 확인하고 해당 필드만 추려냅니다."""
    if not isinstance(payload, dict):
        raise ResponseParseError(f"JSON 객체가 아닙니다: {type(payload).__name__}")

    if shape is ResultShape.STRUCTURED:
        missing = [name for name in STRUCTURED_FIELDS if name not in payload]
        if missing:
            raise ResponseParseError(f"필수 필드가 없습니다: {', '.join(missing)}")
        return {name: _as_text(payload[name]) for name in STRUCTURED_FIELDS}

    if 'content' not in payload:
        raise ResponseParseError("content 필드가 없습니다")
    return {'content': _as_text(payload['content'])}


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def parse_whole_text(text: str, shape: ResultShape) -> Dict[str, Any]:
    """1단계: 전체 텍스트를 JSON으로 파싱합니다."""
    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as e:
        raise ResponseParseError(f"전체 텍스트가 JSON이 아닙니다: {e}") from e
    return _fit_shape(payload, shape)


def parse_embedded_object(text: str, shape: ResultShape) -> Dict[str, Any]:
    """2단계: 설명 문장 등에 둘러싸인 첫 번째 {...} 객체를 찾아 파싱합니다."""
    start = text.find('{')
    while start != -1:
        try:
            payload, _ = _decoder.raw_decode(text, start)
        except RecursionError as e:
            # 중첩이 너무 깊은 객체는 해석하지 않습니다.
            raise ResponseParseError(f"JSON 중첩이 너무 깊습니다: {e}") from e
        except json.JSONDecodeError:
            start = text.find('{', start + 1)
            continue
        # 해석 가능한 첫 번째 객체만 사용합니다.
        return _fit_shape(payload, shape)
    raise ResponseParseError("텍스트 안에서 JSON 객체를 찾지 못했습니다")


def wrap_free_text(text: str, shape: ResultShape) -> Dict[str, Any]:
    """3단계: 자유 텍스트 형식이면 원본 텍스트를 그대로 content로 사용합니다."""
    if shape is not ResultShape.FREE_TEXT:
        raise ResponseParseError("구조화 형식은 원본 텍스트로 대체할 수 없습니다")
    return {'content': text}


PARSE_STRATEGIES: List[ParseStrategy] = [
    parse_whole_text,
    parse_embedded_object,
    wrap_free_text,
]


def normalize_response(raw_text: str, now: datetime,
                       shape: ResultShape = ResultShape.STRUCTURED) -> AnalysisResult:
    """
    모델 응답을 요청한 형식의 AnalysisResult로 정규화합니다.

    :param raw_text: 모델이 반환한 원본 텍스트
    :param now: 정규화 시각. 모델이 timestamp를 포함하더라도 항상 이 값으로 덮어씁니다.
    :param shape: 요청한 결과 형식
    :return: StructuredResult 또는 FreeTextResult
    :raises UnparseableResultError: 모든 파싱 전략이 실패한 경우
    """
    text = raw_text or ""
    timestamp = DateTimeUtils.to_iso_string(now)

    for strategy in PARSE_STRATEGIES:
        try:
            fields = strategy(text, shape)
        except ResponseParseError as e:
            logging.debug(f"파싱 전략 실패 ({strategy.__name__}): {e}")
            continue

        if shape is ResultShape.STRUCTURED:
            return StructuredResult(timestamp=timestamp, **fields)
        return FreeTextResult(timestamp=timestamp, **fields)

    preview = text[:PREVIEW_LENGTH]
    raise UnparseableResultError(
        f"분석 결과를 해석할 수 없습니다: {preview!r}",
        content=text,
    )

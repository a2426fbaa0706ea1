# medvision/client/analysis_client.py
"""
분석 API를 호출하는 클라이언트.

서버 응답의 result를 호출자가 바로 사용할 수 있는 형태로 정리합니다.
과거에 저장된 레코드 중에는 result가 JSON 문자열로 한 번 더 감싸진(double-encoded) 경우가 있으며,
이 레코드들은 마이그레이션되지 않으므로 두 형태를 모두 계속 지원해야 합니다.
"""
import json
import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

# 상위 result 없이 결과를 바로 반환하던 예전 응답을 식별하는 필드
_RESULT_MARKERS = ('content', 'description', 'diagnosis')


class AnalysisClientError(Exception):
    """분석 API가 실패 응답을 반환했거나 응답을 해석할 수 없는 경우"""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def _decode_legacy_result(encoded: str) -> Dict[str, Any]:
    """문자열로 저장된 result를 파싱합니다. JSON이 아니면 content로 감쌉니다."""
    try:
        decoded = json.loads(encoded)
    except json.JSONDecodeError:
        return {'content': encoded}
    if not isinstance(decoded, dict):
        return {'content': encoded}
    return decoded


def unwrap_result(body: Dict[str, Any]) -> Dict[str, Any]:
    """
    분석 API 응답 본문에서 호출자에게 전달할 결과 객체를 꺼냅니다.

    - {"result": {"result": "<JSON 문자열>"}} -> 문자열을 파싱한 결과
    - {"result": {...}} -> result 그대로
    - {"content": ..., "timestamp": ...} (result 없이 결과만 반환하던 예전 응답) -> 본문 그대로
    """
    if not isinstance(body, dict):
        raise AnalysisClientError(f"Unexpected response body: {body!r}")

    if 'result' not in body:
        if 'timestamp' in body and any(key in body for key in _RESULT_MARKERS):
            return body
        raise AnalysisClientError(f"Response has no result: {body!r}")

    result = body['result']
    if not isinstance(result, dict):
        raise AnalysisClientError(f"Response result is not an object: {result!r}")
    if isinstance(result.get('result'), str):
        logger.debug("double-encoded result를 해제합니다.")
        return _decode_legacy_result(result['result'])
    return result


def unwrap_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """이력 레코드의 result가 문자열로 저장되어 있으면 객체로 바꾼 사본을 반환합니다."""
    stored = record.get('result')
    if isinstance(stored, str):
        return {**record, 'result': _decode_legacy_result(stored)}
    return record


class AnalysisClient:
    """
    분석 API 클라이언트.

    :param base_url: 서버 주소 (예: "https://api.example.com")
    :param access_token: 외부 인증 서비스가 발급한 Access Token
    :param session: requests.Session (테스트에서 교체 가능)
    :param timeout: 요청 타임아웃(초)
    """

    def __init__(self, base_url: str, access_token: Optional[str] = None,
                 session: Optional[requests.Session] = None, timeout: float = 120.0):
        self.base_url = base_url.rstrip('/')
        self.access_token = access_token
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        if self.access_token:
            headers['Authorization'] = f"Bearer {self.access_token}"
        return headers

    def _read_json(self, response: requests.Response) -> Dict[str, Any]:
        if not response.ok:
            raise AnalysisClientError(
                f"Analysis API error: {response.status_code} {response.reason} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        try:
            return response.json()
        except ValueError as e:
            raise AnalysisClientError(
                f"Analysis API returned invalid JSON: {response.text[:200]!r}",
                status_code=response.status_code,
                body=response.text,
            ) from e

    def analyze_image(self, image_base64: str, image_type: str,
                      result_shape: Optional[str] = None) -> Dict[str, Any]:
        """
        이미지 분석을 요청하고 정리된 결과를 반환합니다.

        :raises AnalysisClientError: 실패 응답 또는 해석할 수 없는 응답
        """
        payload = {
            'imageBase64': image_base64,
            'imageType': image_type,
        }
        if result_shape:
            payload['resultShape'] = result_shape

        response = self.session.post(
            f"{self.base_url}/api/analysis/",
            json=payload,
            headers=self._headers(),
            timeout=self.timeout,
        )
        return unwrap_result(self._read_json(response))

    def list_history(self, limit: int = 20) -> List[Dict[str, Any]]:
        """분석 이력을 조회합니다. 문자열로 저장된 과거 result도 객체로 변환됩니다."""
        response = self.session.get(
            f"{self.base_url}/api/analysis/history",
            params={'limit': limit},
            headers=self._headers(),
            timeout=self.timeout,
        )
        body = self._read_json(response)
        return [unwrap_record(record) for record in body.get('history', [])]

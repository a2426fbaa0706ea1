# medvision/services/openai_service.py
import logging
import os
from typing import Any, Callable, Dict, Optional

import openai
from flask import Flask
from openai import OpenAI

from medvision.core.errors import ConfigurationError, ModelInvocationError

API_KEY_ENV = 'OPENAI_API_KEY'


class OpenAIService:
    """
    OpenAI 비전 모델 호출을 담당하는 서비스 클래스.
    인코딩된 이미지와 지시문을 전달하고, 모델이 생성한 원본 텍스트를 그대로 반환합니다.
    응답 해석은 response_normalizer의 책임입니다.
    """

    def __init__(self, client_factory: Optional[Callable[..., Any]] = None):
        """
        기본 설정값으로 초기화합니다. 실제 설정은 init_app 메서드를 통해 주입됩니다.

        :param client_factory: OpenAI 클라이언트 생성 함수 (테스트에서 교체 가능)
        """
        self.client_factory = client_factory or OpenAI
        self.model = 'gpt-4.1-mini'
        self.max_tokens = 1000
        self.timeout = 60.0
        self.base_url = None

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 모델 호출 설정을 읽어옵니다.
        API 키는 여기서 읽지 않고, 요청마다 환경 변수에서 확인합니다.

        :param app: Flask 애플리케이션 객체
        """
        self.model = app.config.get('OPENAI_VISION_MODEL', self.model)
        self.max_tokens = app.config.get('OPENAI_MAX_TOKENS', self.max_tokens)
        self.timeout = app.config.get('OPENAI_TIMEOUT_SECONDS', self.timeout)
        self.base_url = app.config.get('OPENAI_BASE_URL')
        logging.info(f"OpenAIService: 모델 '{self.model}' 설정으로 초기화되었습니다.")

    def _create_client(self):
        api_key = os.getenv(API_KEY_ENV)
        if not api_key:
            # 네트워크 호출 전에 즉시 실패해야 합니다.
            raise ConfigurationError("OpenAI API key not configured (OPENAI_API_KEY)")

        # 재시도는 호출자의 정책이므로 SDK의 자동 재시도를 끕니다.
        return self.client_factory(
            api_key=api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
        )

    def build_request(self, image_url: str, instruction: str,
                      output_schema: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """chat.completions.create에 전달할 요청 인자를 구성합니다."""
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": instruction},
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": image_url,
                                "detail": "auto"
                            }
                        }
                    ]
                }
            ],
            "max_tokens": self.max_tokens,
        }
        if output_schema is not None:
            request["response_format"] = {
                "type": "json_schema",
                "json_schema": output_schema,
            }
        return request

    def analyze_image(self, image_url: str, instruction: str,
                      output_schema: Optional[Dict[str, Any]] = None) -> str:
        """
        이미지와 지시문을 모델에 전달하고 첫 번째 응답 메시지의 텍스트를 반환합니다.

        :param image_url: data URL 형식의 이미지 참조
        :param instruction: 모델에게 전달할 지시문
        :param output_schema: 구조화 출력을 요청할 때 사용할 JSON schema 정의 (선택)
        :return: 모델이 생성한 원본 텍스트
        :raises ConfigurationError: OPENAI_API_KEY가 설정되지 않은 경우
        :raises ModelInvocationError: HTTP 오류 응답 또는 네트워크 오류
        """
        client = self._create_client()
        request = self.build_request(image_url, instruction, output_schema)

        try:
            response = client.chat.completions.create(**request)
        except openai.APIStatusError as e:
            status_text = e.response.reason_phrase
            body = e.response.text
            logging.error(f"OpenAI API 오류 응답: {e.status_code} {status_text} - {body}")
            raise ModelInvocationError(
                f"OpenAI API error: {e.status_code} {status_text} - {body}",
                status_code=e.status_code,
                status_text=status_text,
                body=body,
            ) from e
        except openai.APIConnectionError as e:
            logging.error(f"OpenAI API 연결 실패: {e}", exc_info=True)
            raise ModelInvocationError(f"OpenAI API connection error: {e}") from e
        except openai.OpenAIError as e:
            # 200 응답이지만 본문을 해석할 수 없는 경우(APIResponseValidationError) 등
            logging.error(f"OpenAI API 호출 실패: {e}", exc_info=True)
            raise ModelInvocationError(f"OpenAI API error: {e}") from e

        if not response.choices:
            raise ModelInvocationError("OpenAI API returned no completion choices")
        message = response.choices[0].message
        content = message.content
        if not content:
            refusal = getattr(message, 'refusal', None)
            detail = f": {refusal}" if refusal else ""
            raise ModelInvocationError(f"OpenAI API returned an empty completion{detail}")
        return content

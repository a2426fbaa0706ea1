# medvision/utils/image_encoding.py
import base64
from typing import Union

# 모델이 직접 읽을 수 있는 이미지 참조의 접두사
_EMBEDDABLE_PREFIXES = ('data:', 'http://', 'https://')


def is_embeddable_reference(image: Union[str, bytes]) -> bool:
    """data URL 또는 모델이 직접 가져올 수 있는 URL인지 확인합니다."""
    return isinstance(image, str) and image.startswith(_EMBEDDABLE_PREFIXES)


def encode_image(image: Union[str, bytes], mime_type: str) -> str:
    """
    이미지 페이로드를 모델 요청에 넣을 수 있는 data URL로 변환합니다.

    - 이미 data URL(또는 http(s) URL)이면 그대로 반환합니다.
    - bytes는 base64로 인코딩하고, 그 외 문자열은 base64 텍스트로 간주합니다.
    MIME 타입은 검증하지 않고 그대로 사용합니다. 잘못된 타입은 모델 호출 단계에서 실패합니다.

    :param image: 원본 이미지 bytes 또는 base64 문자열/data URL
    :param mime_type: 클라이언트가 선언한 MIME 타입 (예: "image/png")
    :return: "data:{mime_type};base64,{payload}" 형식의 문자열
    """
    if is_embeddable_reference(image):
        return image

    if isinstance(image, (bytes, bytearray)):
        payload = base64.b64encode(bytes(image)).decode('ascii')
    else:
        payload = image

    return f"data:{mime_type};base64,{payload}"

# medvision/utils/__init__.py
"""
유틸리티 모듈 패키지

시간 처리와 이미지 인코딩처럼 파이프라인 전반에서 공통으로 사용하는 함수들을 포함합니다.
"""

from .datetime_utils import DateTimeUtils
from .image_encoding import encode_image, is_embeddable_reference

__all__ = [
    'DateTimeUtils',
    'encode_image', 'is_embeddable_reference',
]

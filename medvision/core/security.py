# medvision/core/security.py
import logging
from typing import Optional, Protocol

from jwt import PyJWTError
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity
from flask_jwt_extended.exceptions import JWTExtendedException


class AuthProvider(Protocol):
    """요청 세션에서 사용자 식별자를 꺼내는 인증 협력자 인터페이스."""

    def resolve_user_id(self) -> Optional[str]:
        ...


class JWTAuthProvider:
    """
    Authorization: Bearer <token> 헤더의 Access Token을 검증하고 identity(sub)를 반환합니다.
    토큰 발급/재발급은 외부 인증 서비스의 책임이며, 여기서는 검증만 수행합니다.
    """

    def resolve_user_id(self) -> Optional[str]:
        try:
            # optional=True: 헤더가 없으면 예외 대신 None이 반환됩니다.
            verify_jwt_in_request(optional=True)
        except (JWTExtendedException, PyJWTError) as e:
            logging.warning(f"JWT 검증 실패: {e}")
            return None

        identity = get_jwt_identity()
        if not identity:
            return None
        return str(identity)

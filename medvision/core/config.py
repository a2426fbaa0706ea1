# medvision/core/config.py

import os


def _env_flag(name: str, default: str = 'true') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # 외부 인증 서비스가 발급한 JWT 토큰의 서명을 검증하는 데 사용됩니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')

    # OpenAI 비전 모델 호출 설정
    # OPENAI_API_KEY는 여기서 읽지 않습니다. 요청 시점마다 환경 변수에서 직접 확인합니다.
    OPENAI_VISION_MODEL = os.getenv('OPENAI_VISION_MODEL', 'gpt-4.1-mini')
    OPENAI_MAX_TOKENS = int(os.getenv('OPENAI_MAX_TOKENS', 1000))
    OPENAI_TIMEOUT_SECONDS = float(os.getenv('OPENAI_TIMEOUT_SECONDS', 60))
    OPENAI_BASE_URL = os.getenv('OPENAI_BASE_URL')

    # 분석 이력이 저장될 Firestore 컬렉션
    HISTORY_COLLECTION = os.getenv('HISTORY_COLLECTION', 'users_history')
    # False이면 분석 결과를 저장하지 않고 그대로 반환합니다 (데모 모드).
    ANALYSIS_PERSISTENCE_ENABLED = _env_flag('ANALYSIS_PERSISTENCE_ENABLED')


class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH')


class ProductionConfig(Config):
    """운영 환경을 위한 설정 클래스입니다."""
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')


class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다. Firebase 초기화를 건너뜁니다."""
    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = 'medvision-testing-secret-key-0123456789'
    FIREBASE_CREDENTIALS_PATH = None
    ANALYSIS_PERSISTENCE_ENABLED = True


# FLASK_ENV 값에 따라 create_app에서 적절한 설정 클래스를 선택합니다.
config_by_name = dict(
    development=DevelopmentConfig,
    production=ProductionConfig,
    testing=TestingConfig
)

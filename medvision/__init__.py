# medvision/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from flask import Flask, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials

# - 설정 및 오류
from medvision.core.config import config_by_name
from medvision.core.errors import AnalysisError
from medvision.core.security import JWTAuthProvider

# - API 블루프린트
from medvision.api.analysis.routes import analysis_bp

# - 서비스 모듈
from medvision.api.analysis.services import AnalysisService
from medvision.services.openai_service import OpenAIService
from medvision.services.history_store import HistoryStoreService


def create_app(config_name=None):
    """
    Flask 애플리케이션 팩토리 함수.

    :param config_name: 'development', 'production', 'testing' 중 하나. 없으면 FLASK_ENV를 사용합니다.
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    JWTManager(app)

    if not app.testing and not firebase_admin._apps:
        cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
        if not cred_path or not os.path.exists(cred_path):
            raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
        cred = credentials.Certificate(cred_path)
        firebase_admin.initialize_app(cred)

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    openai_instance = OpenAIService()
    openai_instance.init_app(app)
    app.services['openai'] = openai_instance

    history_instance = HistoryStoreService()
    history_instance.init_app(app)
    app.services['history'] = history_instance

    persistence_enabled = app.config['ANALYSIS_PERSISTENCE_ENABLED']
    app.services['analysis'] = AnalysisService(
        auth_provider=JWTAuthProvider(),
        model_client=app.services['openai'],
        store=app.services['history'] if persistence_enabled else None,
        persistence_enabled=persistence_enabled
    )
    if not persistence_enabled:
        logging.warning("ANALYSIS_PERSISTENCE_ENABLED=false: 분석 결과가 저장되지 않습니다 (데모 모드).")

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(analysis_bp, url_prefix='/api/analysis')

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(AnalysisError)
    def handle_analysis_error(err):
        return jsonify(err.to_dict()), err.http_status

    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error": "Invalid request", "error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(err):
        # 405 등 라우팅 단계의 오류도 JSON으로 응답합니다.
        message = "Method not allowed" if err.code == 405 else err.description
        return jsonify({"error": message, "error_code": err.name.upper().replace(' ', '_')}), err.code

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error": "서버 내부에서 예상치 못한 오류가 발생했습니다.", "error_code": "INTERNAL_SERVER_ERROR"}
        return jsonify(response), 500

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app

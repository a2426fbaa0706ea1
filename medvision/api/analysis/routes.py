# medvision/api/analysis/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from marshmallow import ValidationError

from medvision.core.errors import AnalysisError
from medvision.models import HistoryRecord, ResultShape
from .schemas import AnalysisRequestSchema, HistoryQuerySchema, HistoryRecordSchema

analysis_bp = Blueprint('analysis_bp', __name__)


def _serialize(outcome) -> dict:
    if isinstance(outcome, HistoryRecord):
        return HistoryRecordSchema().dump(outcome)
    return outcome.to_dict()


@analysis_bp.route('/', methods=['POST'])
def analyze_image():
    """
    이미지를 분석하고 결과를 사용자 이력에 저장합니다.
    인증은 AnalysisService 내부에서 입력 검사 직후에 확인합니다.
    """
    analysis_service = current_app.services['analysis']
    try:
        data = AnalysisRequestSchema().load(request.get_json(silent=True) or {})
        outcome = analysis_service.analyze(
            data['image_base64'],
            data['image_type'],
            ResultShape(data['result_shape'])
        )
        return jsonify({"result": _serialize(outcome)}), 200
    except ValidationError as err:
        return jsonify({"error": "Invalid request body", "error_code": "VALIDATION_ERROR",
                        "details": err.messages}), 400
    except AnalysisError as e:
        return jsonify(e.to_dict()), e.http_status


@analysis_bp.route('/history', methods=['GET'])
def list_history():
    """로그인한 사용자의 분석 이력을 최신순으로 조회합니다."""
    analysis_service = current_app.services['analysis']
    try:
        query = HistoryQuerySchema().load(request.args)
        records = analysis_service.history(query['limit'])
        return jsonify({"history": HistoryRecordSchema(many=True).dump(records)}), 200
    except ValidationError as err:
        return jsonify({"error": "Invalid query parameters", "error_code": "VALIDATION_ERROR",
                        "details": err.messages}), 400
    except AnalysisError as e:
        logging.warning(f"분석 이력 조회 실패: {e.error_code} - {e.message}")
        return jsonify(e.to_dict()), e.http_status

# medvision/api/analysis/schemas.py
from marshmallow import Schema, fields, validate, EXCLUDE

from medvision.models import ResultShape


class AnalysisRequestSchema(Schema):
    """
    POST /api/analysis/
    필드 타입만 검사합니다. 이미지가 비어 있는지는 AnalysisService에서 검증합니다.
    """
    class Meta:
        unknown = EXCLUDE

    image_base64 = fields.Str(data_key='imageBase64', load_default="")
    image_type = fields.Str(data_key='imageType', load_default="")
    result_shape = fields.Str(
        data_key='resultShape',
        load_default=ResultShape.STRUCTURED.value,
        validate=validate.OneOf(
            [e.value for e in ResultShape],
            error="resultShape는 structured 또는 free_text만 가능합니다."
        )
    )


class HistoryQuerySchema(Schema):
    """GET /api/analysis/history 조회 파라미터 스키마."""
    class Meta:
        unknown = EXCLUDE

    limit = fields.Int(load_default=20, validate=validate.Range(min=1, max=100))


class HistoryRecordSchema(Schema):
    """이력 레코드 응답 스키마. 과거 레코드의 문자열 result도 그대로 내보냅니다."""
    id = fields.Str(required=True)
    user_id = fields.Str(data_key='userId', required=True)
    image_type = fields.Str(data_key='imageType')
    result = fields.Raw(required=True)
    created_at = fields.DateTime(data_key='createdAt', allow_none=True)

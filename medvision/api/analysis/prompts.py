# medvision/api/analysis/prompts.py
from medvision.models import ResultShape, STRUCTURED_FIELDS

STRUCTURED_INSTRUCTION = """
Analyze this medical image and provide detailed information in the following JSON structure:
{
  "description": "Detailed description of what you see in the image",
  "diagnosis": "Potential diagnosis or normal findings",
  "extra_comments": "Additional insights, recommendations, or observations"
}

Ensure your response is ONLY valid JSON with these three fields.
Be professional, thorough, and medically accurate.
""".strip()

FREE_TEXT_INSTRUCTION = (
    "Provide factual observations of this image, providing *hypothetical* medical diagnoses. "
    "This is for testing purposes only."
)

# 구조화 결과를 요청할 때 response_format으로 전달되는 JSON schema
STRUCTURED_OUTPUT_SCHEMA = {
    "name": "medical_image_analysis",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {name: {"type": "string"} for name in STRUCTURED_FIELDS},
        "required": list(STRUCTURED_FIELDS),
        "additionalProperties": False,
    },
}


def instruction_for(shape: ResultShape) -> str:
    if shape is ResultShape.FREE_TEXT:
        return FREE_TEXT_INSTRUCTION
    return STRUCTURED_INSTRUCTION


def output_schema_for(shape: ResultShape):
    """자유 텍스트 형식에는 출력 제약을 붙이지 않습니다."""
    if shape is ResultShape.STRUCTURED:
        return STRUCTURED_OUTPUT_SCHEMA
    return None

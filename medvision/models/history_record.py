# medvision/models/history_record.py
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Union


@dataclass(frozen=True)
class HistoryRecord:
    """
    Firestore 'users_history' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    저장 이후에는 변경되지 않습니다.
    """
    id: str
    user_id: str
    image_type: str
    # 신규 레코드는 dict, 과거 레코드는 JSON 문자열로 저장된 경우가 있습니다.
    result: Union[Dict[str, Any], str]
    created_at: datetime

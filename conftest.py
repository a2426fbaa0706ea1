# conftest.py
"""공용 테스트 fixture와 가짜(fake) 객체 모음"""

import itertools
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from flask_jwt_extended import create_access_token

from medvision import create_app
from medvision.api.analysis.services import AnalysisService
from medvision.models import HistoryRecord

# =============================================================================
# Firestore 가짜 객체
# =============================================================================

class FakeSnapshot:
    def __init__(self, doc_id: str, data: Optional[Dict[str, Any]]):
        self.id = doc_id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict[str, Any]]:
        return dict(self._data) if self._data is not None else None

class FakeDocument:
    def __init__(self, collection: "FakeCollection", doc_id: str):
        self._collection = collection
        self.id = doc_id

    def set(self, data: Dict[str, Any]) -> None:
        self._collection.docs[self.id] = dict(data)

    def get(self) -> FakeSnapshot:
        return FakeSnapshot(self.id, self._collection.docs.get(self.id))

class FakeQuery:
    def __init__(self, collection: "FakeCollection"):
        self._collection = collection
        self._filters: List[tuple] = []
        self._order: Optional[tuple] = None
        self._limit: Optional[int] = None

    def where(self, field: str, op: str, value: Any) -> "FakeQuery":
        assert op == '=='
        self._filters.append((field, value))
        return self

    def order_by(self, field: str, direction: str = 'ASCENDING') -> "FakeQuery":
        self._order = (field, direction)
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def stream(self):
        items = [
            (doc_id, data) for doc_id, data in self._collection.docs.items()
            if all(data.get(field) == value for field, value in self._filters)
        ]
        if self._order:
            field, direction = self._order
            items.sort(key=lambda item: item[1].get(field), reverse=direction == 'DESCENDING')
        if self._limit is not None:
            items = items[:self._limit]
        for doc_id, data in items:
            yield FakeSnapshot(doc_id, data)

class FakeCollection(FakeQuery):
    def __init__(self, name: str):
        self.name = name
        self.docs: Dict[str, Dict[str, Any]] = {}
        self._ids = itertools.count(1)
        super().__init__(self)

    def document(self, doc_id: Optional[str] = None) -> FakeDocument:
        return FakeDocument(self, doc_id or f"doc-{next(self._ids)}")

    def where(self, field: str, op: str, value: Any) -> FakeQuery:
        return FakeQuery(self).where(field, op, value)

class FakeFirestore:
    def __init__(self):
        self.collections: Dict[str, FakeCollection] = {}

    def collection(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection(name))

class FailingFirestore:
    """모든 쓰기가 실패하는 Firestore (저장이 거부되는 상황 재현)"""

    def collection(self, name: str):
        raise RuntimeError("permission denied on users_history")

@pytest.fixture
def fake_db() -> FakeFirestore:
    return FakeFirestore()

# =============================================================================
# OpenAI 가짜 객체
# =============================================================================

def completion(content: Optional[str], refusal: Optional[str] = None) -> SimpleNamespace:
    message = SimpleNamespace(content=content, refusal=refusal)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])

class FakeOpenAIClient:
    """chat.completions.create 호출을 기록하고, 준비된 응답을 돌려주거나 오류를 발생시킵니다."""

    def __init__(self, response: Any = None, error: Optional[Exception] = None):
        self.calls: List[Dict[str, Any]] = []
        self._response = response
        self._error = error
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self._error is not None:
            raise self._error
        return self._response

class FakeClientFactory:
    def __init__(self, client: FakeOpenAIClient):
        self.client = client
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, **kwargs) -> FakeOpenAIClient:
        self.calls.append(kwargs)
        return self.client

# =============================================================================
# 오케스트레이터 협력 객체
# =============================================================================

class StubAuth:
    def __init__(self, user_id: Optional[str] = "user-1"):
        self.user_id = user_id
        self.calls = 0

    def resolve_user_id(self) -> Optional[str]:
        self.calls += 1
        return self.user_id

class StubModel:
    def __init__(self, text: str = '{"description": "a", "diagnosis": "b", "extra_comments": "c"}',
                 error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: List[tuple] = []

    def analyze_image(self, image_url, instruction, output_schema=None) -> str:
        self.calls.append((image_url, instruction, output_schema))
        if self.error is not None:
            raise self.error
        return self.text

class StubStore:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.saved: List[tuple] = []

    def save_result(self, user_id, image_type, result) -> HistoryRecord:
        self.saved.append((user_id, image_type, result))
        if self.error is not None:
            raise self.error
        return HistoryRecord(
            id=f"rec-{len(self.saved)}",
            user_id=user_id,
            image_type=image_type,
            result=result.to_dict(),
            created_at=datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
        )

    def list_for_user(self, user_id, limit=20):
        return []

# =============================================================================
# Flask fixture
# =============================================================================

@pytest.fixture
def app():
    app = create_app('testing')
    return app

@pytest.fixture
def client(app):
    return app.test_client()

@pytest.fixture
def auth_headers(app) -> Dict[str, str]:
    with app.app_context():
        token = create_access_token(identity="user-1")
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def install_service(app):
    """앱의 AnalysisService를 주어진 협력 객체로 구성한 인스턴스로 교체합니다."""

    def _install(**kwargs) -> AnalysisService:
        service = AnalysisService(**kwargs)
        app.services['analysis'] = service
        return service

    return _install

# medvision/services/history_store.py
import logging
from typing import Any, Dict, List, Optional

from flask import Flask
from firebase_admin import firestore

from medvision.core.errors import PersistenceError
from medvision.models import AnalysisResult, HistoryRecord
from medvision.utils.datetime_utils import DateTimeUtils


class HistoryStoreService:
    """
    분석 결과를 Firestore 'users_history' 컬렉션에 저장하고 조회하는 서비스 클래스.
    저장은 멱등하지 않습니다. 호출할 때마다 새 문서가 만들어집니다.
    """

    def __init__(self, db=None, collection_name: str = 'users_history'):
        """
        :param db: Firestore 클라이언트. None이면 첫 사용 시 firestore.client()를 사용합니다.
        :param collection_name: 이력 문서를 저장할 컬렉션 이름
        """
        self.db = db
        self.collection_name = collection_name

    def init_app(self, app: Flask):
        """Flask 앱 초기화 과정에서 호출되어 컬렉션 이름을 설정합니다."""
        self.collection_name = app.config.get('HISTORY_COLLECTION', self.collection_name)
        logging.info(f"HistoryStoreService: '{self.collection_name}' 컬렉션을 사용합니다.")

    @property
    def collection(self):
        if self.db is None:
            self.db = firestore.client()
        return self.db.collection(self.collection_name)

    def save_result(self, user_id: str, image_type: str, result: AnalysisResult) -> HistoryRecord:
        """
        분석 결과를 새 이력 문서로 저장하고, 저장된 문서를 다시 읽어 반환합니다.

        :param user_id: 분석을 요청한 사용자 ID
        :param image_type: 클라이언트가 선언한 이미지 MIME 타입
        :param result: 정규화된 분석 결과
        :return: 문서 ID가 포함된 HistoryRecord
        :raises PersistenceError: Firestore 저장 또는 조회 실패
        """
        data = {
            'user_id': user_id,
            'image_type': image_type,
            # 문자열이 아닌 Firestore map으로 저장합니다.
            'result': result.to_dict(),
            'created_at': DateTimeUtils.now(),
        }

        try:
            doc_ref = self.collection.document()
            doc_ref.set(DateTimeUtils.for_firestore(data))
            snapshot = doc_ref.get()
        except Exception as e:
            logging.error(f"Firestore 저장 실패 (Collection: {self.collection_name}): {e}", exc_info=True)
            raise PersistenceError(f"Failed to store analysis history: {e}") from e

        if not snapshot.exists:
            raise PersistenceError(f"Stored analysis history not found (Doc ID: {doc_ref.id})")

        logging.info(f"Firestore 저장 성공 (Collection: {self.collection_name}, Doc ID: {doc_ref.id})")
        return self._to_record(doc_ref.id, snapshot.to_dict())

    def list_for_user(self, user_id: str, limit: int = 20) -> List[HistoryRecord]:
        """사용자의 분석 이력을 최신순으로 조회합니다."""
        try:
            query = (
                self.collection
                .where('user_id', '==', user_id)
                .order_by('created_at', direction=firestore.Query.DESCENDING)
                .limit(limit)
            )
            return [self._to_record(doc.id, doc.to_dict()) for doc in query.stream()]
        except Exception as e:
            logging.error(f"Firestore 이력 조회 실패 (user_id: {user_id}): {e}", exc_info=True)
            raise PersistenceError(f"Failed to load analysis history: {e}") from e

    @staticmethod
    def _to_record(doc_id: str, data: Optional[Dict[str, Any]]) -> HistoryRecord:
        data = DateTimeUtils.from_firestore(data or {})
        return HistoryRecord(
            id=doc_id,
            user_id=data.get('user_id', ''),
            image_type=data.get('image_type', ''),
            result=data.get('result'),
            created_at=data.get('created_at'),
        )

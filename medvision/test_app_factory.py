# medvision/test_app_factory.py
from medvision.api.analysis.services import AnalysisService
from medvision.services.history_store import HistoryStoreService
from medvision.services.openai_service import OpenAIService


def test_create_app_wires_services(app):
    """앱 팩토리가 분석 서비스와 협력자를 app.services에 등록해야 함"""
    assert isinstance(app.services['openai'], OpenAIService)
    assert isinstance(app.services['history'], HistoryStoreService)

    analysis = app.services['analysis']
    assert isinstance(analysis, AnalysisService)
    assert analysis.model_client is app.services['openai']
    assert analysis.store is app.services['history']
    assert analysis.persistence_enabled is True


def test_unknown_route_is_json_404(client):
    response = client.get("/api/unknown")

    assert response.status_code == 404
    assert response.get_json()["error_code"] == "NOT_FOUND"

# medvision/client/test_analysis_client.py
import json

import pytest
import requests

from medvision.client import AnalysisClient, AnalysisClientError, unwrap_record, unwrap_result


def _response(status_code: int, body, reason: str = "OK") -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response._content = (body if isinstance(body, str) else json.dumps(body)).encode("utf-8")
    return response


class FakeSession:
    def __init__(self, response: requests.Response):
        self.response = response
        self.requests = []

    def post(self, url, **kwargs):
        self.requests.append(("POST", url, kwargs))
        return self.response

    def get(self, url, **kwargs):
        self.requests.append(("GET", url, kwargs))
        return self.response


def test_double_encoded_result_is_unwrapped():
    body = {"result": {"result": "{\"content\":\"x\",\"timestamp\":\"T\"}"}}
    assert unwrap_result(body) == {"content": "x", "timestamp": "T"}


def test_native_result_is_returned_unchanged():
    body = {"result": {"content": "x", "timestamp": "T"}}
    assert unwrap_result(body) == {"content": "x", "timestamp": "T"}


def test_history_record_with_native_result_is_returned_as_is():
    record = {"id": "rec-1", "userId": "u", "imageType": "image/png",
              "result": {"content": "x", "timestamp": "T"}, "createdAt": "2024-01-15T10:30:00+00:00"}
    assert unwrap_result({"result": record}) == record


def test_nested_string_that_is_not_json_becomes_content():
    assert unwrap_result({"result": {"result": "plain legacy text"}}) == {"content": "plain legacy text"}


def test_legacy_top_level_result_is_accepted():
    body = {"content": "x", "timestamp": "T"}
    assert unwrap_result(body) == body


def test_body_without_result_is_an_error():
    with pytest.raises(AnalysisClientError):
        unwrap_result({"status": "ok"})


def test_unwrap_record_decodes_string_result():
    record = {"id": "old", "result": "{\"description\": \"a\", \"diagnosis\": \"b\", \"extra_comments\": \"c\"}"}
    assert unwrap_record(record)["result"]["diagnosis"] == "b"
    assert record["result"].startswith("{")


def test_analyze_image_posts_request_with_token():
    session = FakeSession(_response(200, {"result": {"result": "{\"content\":\"x\",\"timestamp\":\"T\"}"}}))
    client = AnalysisClient("https://api.example.com/", access_token="tok", session=session)

    result = client.analyze_image("aGVsbG8=", "image/png", result_shape="free_text")

    assert result == {"content": "x", "timestamp": "T"}
    method, url, kwargs = session.requests[0]
    assert (method, url) == ("POST", "https://api.example.com/api/analysis/")
    assert kwargs["json"] == {"imageBase64": "aGVsbG8=", "imageType": "image/png", "resultShape": "free_text"}
    assert kwargs["headers"]["Authorization"] == "Bearer tok"


def test_error_response_raises_with_status_and_body():
    session = FakeSession(_response(401, {"error": "Authentication required"}, reason="UNAUTHORIZED"))
    client = AnalysisClient("https://api.example.com", session=session)

    with pytest.raises(AnalysisClientError) as exc_info:
        client.analyze_image("aGVsbG8=", "image/png")

    err = exc_info.value
    assert err.status_code == 401
    assert "Authentication required" in err.body
    assert "401" in str(err)


def test_invalid_json_body_raises():
    session = FakeSession(_response(200, "<html>gateway</html>"))
    client = AnalysisClient("https://api.example.com", session=session)

    with pytest.raises(AnalysisClientError):
        client.analyze_image("aGVsbG8=", "image/png")


def test_list_history_unwraps_legacy_records():
    history = [
        {"id": "new", "result": {"content": "x", "timestamp": "T"}},
        {"id": "old", "result": "{\"content\":\"y\",\"timestamp\":\"T0\"}"},
    ]
    session = FakeSession(_response(200, {"history": history}))
    client = AnalysisClient("https://api.example.com", access_token="tok", session=session)

    records = client.list_history(limit=5)

    assert [r["result"]["content"] for r in records] == ["x", "y"]
    assert session.requests[0][2]["params"] == {"limit": 5}


@pytest.mark.parametrize("result", [None, "plain text", ["a", "b"]])
def test_non_object_result_is_an_error(result):
    """result가 객체가 아니면 호출자에게 그대로 넘기지 않고 오류 처리"""
    with pytest.raises(AnalysisClientError):
        unwrap_result({"result": result})

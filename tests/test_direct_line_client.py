"""Tests for the Direct Line HTTP wrapper and its error classification."""

from unittest.mock import MagicMock

import pytest
import requests

from utils.direct_line_client import DirectLineClient
from utils.errors import DirectLineError, ErrorType

BASE = "https://bot.example.test/v3/directline"


def _response(body, status=200):
    resp = requests.Response()
    resp.status_code = status
    resp._content = body.encode("utf-8") if isinstance(body, str) else body
    resp.encoding = "utf-8"
    return resp


@pytest.fixture
def http():
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def dl(http):
    return DirectLineClient(BASE + "/", "s3cret", timeout=5.0, session=http)


class TestRequests:
    def test_session_headers(self, dl, http):
        assert http.headers["Accept"] == "application/json"
        assert http.headers["Authorization"] == "Bearer s3cret"
        assert dl.base_url == BASE

    def test_create_conversation(self, dl, http):
        http.request.return_value = _response(
            '{"conversationId": "c1", "token": "t1", "expires_in": 1800}', status=201
        )

        data = dl.create_conversation("u1", "")

        assert data["conversationId"] == "c1"
        http.request.assert_called_once_with(
            "POST",
            f"{BASE}/conversations",
            headers={"Cookie": "UserId=u1", "token": ""},
            timeout=5.0,
        )

    def test_post_activity(self, dl, http):
        http.request.return_value = _response('{"id": "c1|0001"}')
        activity = {"type": "message", "text": "hi", "from": {"id": "u1", "name": "user"}}

        dl.post_activity("c1", activity, "u1", "t1")

        http.request.assert_called_once_with(
            "POST",
            f"{BASE}/conversations/c1/activities",
            headers={"Cookie": "UserId=u1", "token": "t1"},
            timeout=5.0,
            json=activity,
        )

    def test_get_activities_sends_empty_watermark(self, dl, http):
        http.request.return_value = _response('{"watermark": "1", "activities": []}')

        data = dl.get_activities("c1", None, "u1", "t1")

        assert data == {"watermark": "1", "activities": []}
        assert http.request.call_args.kwargs["params"] == {"watermark": ""}

    def test_get_activities_passes_watermark_verbatim(self, dl, http):
        http.request.return_value = _response('{"watermark": "abc", "activities": []}')

        dl.get_activities("c1", "abc", "u1", "t1")

        assert http.request.call_args.kwargs["params"] == {"watermark": "abc"}

    def test_get_activities_defaults_missing_list(self, dl, http):
        http.request.return_value = _response('{"watermark": "2"}')
        assert dl.get_activities("c1", "1")["activities"] == []


class TestErrors:
    def test_transport_failure(self, dl, http):
        http.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(DirectLineError) as info:
            dl.create_conversation()

        assert info.value.error_type is ErrorType.TRANSPORT

    @pytest.mark.parametrize("body", ["", "   ", "<html>oops</html>", "[1, 2]"])
    def test_payload_failure(self, dl, http, body):
        http.request.return_value = _response(body)

        with pytest.raises(DirectLineError) as info:
            dl.get_activities("c1")

        assert info.value.error_type is ErrorType.PAYLOAD

    def test_activities_must_be_a_list(self, dl, http):
        http.request.return_value = _response('{"watermark": "1", "activities": "nope"}')

        with pytest.raises(DirectLineError) as info:
            dl.get_activities("c1")

        assert info.value.error_type is ErrorType.PAYLOAD

    def test_handshake_without_token(self, dl, http):
        http.request.return_value = _response('{"conversationId": "c1"}')

        with pytest.raises(DirectLineError) as info:
            dl.create_conversation()

        assert info.value.error_type is ErrorType.PAYLOAD

    def test_application_error_field(self, dl, http):
        http.request.return_value = _response(
            '{"error": {"code": "BadArgument", "message": "Unknown conversation"}}', status=400
        )

        with pytest.raises(DirectLineError) as info:
            dl.post_activity("c1", {"type": "message"})

        err = info.value
        assert err.error_type is ErrorType.APPLICATION
        assert err.status_code == 400
        assert err.message == "BadArgument: Unknown conversation"
        assert "HTTP 400" in str(err)

    def test_error_status_with_plain_body(self, dl, http):
        http.request.return_value = _response('{"detail": "nope"}', status=503)

        with pytest.raises(DirectLineError) as info:
            dl.get_activities("c1")

        assert info.value.error_type is ErrorType.APPLICATION

from flask import Flask

from smartboard.domain.exceptions import NotFoundError, RuntimeUnavailable
from smartboard.utils.http import safe_route, success_response


def _app():
    app = Flask(__name__)

    @app.get("/ok")
    @safe_route()
    def ok():
        return success_response({"value": 1}, 202)

    @app.get("/missing")
    @safe_route("Failed to jump to board")
    def missing():
        raise NotFoundError("Unknown board", detail={"slide_key": "Nowhere"})

    @app.get("/offline")
    @safe_route()
    def offline():
        raise RuntimeUnavailable("loop thread not started")

    @app.get("/boom")
    @safe_route()
    def boom():
        raise KeyError("secret internals")

    return app.test_client()


def test_success_envelope():
    response = _app().get("/ok")

    assert response.status_code == 202
    assert response.get_json() == {"ok": True, "data": {"value": 1}, "error": None}


def test_client_errors_keep_message_and_details():
    response = _app().get("/missing")

    body = response.get_json()
    assert response.status_code == 404
    assert body["ok"] is False
    assert body["error"]["message"] == "Unknown board"
    assert body["details"] == {"slide_key": "Nowhere"}


def test_server_errors_hide_internals():
    client = _app()

    offline = client.get("/offline").get_json()
    boom = client.get("/boom")

    assert offline["error"]["message"] == "Display runtime not ready"
    assert boom.status_code == 500
    assert "secret" not in boom.get_data(as_text=True)
    assert "details" not in boom.get_json()

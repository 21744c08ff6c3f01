"""
Unit tests for the middleware pipeline, access log and error trap.
"""

import json
import logging

import pytest

from minihttp.http.request import HTTPRequest, Method
from minihttp.http.response import HTTPResponse, ResponseBuilder, ok
from minihttp.http.status_codes import HTTPStatus
from minihttp.middleware import (
    Middleware,
    MiddlewarePipeline,
    ErrorMiddleware,
    LoggingMiddleware,
)


def make_request(target: str = "/echo/abc") -> HTTPRequest:
    return HTTPRequest(
        method=Method.GET,
        target=target,
        headers={"user-agent": "pytest"},
        client_address=("127.0.0.1", 5555),
    )


def handler(request: HTTPRequest) -> HTTPResponse:
    return ResponseBuilder().text("abc").build()


def failing_handler(request: HTTPRequest) -> HTTPResponse:
    raise RuntimeError("handler exploded")


class Recorder(Middleware):
    """Appends its tag before and after calling next."""

    def __init__(self, tag: str, calls: list):
        self.tag = tag
        self.calls = calls

    def __call__(self, request, next):
        self.calls.append(f"{self.tag}:before")
        response = next(request)
        self.calls.append(f"{self.tag}:after")
        return response


class TestMiddlewarePipeline:
    def test_empty_pipeline_is_handler(self):
        wrapped = MiddlewarePipeline().wrap(handler)
        assert wrapped(make_request()).body == b"abc"

    def test_order(self):
        calls = []
        pipeline = MiddlewarePipeline().use(Recorder("a", calls), Recorder("b", calls))

        pipeline.wrap(handler)(make_request())

        assert calls == ["a:before", "b:before", "b:after", "a:after"]

    def test_short_circuit(self):
        class Deny(Middleware):
            def __call__(self, request, next):
                return HTTPResponse(status=HTTPStatus.FORBIDDEN)

        response = MiddlewarePipeline().add(Deny()).wrap(failing_handler)(make_request())
        assert response.status == HTTPStatus.FORBIDDEN

    def test_len_and_iter(self):
        mw = Recorder("a", [])
        pipeline = MiddlewarePipeline().add(mw)

        assert len(pipeline) == 1
        assert list(pipeline) == [mw]
        assert mw.name == "Recorder"

    def test_default_name_is_class_name(self):
        assert ErrorMiddleware().name == "ErrorMiddleware"


class TestErrorMiddleware:
    def test_passes_through(self):
        response = ErrorMiddleware()(make_request(), handler)
        assert response.body == b"abc"

    def test_exception_becomes_500(self, caplog):
        with caplog.at_level(logging.ERROR, logger="minihttp.middleware.errors"):
            response = ErrorMiddleware()(make_request(), failing_handler)

        assert response.to_bytes() == b"HTTP/1.1 500 Internal Server Error\r\n\r\n"
        assert "handler exploded" in caplog.text


class TestLoggingMiddleware:
    def test_text_line(self, caplog):
        with caplog.at_level(logging.INFO, logger="minihttp.access"):
            LoggingMiddleware()(make_request(), handler)

        assert len(caplog.records) == 1
        line = caplog.records[0].getMessage()
        assert line.startswith("127.0.0.1 - - [")
        assert '"GET /echo/abc" 200 3' in line

    def test_json_line(self, caplog):
        with caplog.at_level(logging.INFO, logger="minihttp.access"):
            LoggingMiddleware(log_format="json")(make_request(), handler)

        entry = json.loads(caplog.records[0].getMessage())
        assert entry["method"] == "GET"
        assert entry["path"] == "/echo/abc"
        assert entry["status_code"] == 200
        assert entry["content_length"] == 3
        assert entry["user_agent"] == "pytest"
        assert entry["encoding"] == "none"

    def test_adds_no_headers(self):
        response = LoggingMiddleware()(make_request(), handler)
        assert response.headers == [("Content-Type", "text/plain"), ("Content-Length", "3")]

    def test_skip_paths(self, caplog):
        with caplog.at_level(logging.INFO, logger="minihttp.access"):
            LoggingMiddleware(skip_paths=["/"])(make_request("/"), lambda r: ok())

        assert caplog.records == []

    def test_failure_logged_and_reraised(self, caplog):
        with caplog.at_level(logging.ERROR, logger="minihttp.access"):
            with pytest.raises(RuntimeError):
                LoggingMiddleware()(make_request(), failing_handler)

        assert "Request failed: GET /echo/abc" in caplog.text

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            LoggingMiddleware(log_format="xml")

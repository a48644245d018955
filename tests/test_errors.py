"""Tests for ErrorClassifier."""

import httpx
import pytest

from copilot_stream.errors import (
    GENERIC_UPSTREAM_MESSAGE,
    UNKNOWN_ERROR_MESSAGE,
    CopilotError,
    ErrorClassifier,
    ErrorKind,
)


@pytest.fixture
def classifier() -> ErrorClassifier:
    return ErrorClassifier()


class TestClassifyStatus:
    def test_rate_limited(self, classifier):
        err = classifier.classify_status(429, {"error": "Too many requests"})
        assert err.kind is ErrorKind.RATE_LIMITED
        assert err.message == "Too many requests"
        assert err.status_code == 429

    def test_quota_exceeded(self, classifier):
        err = classifier.classify_status(402, {"error": "No credits"})
        assert err.kind is ErrorKind.QUOTA_EXCEEDED

    def test_other_status_is_upstream(self, classifier):
        err = classifier.classify_status(503, {"error": "Model overloaded"})
        assert err.kind is ErrorKind.UPSTREAM
        assert err.message == "Model overloaded"

    @pytest.mark.parametrize("body", [None, "oops", [1], {}, {"error": ""}, {"error": 5}])
    def test_fallback_message(self, classifier, body):
        err = classifier.classify_status(500, body)
        assert err.message == GENERIC_UPSTREAM_MESSAGE

    def test_rate_limited_without_body(self, classifier):
        err = classifier.classify_status(429)
        assert err.kind is ErrorKind.RATE_LIMITED
        assert err.message == GENERIC_UPSTREAM_MESSAGE


class TestClassifyException:
    def test_transport(self, classifier):
        err = classifier.classify_exception(httpx.ConnectError("connection refused"))
        assert err.kind is ErrorKind.TRANSPORT
        assert err.message == "connection refused"

    def test_read_timeout_is_transport(self, classifier):
        err = classifier.classify_exception(httpx.ReadTimeout("timed out"))
        assert err.kind is ErrorKind.TRANSPORT

    def test_unknown_with_empty_message(self, classifier):
        err = classifier.classify_exception(ValueError())
        assert err.kind is ErrorKind.UNKNOWN
        assert err.message == UNKNOWN_ERROR_MESSAGE

    def test_copilot_error_passthrough(self, classifier):
        original = CopilotError(ErrorKind.UPSTREAM, "boom", status_code=500)
        assert classifier.classify_exception(original) is original


class TestNotifications:
    def test_rate_limited_copy(self):
        n = ErrorClassifier.notification_for(CopilotError(ErrorKind.RATE_LIMITED, "x"))
        assert n.title == "Rate limit reached"
        assert n.description

    def test_quota_copy(self):
        n = ErrorClassifier.notification_for(CopilotError(ErrorKind.QUOTA_EXCEEDED, "x"))
        assert n.title == "Insufficient AI credits"

    def test_upstream_shows_endpoint_message(self):
        n = ErrorClassifier.notification_for(CopilotError(ErrorKind.UPSTREAM, "Model overloaded"))
        assert n.description == "Model overloaded"

    def test_transport_is_generic(self):
        n = ErrorClassifier.notification_for(CopilotError(ErrorKind.TRANSPORT, "reset"))
        assert n.title == GENERIC_UPSTREAM_MESSAGE

"""Tests for the shared upstream fetcher."""

import unittest
from unittest.mock import Mock

import requests

from feed_syndicator.core.clients.http import DEFAULT_HEADERS, HttpFetcher
from feed_syndicator.errors import UpstreamError


def make_response(status_code=200, json_data=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = json_data
    return response


class TestHttpFetcher(unittest.TestCase):
    """Test suite for HttpFetcher."""

    def setUp(self):
        self.session = Mock()
        self.fetcher = HttpFetcher("graph", session=self.session, timeout=5.0)

    def test_json_success(self):
        self.session.get.return_value = make_response(json_data={"id": "1"})

        result = self.fetcher.fetch("https://api.test/1", params={"fields": "id"})

        self.assertEqual(result.status, 200)
        self.assertEqual(result.body, {"id": "1"})
        _, kwargs = self.session.get.call_args
        self.assertEqual(kwargs["timeout"], 5.0)
        self.assertEqual(kwargs["params"], {"fields": "id"})
        self.assertEqual(kwargs["headers"]["user-agent"], DEFAULT_HEADERS["user-agent"])

    def test_extra_headers_merged(self):
        self.session.get.return_value = make_response(json_data={})
        self.fetcher.fetch("https://api.test/", headers={"referer": "https://ref.test/"})

        _, kwargs = self.session.get.call_args
        self.assertEqual(kwargs["headers"]["referer"], "https://ref.test/")
        self.assertIn("accept", kwargs["headers"])

    def test_embedded_error_object(self):
        self.session.get.return_value = make_response(
            status_code=400,
            json_data={"error": {"message": "Unsupported get request", "type": "GraphMethodException"}},
        )

        with self.assertRaises(UpstreamError) as ctx:
            self.fetcher.fetch("https://api.test/missing")

        self.assertEqual(ctx.exception.message, "Unsupported get request")
        self.assertEqual(ctx.exception.details["status"], 400)

    def test_embedded_error_with_success_status(self):
        self.session.get.return_value = make_response(json_data={"error": "rate limited"})
        with self.assertRaises(UpstreamError):
            self.fetcher.fetch("https://api.test/")

    def test_http_error_status(self):
        self.session.get.return_value = make_response(status_code=503, json_data={})
        with self.assertRaises(UpstreamError):
            self.fetcher.fetch("https://api.test/")

    def test_body_not_json(self):
        self.session.get.return_value = make_response(text="<html>")
        with self.assertRaises(UpstreamError):
            self.fetcher.fetch("https://api.test/")

    def test_network_failure_not_retried(self):
        self.session.get.side_effect = requests.exceptions.ConnectionError("refused")

        with self.assertRaises(UpstreamError):
            self.fetcher.fetch("https://api.test/")

        self.assertEqual(self.session.get.call_count, 1)

    def test_text_body(self):
        self.session.get.return_value = make_response(text="<html>page</html>")
        result = self.fetcher.fetch("https://site.test/", expect_json=False)
        self.assertEqual(result.body, "<html>page</html>")

    def test_text_body_error_status(self):
        self.session.get.return_value = make_response(status_code=404, text="gone")
        with self.assertRaises(UpstreamError):
            self.fetcher.fetch("https://site.test/", expect_json=False)

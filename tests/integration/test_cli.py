"""Tests for the command line interface."""

from unittest.mock import Mock

import pytest
import requests
from click.testing import CliRunner

from feed_syndicator.cli import cli
from feed_syndicator.errors import UpstreamError
from tests.helpers import make_feed


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    monkeypatch.setattr("feed_syndicator.cli.configure_logging", Mock())


def test_help(runner):
    result = runner.invoke(cli, ["--help"], obj={})
    assert result.exit_code == 0
    for command in ("serve", "evict-cache", "render"):
        assert command in result.output


def test_render_prints_rss(runner, mocker):
    services = mocker.patch("feed_syndicator.cli.build_services").return_value
    services.twitter.get_feed.return_value = make_feed(1)

    result = runner.invoke(cli, ["render", "twitter", "TestUser"], obj={})

    assert result.exit_code == 0
    assert result.output.startswith('<?xml version="1.0" encoding="utf-8"?>')
    assert "<title>Test Page</title>" in result.output
    services.twitter.get_feed.assert_called_once_with("TestUser")


def test_render_reports_errors(runner, mocker):
    services = mocker.patch("feed_syndicator.cli.build_services").return_value
    services.facebook.get_feed.side_effect = UpstreamError("Unsupported get request")

    result = runner.invoke(cli, ["render", "facebook", "ghost"], obj={})

    assert result.exit_code == 1
    assert "Unsupported get request" in result.output


def test_render_rejects_unknown_source(runner):
    result = runner.invoke(cli, ["render", "myspace", "tom"], obj={})
    assert result.exit_code == 2


def test_missing_configuration(runner, monkeypatch):
    monkeypatch.delenv("GRAPH_ACCESS_TOKEN")

    result = runner.invoke(cli, ["render", "twitter", "someone"], obj={})

    assert result.exit_code == 1
    assert "GRAPH_ACCESS_TOKEN" in result.output


def test_evict_cache_memory_backend_needs_url(runner, mocker):
    build_cache = mocker.patch("feed_syndicator.cli.build_cache")

    result = runner.invoke(cli, ["evict-cache"], obj={})

    assert result.exit_code == 1
    assert "--url" in result.output
    build_cache.assert_not_called()


def test_evict_cache_redis_backend(runner, mocker, monkeypatch):
    monkeypatch.setenv("CACHE_BACKEND", "redis")
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")
    build_cache = mocker.patch("feed_syndicator.cli.build_cache")
    build_cache.return_value.evict_all.return_value = 3

    result = runner.invoke(cli, ["evict-cache"], obj={})

    assert result.exit_code == 0
    assert "Evicted 3 entries" in result.output
    build_cache.return_value.evict_all.assert_called_once_with()


def test_evict_cache_through_server(runner, monkeypatch):
    response = Mock()
    response.json.return_value = {"evicted": 4}
    post = Mock(return_value=response)
    monkeypatch.setattr("feed_syndicator.cli.requests.post", post)

    result = runner.invoke(cli, ["evict-cache", "--url", "http://localhost:8000/"], obj={})

    assert result.exit_code == 0
    assert "Evicted 4 entries" in result.output
    post.assert_called_once_with("http://localhost:8000/cache/evict", timeout=30)


def test_evict_cache_server_unreachable(runner, monkeypatch):
    monkeypatch.setattr(
        "feed_syndicator.cli.requests.post",
        Mock(side_effect=requests.exceptions.ConnectionError("refused")),
    )

    result = runner.invoke(cli, ["evict-cache", "--url", "http://localhost:8000"], obj={})

    assert result.exit_code == 1
    assert "Eviction request failed" in result.output


def test_bad_cookie_file_is_fatal(runner, monkeypatch):
    monkeypatch.setenv("TWITTER_COOKIES", "not a cookie file")

    result = runner.invoke(cli, ["render", "twitter", "someone"], obj={})

    assert result.exit_code == 1
    assert "Netscape" in result.output

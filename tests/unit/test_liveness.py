"""Unit tests for posting liveness probes (httpx MockTransport, no network)."""

import asyncio

import httpx
import pytest

from tailor.contexts.intake import liveness
from tailor.contexts.intake.liveness import probe_all, probe_urls


def _transport(routes):
    """routes: url -> (head_status, get_body or exception)."""

    def handler(request):
        head_status, body = routes[str(request.url)]
        if request.method == "HEAD":
            if isinstance(head_status, Exception):
                raise head_status
            return httpx.Response(head_status)
        if isinstance(body, Exception):
            raise body
        return httpx.Response(200, text=body)

    return httpx.MockTransport(handler)


@pytest.mark.unit
def test_probe_classifies_postings():
    routes = {
        "https://jobs.example.com/open": (200, "<h1>Apply now</h1>"),
        "https://jobs.example.com/gone": (404, ""),
        "https://jobs.example.com/removed": (410, ""),
        "https://jobs.example.com/filled": (200, "Sorry, this Position Has Been Filled."),
        "https://jobs.example.com/error": (503, ""),
        "https://jobs.example.com/get-fails": (200, httpx.ReadError("reset")),
    }

    results = probe_urls(list(routes), transport=_transport(routes))

    assert results == {
        "https://jobs.example.com/open": True,
        "https://jobs.example.com/gone": False,
        "https://jobs.example.com/removed": False,
        "https://jobs.example.com/filled": False,
        "https://jobs.example.com/error": False,
        "https://jobs.example.com/get-fails": True,
    }


@pytest.mark.unit
def test_timeout_counts_as_inactive():
    routes = {"https://slow.example.com/1": (httpx.ReadTimeout("timed out"), "")}

    assert probe_urls(list(routes), transport=_transport(routes)) == {
        "https://slow.example.com/1": False
    }


@pytest.mark.unit
def test_follows_redirects():
    def handler(request):
        if str(request.url) == "https://short.example.com/1":
            return httpx.Response(301, headers={"Location": "https://jobs.example.com/1"})
        return httpx.Response(200, text="open")

    results = probe_urls(["https://short.example.com/1"], transport=httpx.MockTransport(handler))

    assert results == {"https://short.example.com/1": True}


@pytest.mark.unit
def test_duplicates_probed_once():
    calls = []

    def handler(request):
        calls.append((request.method, str(request.url)))
        return httpx.Response(200, text="open")

    results = probe_urls(["https://a.example/1", "https://a.example/1"], transport=httpx.MockTransport(handler))

    assert results == {"https://a.example/1": True}
    assert calls == [("HEAD", "https://a.example/1"), ("GET", "https://a.example/1")]


@pytest.mark.unit
def test_concurrency_is_capped(monkeypatch):
    """Never more than `concurrency` probes in flight at once."""
    in_flight = 0
    peak = 0

    async def fake_probe(client, url):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return True

    monkeypatch.setattr(liveness, "probe_url", fake_probe)
    urls = [f"https://jobs.example.com/{i}" for i in range(25)]

    results = asyncio.run(probe_all(urls, concurrency=4))

    assert len(results) == 25
    assert peak == 4

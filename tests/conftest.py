import threading

import pytest
import requests


class FakeResponse:
    def __init__(self, url, content=b"", status_code=200):
        self.url = url
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}")


class FakeSession:
    """
    In-memory stand-in for requests.Session.

    `routes` maps URL to body. `fail(url, times)` makes a URL answer 503
    `times` times (or forever when times is None) before serving its body.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.failures = {}
        self.requests = []
        self.lock = threading.Lock()

    def fail(self, url, times=None):
        with self.lock:
            self.failures[url] = times

    def recover(self, url):
        with self.lock:
            self.failures.pop(url, None)

    def calls(self, url):
        with self.lock:
            return sum(1 for requested, _ in self.requests if requested == url)

    def get(self, url, timeout=None, verify=None, headers=None):
        with self.lock:
            self.requests.append((url, headers))
            if url in self.failures:
                remaining = self.failures[url]
                if remaining is None:
                    return FakeResponse(url, status_code=503)
                if remaining > 0:
                    self.failures[url] = remaining - 1
                    return FakeResponse(url, status_code=503)
            if url not in self.routes:
                return FakeResponse(url, status_code=404)
            content = self.routes[url]

        if headers and "Range" in headers:
            start, end = headers["Range"][len("bytes="):].split("-")
            content = content[int(start):int(end) + 1]
        return FakeResponse(url, content)


def ts_payload(index, size=188):
    """A fake transport stream packet: sync byte followed by filler."""
    return b"\x47" + bytes([index % 256]) * (size - 1)


def media_playlist(urls, key_line=None, media_sequence=0):
    lines = ["#EXTM3U", "#EXT-X-TARGETDURATION:10", f"#EXT-X-MEDIA-SEQUENCE:{media_sequence}"]
    if key_line:
        lines.append(key_line)
    for url in urls:
        lines.append("#EXTINF:10.0,")
        lines.append(url)
    lines.append("#EXT-X-ENDLIST")
    return "\n".join(lines) + "\n"


@pytest.fixture
def session():
    return FakeSession()

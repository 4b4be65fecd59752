import json
from typing import Dict, List, Optional

import pytest

from es_rest_client import ElasticsearchClient, TransportResponse


class FakeTransport:
    """送信されたリクエストを記録し、キューに積んだレスポンスを順に返すトランスポート。"""

    def __init__(self):
        self.requests: List[dict] = []
        self.responses: List[object] = []

    def queue(self, status_code: int = 200, body=None, headers: Optional[Dict[str, str]] = None):
        if body is None:
            raw = b""
        elif isinstance(body, bytes):
            raw = body
        elif isinstance(body, str):
            raw = body.encode("utf-8")
        else:
            raw = json.dumps(body).encode("utf-8")
        self.responses.append(TransportResponse(status_code=status_code, body=raw, headers=headers or {}))

    def fail(self, exc: Exception):
        self.responses.append(exc)

    def send(self, method, url, headers, body=None, timeout=None):
        self.requests.append({"method": method, "url": url, "headers": headers, "body": body, "timeout": timeout})
        response = self.responses.pop(0) if self.responses else TransportResponse(status_code=200)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def last(self) -> dict:
        return self.requests[-1]


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(transport):
    return ElasticsearchClient("http://es.local:9200/", transport)

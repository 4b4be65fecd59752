import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol, Tuple, Union

import requests

logger = logging.getLogger(__name__)

# Bulkペイロードを受け取れるよう15MBを既定の上限とする
DEFAULT_MAX_BODY_SIZE = 15 * 1024 * 1024
DEFAULT_TIMEOUT = 30.0
_CHUNK_SIZE = 64 * 1024


@dataclass
class TransportResponse:
    """
    トランスポートから返されるレスポンス。
    """
    status_code: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)


class BodyTooLarge(requests.exceptions.RequestException):
    """リクエストまたはレスポンスのボディがmax_body_sizeを超えたときに発生する例外"""
    pass


class HttpTransport(Protocol):
    """
    ElasticsearchClientが依存するHTTPトランスポートのインターフェース。
    レスポンスを得られなかった場合は requests.exceptions.RequestException を送出します。
    """

    def send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes] = None,
        timeout: Optional[float] = None,
    ) -> TransportResponse:
        ...


class RequestsTransport:
    """
    requests.Session を使ったHttpTransportの実装。
    コネクションプールはSessionが管理します。
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_body_size: int = DEFAULT_MAX_BODY_SIZE,
        auth: Optional[Tuple[str, str]] = None,
        verify: Optional[Union[bool, str]] = None,
    ):
        """
        :param verify: TLS検証の設定（boolまたはCAバンドルのパス）。Noneの場合はSessionの設定をそのまま使います
        """
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_body_size = max_body_size
        if auth:
            self.session.auth = auth
        if verify is not None:
            self.session.verify = verify

    def send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes] = None,
        timeout: Optional[float] = None,
    ) -> TransportResponse:
        if body is not None and len(body) > self.max_body_size:
            raise BodyTooLarge(f"Request body of {len(body)} bytes exceeds limit of {self.max_body_size} bytes")

        response = self.session.request(
            method,
            url,
            headers=headers,
            data=body,
            timeout=timeout if timeout is not None else self.timeout,
            stream=True,
        )
        logger.debug(f"{method} {url} -> {response.status_code}")
        try:
            return TransportResponse(
                status_code=response.status_code,
                body=self._read_body(response),
                headers=dict(response.headers),
            )
        finally:
            response.close()

    def _read_body(self, response: requests.Response) -> bytes:
        chunks = []
        size = 0
        for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
            size += len(chunk)
            if size > self.max_body_size:
                raise BodyTooLarge(f"Response body exceeds limit of {self.max_body_size} bytes")
            chunks.append(chunk)
        return b"".join(chunks)

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

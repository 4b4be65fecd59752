"""ElasticsearchのREST APIを型付きのメソッド呼び出しとして扱うクライアントライブラリ。"""
from .config import ClientConfig
from .elasticsearch_client import ElasticsearchClient
from .errors import ElasticsearchError, NotFoundError, TransportError
from .transport import BodyTooLarge, HttpTransport, RequestsTransport, TransportResponse

__all__ = [
    "ClientConfig",
    "ElasticsearchClient",
    "ElasticsearchError",
    "NotFoundError",
    "TransportError",
    "BodyTooLarge",
    "HttpTransport",
    "RequestsTransport",
    "TransportResponse",
]

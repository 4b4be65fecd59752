import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import requests

from .codec import decode_json, encode_json, encode_ndjson
from .config import ClientConfig, normalize_base_url
from .endpoint import Endpoint, Request, join_indices, request_headers
from .errors import ElasticsearchError, NotFoundError, TransportError, error_for_status
from .transport import HttpTransport, RequestsTransport, TransportResponse

logger = logging.getLogger(__name__)

Options = Optional[Mapping[str, Any]]
Indices = Union[str, Sequence[str]]


def _opts(options: Options, **extra) -> Dict[str, Any]:
    merged = dict(options or {})
    merged.update(extra)
    return merged


def _is_plain_text(response: TransportResponse) -> bool:
    # _cat APIの format=txt などはJSON以外で返る
    content_type = next((v for k, v in response.headers.items() if k.lower() == "content-type"), "")
    return content_type.startswith("text/plain")


def _cat_opts(options: Options) -> Dict[str, Any]:
    merged = {"format": "json"}
    merged.update(options or {})
    return merged


class ElasticsearchClient:
    """
    ElasticsearchのREST APIをメソッド呼び出しとして公開するクライアント。
    HTTP通信はコンストラクタで渡されたトランスポートに委譲します。

    各メソッドの options はクエリ文字列にそのまま追加されます。
    timeout はトランスポートへそのまま渡され、超過するとTransportErrorになります。
    """

    def __init__(self, base_url: str, transport: HttpTransport, timeout: Optional[float] = None):
        self.base_url = normalize_base_url(base_url)
        self.transport = transport
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: ClientConfig) -> "ElasticsearchClient":
        auth = (config.username, config.password) if config.username and config.password else None
        transport = RequestsTransport(
            timeout=config.timeout,
            max_body_size=config.max_body_size,
            auth=auth,
            verify=config.verify_certs,
        )
        return cls(config.base_url, transport, timeout=config.timeout)

    # --- dispatch ---

    def _build_request(self, endpoint: Endpoint, timeout: Optional[float]) -> Request:
        if endpoint.body is None:
            body = None
        elif endpoint.ndjson:
            body = encode_ndjson(endpoint.body)
        else:
            body = encode_json(endpoint.body)
        return Request(
            method=endpoint.method,
            url=endpoint.url(self.base_url),
            headers=request_headers(endpoint.ndjson),
            body=body,
            timeout=timeout if timeout is not None else self.timeout,
        )

    def _send(self, endpoint: Endpoint, timeout: Optional[float]) -> TransportResponse:
        """
        リクエストをトランスポートに送信します。
        レスポンスを得られなかった場合はTransportErrorを送出します。
        """
        request = self._build_request(endpoint, timeout)
        logger.debug(f"{request.method} {request.url}")
        try:
            return self.transport.send(
                request.method,
                request.url,
                request.headers,
                body=request.body,
                timeout=request.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Transport failure for {request.method} {request.url}: {e}")
            raise TransportError(e, request_body=request.body) from e

    def _raise_for_status(self, endpoint: Endpoint, response: TransportResponse):
        if 200 <= response.status_code < 300:
            return
        body = response.body.decode("utf-8", errors="replace") if response.body else None
        error = error_for_status(response.status_code, body)
        if not isinstance(error, NotFoundError):
            logger.warning(f"{endpoint.method} {'/'.join(endpoint.segments)} failed with status {response.status_code}")
        raise error

    def _request(self, endpoint: Endpoint, timeout: Optional[float] = None) -> Any:
        """
        エンドポイントを呼び出し、デコードしたレスポンスを返します。
        ボディが空の成功レスポンスはNoneになります。
        """
        response = self._send(endpoint, timeout)
        self._raise_for_status(endpoint, response)
        try:
            if _is_plain_text(response):
                return response.body.decode("utf-8")
            return decode_json(response.body)
        except ValueError as e:
            # プロキシが返すHTMLなど、2xxでもデコードできないボディ
            logger.warning(f"{endpoint.method} {'/'.join(endpoint.segments)} returned an undecodable body")
            body = response.body.decode("utf-8", errors="replace")
            raise ElasticsearchError(response.status_code, body, cause=e) from e

    def _exists(self, endpoint: Endpoint, timeout: Optional[float] = None) -> bool:
        try:
            self._request(endpoint, timeout)
        except NotFoundError:
            return False
        return True

    # --- cluster ---

    def info(self, options: Options = None, timeout: Optional[float] = None) -> Any:
        """クラスタ名とバージョン情報を取得します。接続確認にも使えます。"""
        return self._request(Endpoint("GET", (), _opts(options)), timeout)

    # --- indices ---

    def create_index(self, index: str, body: Optional[Mapping[str, Any]] = None, options: Options = None, timeout: Optional[float] = None) -> Any:
        """
        インデックスを作成します。
        :param body: settings、mappings、aliasesを含む辞書（省略可）
        """
        return self._request(Endpoint("PUT", (index,), _opts(options), body or None), timeout)

    def exists_index(self, index: str, options: Options = None, timeout: Optional[float] = None) -> bool:
        return self._exists(Endpoint("HEAD", (index,), _opts(options)), timeout)

    def get_index(self, index: str, options: Options = None, timeout: Optional[float] = None) -> Any:
        return self._request(Endpoint("GET", (index,), _opts(options)), timeout)

    def delete_index(self, index: str, options: Options = None, timeout: Optional[float] = None) -> Any:
        return self._request(Endpoint("DELETE", (index,), _opts(options)), timeout)

    def open_index(self, index: str, options: Options = None, timeout: Optional[float] = None) -> Any:
        return self._request(Endpoint("POST", (index, "_open"), _opts(options)), timeout)

    def close_index(self, index: str, options: Options = None, timeout: Optional[float] = None) -> Any:
        return self._request(Endpoint("POST", (index, "_close"), _opts(options)), timeout)

    def stats_index(self, index: str, metric: Optional[str] = None, options: Options = None, timeout: Optional[float] = None) -> Any:
        segments = (index, "_stats", metric) if metric else (index, "_stats")
        return self._request(Endpoint("GET", segments, _opts(options)), timeout)

    def get_mapping(self, index: str, options: Options = None, timeout: Optional[float] = None) -> Any:
        return self._request(Endpoint("GET", (index, "_mapping"), _opts(options)), timeout)

    def put_mapping(self, index: str, properties: Mapping[str, Any], options: Options = None, timeout: Optional[float] = None) -> Any:
        body = {"properties": properties}
        return self._request(Endpoint("PUT", (index, "_mapping"), _opts(options), body), timeout)

    def put_settings(self, index: str, settings: Mapping[str, Any], options: Options = None, timeout: Optional[float] = None) -> Any:
        return self._request(Endpoint("PUT", (index, "_settings"), _opts(options), settings), timeout)

    def put_script(self, script_id: str, script: Mapping[str, Any], options: Options = None, timeout: Optional[float] = None) -> Any:
        """
        ストアドスクリプトを登録します。
        :param script: {"script": {"lang": ..., "source": ...}} 形式の辞書
        """
        return self._request(Endpoint("PUT", ("_scripts", script_id), _opts(options), script), timeout)

    def refresh(self, indices: Optional[Indices] = None, options: Options = None, timeout: Optional[float] = None) -> Any:
        """
        インデックスをリフレッシュし、直前に登録したドキュメントを検索可能にします。
        indicesを省略するとすべてのインデックスが対象になります。
        """
        segments = (join_indices(indices), "_refresh") if indices else ("_refresh",)
        return self._request(Endpoint("POST", segments, _opts(options)), timeout)

    # --- documents ---

    def index_document(
        self,
        index: str,
        doc_id: str,
        body: Mapping[str, Any],
        options: Options = None,
        doc_type: str = "_doc",
        timeout: Optional[float] = None,
    ) -> Any:
        """
        ドキュメントを登録します。
        doc_idが空文字列の場合はPOSTでIDを自動採番し、それ以外はPUTで指定IDに保存します。
        """
        if doc_id == "":
            endpoint = Endpoint("POST", (index, doc_type), _opts(options), body)
        else:
            endpoint = Endpoint("PUT", (index, doc_type, doc_id), _opts(options), body)
        return self._request(endpoint, timeout)

    def exists_document(self, index: str, doc_id: str, doc_type: str = "_doc", options: Options = None, timeout: Optional[float] = None) -> bool:
        return self._exists(Endpoint("HEAD", (index, doc_type, doc_id), _opts(options)), timeout)

    def get_document(self, index: str, doc_id: str, options: Options = None, doc_type: str = "_doc", timeout: Optional[float] = None) -> Any:
        """
        ドキュメントを取得します。
        doc_typeに "_source" を指定すると、メタデータなしでソースのみを返します。
        :raises NotFoundError: ドキュメントが存在しない場合
        """
        return self._request(Endpoint("GET", (index, doc_type, doc_id), _opts(options)), timeout)

    def delete_document(self, index: str, doc_id: str, options: Options = None, doc_type: str = "_doc", timeout: Optional[float] = None) -> Any:
        return self._request(Endpoint("DELETE", (index, doc_type, doc_id), _opts(options)), timeout)

    def bulk(self, lines: Iterable[Mapping[str, Any]], index: Optional[str] = None, options: Options = None, timeout: Optional[float] = None) -> Any:
        """
        Bulk APIでアクション行とソース行をまとめて送信します。
        :param lines: {"index": {...}}, {"field": ...}, ... のように並べた辞書のシーケンス
        """
        segments = (index, "_bulk") if index else ("_bulk",)
        return self._request(Endpoint("POST", segments, _opts(options), list(lines), ndjson=True), timeout)

    # --- search ---

    def uri_search_one_index(self, index: str, query: str, options: Options = None, timeout: Optional[float] = None) -> Any:
        return self._uri_search(index, query, options, timeout)

    def uri_search_many_indices(self, indices: Sequence[str], query: str, options: Options = None, timeout: Optional[float] = None) -> Any:
        return self._uri_search(join_indices(indices), query, options, timeout)

    def uri_search_all_indices(self, query: str, options: Options = None, timeout: Optional[float] = None) -> Any:
        return self._uri_search("_all", query, options, timeout)

    def _uri_search(self, target: str, query: str, options: Options, timeout: Optional[float]) -> Any:
        return self._request(Endpoint("GET", (target, "_search"), _opts(options, q=query)), timeout)

    def search(self, query: Mapping[str, Any], index: Optional[Indices] = None, options: Options = None, timeout: Optional[float] = None) -> Any:
        """
        クエリDSLで検索します。queryは {"query": query} に包んで送信されます。
        """
        return self.search_raw({"query": query}, index, options, timeout)

    def search_raw(self, body: Mapping[str, Any], index: Optional[Indices] = None, options: Options = None, timeout: Optional[float] = None) -> Any:
        """検索リクエストボディ（size、highlight、aggsなどを含む）をそのまま送信します。"""
        segments = (join_indices(index), "_search") if index else ("_search",)
        return self._request(Endpoint("POST", segments, _opts(options), body), timeout)

    def count(self, index: str, query: Optional[Mapping[str, Any]] = None, options: Options = None, timeout: Optional[float] = None) -> Any:
        body = {"query": query} if query is not None else None
        return self._request(Endpoint("GET", (index, "_count"), _opts(options), body), timeout)

    def scroll(self, scroll_id: str, scroll: str = "1m", options: Options = None, timeout: Optional[float] = None) -> Any:
        """
        スクロールカーソルの次のページを取得します。
        カーソルのライフサイクルは呼び出し元で管理してください。
        """
        body = {"scroll_id": scroll_id, "scroll": scroll}
        return self._request(Endpoint("POST", ("_search", "scroll"), _opts(options), body), timeout)

    def clear_scroll(self, scroll_id: str, options: Options = None, timeout: Optional[float] = None) -> Any:
        body = {"scroll_id": scroll_id}
        return self._request(Endpoint("DELETE", ("_search", "scroll"), _opts(options), body), timeout)

    # --- by-query and tasks ---

    def reindex(self, body: Mapping[str, Any], options: Options = None, timeout: Optional[float] = None) -> Any:
        return self._request(Endpoint("POST", ("_reindex",), _opts(options), body), timeout)

    def update_by_query(self, body: Mapping[str, Any], index: Optional[Indices] = None, options: Options = None, timeout: Optional[float] = None) -> Any:
        segments = (join_indices(index), "_update_by_query") if index else ("_update_by_query",)
        return self._request(Endpoint("POST", segments, _opts(options), body), timeout)

    def delete_by_query(self, body: Mapping[str, Any], index: Optional[Indices] = None, options: Options = None, timeout: Optional[float] = None) -> Any:
        segments = (join_indices(index), "_delete_by_query") if index else ("_delete_by_query",)
        return self._request(Endpoint("POST", segments, _opts(options), body), timeout)

    def get_task(self, task_id: str, options: Options = None, timeout: Optional[float] = None) -> Any:
        return self._request(Endpoint("GET", ("_tasks", task_id), _opts(options)), timeout)

    # --- aliases ---

    def update_aliases(self, actions: List[Mapping[str, Any]], options: Options = None, timeout: Optional[float] = None) -> Any:
        """
        エイリアスの追加・削除をまとめて実行します。
        :param actions: [{"add": {"index": ..., "alias": ...}}, {"remove": {...}}] 形式のリスト
        """
        body = {"actions": actions}
        return self._request(Endpoint("POST", ("_aliases",), _opts(options), body), timeout)

    def update_alias(self, index: str, alias: str, body: Optional[Mapping[str, Any]] = None, options: Options = None, timeout: Optional[float] = None) -> Any:
        return self._request(Endpoint("PUT", (index, "_aliases", alias), _opts(options), body), timeout)

    def get_aliases(self, index: str, options: Options = None, timeout: Optional[float] = None) -> Any:
        """インデックスに設定されたエイリアスを取得します。インデックスが存在しない場合は空の辞書を返します。"""
        try:
            return self._request(Endpoint("GET", ("_alias", index), _opts(options)), timeout)
        except NotFoundError:
            return {}

    def exists_alias(self, name: str, options: Options = None, timeout: Optional[float] = None) -> bool:
        return self._exists(Endpoint("HEAD", ("_alias", name), _opts(options)), timeout)

    # --- cat ---

    def cat_indices(self, pattern: Optional[str] = None, options: Options = None, timeout: Optional[float] = None) -> Any:
        """
        インデックスの一覧を取得します。既定では format=json を付けてJSONで受け取ります。
        """
        segments = ("_cat", "indices", pattern) if pattern else ("_cat", "indices")
        return self._request(Endpoint("GET", segments, _cat_opts(options)), timeout)

    def cat_health(self, options: Options = None, timeout: Optional[float] = None) -> Any:
        return self._request(Endpoint("GET", ("_cat", "health"), _cat_opts(options)), timeout)

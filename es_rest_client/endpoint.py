from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import quote, urlencode

JSON_CONTENT_TYPE = "application/json"
NDJSON_CONTENT_TYPE = "application/x-ndjson"


def _stringify(value: Any) -> str:
    """
    クエリパラメータの値をElasticsearchが解釈できる文字列に変換します。
    bool値は "true"/"false"、リストやタプルはカンマ区切りになります。
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_stringify(v) for v in value)
    return str(value)


def join_indices(indices: Union[str, Sequence[str]]) -> str:
    """インデックス名のリストをカンマ区切りの1セグメントにまとめます。"""
    if isinstance(indices, str):
        return indices
    return ",".join(indices)


def build_path(segments: Sequence[str]) -> str:
    """
    パスセグメントを個別にパーセントエンコードし、"/" で連結します。
    区切り文字の "/" 自体はエンコードしません。
    """
    return "".join("/" + quote(str(segment), safe="") for segment in segments)


def build_query(options: Optional[Mapping[str, Any]]) -> str:
    """
    クエリ文字列を組み立てます。optionsが空の場合は "?" を含まない空文字列を返します。
    値が空文字列のパラメータは "key=" として残します。
    """
    if not options:
        return ""
    return "?" + urlencode([(key, _stringify(value)) for key, value in options.items()])


@dataclass(frozen=True)
class Endpoint:
    """
    1回のAPI呼び出しを表すエンドポイント記述子。
    HTTPメソッド、パスセグメント、クエリパラメータ、ボディを保持します。
    """
    method: str
    segments: Tuple[str, ...] = ()
    options: Dict[str, Any] = field(default_factory=dict)
    body: Any = None
    ndjson: bool = False

    def url(self, base_url: str) -> str:
        return base_url + (build_path(self.segments) or "/") + build_query(self.options)


@dataclass(frozen=True)
class Request:
    """
    トランスポートに渡すワイヤーレベルのリクエスト。
    """
    method: str
    url: str
    headers: Dict[str, str]
    body: Optional[bytes] = None
    timeout: Optional[float] = None


def request_headers(ndjson: bool = False) -> Dict[str, str]:
    content_type = NDJSON_CONTENT_TYPE if ndjson else JSON_CONTENT_TYPE
    return {"Content-Type": content_type, "Accept": JSON_CONTENT_TYPE}

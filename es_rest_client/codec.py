import json
from typing import Any, Iterable, Mapping, Optional


def encode_json(data: Any) -> bytes:
    """
    リクエストボディをUTF-8のJSONにエンコードします。
    非ASCII文字は \\uXXXX にエスケープせず、そのまま出力します。
    """
    return json.dumps(data, ensure_ascii=False).encode("utf-8")


def encode_ndjson(lines: Iterable[Mapping[str, Any]]) -> bytes:
    """
    Bulk API用に、1行1ドキュメントのNDJSONへエンコードします。
    末尾には必ず改行が付きます。
    """
    return b"".join(encode_json(line) + b"\n" for line in lines)


def decode_json(body: Optional[bytes]) -> Any:
    """
    レスポンスボディをデコードします。
    ボディが空の場合、またはリテラルの null の場合は None を返します。
    """
    if not body or not body.strip():
        return None
    return json.loads(body.decode("utf-8"))

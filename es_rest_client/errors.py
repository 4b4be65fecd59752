import json
from typing import Any, Dict, Optional

# エラーメッセージに含める生ボディの最大文字数
MAX_RAW_BODY_LENGTH = 500

# トランスポート障害時に使う番兵ステータス
TRANSPORT_FAILURE_STATUS = 500


def _extract_error_data(parsed: Any) -> Optional[Dict[str, Any]]:
    """
    Elasticsearchのエラーボディから "error" 要素を取り出します。
    古いバージョンの文字列形式のエラーは {"reason": ...} として扱います。
    """
    if not isinstance(parsed, dict):
        return None
    error = parsed.get("error")
    if isinstance(error, dict):
        return error
    if isinstance(error, str):
        return {"reason": error}
    return None


class ElasticsearchError(Exception):
    """
    Elasticsearchが2xx以外のステータスを返したときに発生する例外。
    status_code、生のレスポンスボディ(body)、解析済みのエラー(data)を保持します。
    """

    def __init__(self, status_code: int, body: Optional[str] = None, cause: Optional[BaseException] = None):
        self.status_code = status_code
        self.body = body
        self.cause = cause
        self.data: Optional[Dict[str, Any]] = None

        message = f"An error occurred. Response code: {status_code}"
        if body:
            try:
                parsed = json.loads(body)
            except ValueError:
                message += "\n" + body[:MAX_RAW_BODY_LENGTH]
            else:
                self.data = _extract_error_data(parsed)
                message += "\n" + json.dumps(parsed, indent=4, ensure_ascii=False)
        elif cause is not None:
            message += f"\n{type(cause).__name__}: {cause}"
        super().__init__(message)

    @property
    def error_type(self) -> Optional[str]:
        return self.data.get("type") if self.data else None

    @property
    def reason(self) -> Optional[str]:
        return self.data.get("reason") if self.data else None


class NotFoundError(ElasticsearchError):
    """リソースが存在しない (404) 場合に発生する例外"""
    pass


class TransportError(ElasticsearchError):
    """
    接続拒否、タイムアウト、ストリーム切断などでレスポンスを得られなかった場合の例外。
    ステータスは番兵値の500で、causeに元の例外が入ります。
    """

    def __init__(self, cause: BaseException, request_body: Optional[bytes] = None):
        super().__init__(TRANSPORT_FAILURE_STATUS, body=None, cause=cause)
        self.request_body = request_body


def error_for_status(status_code: int, body: Optional[str]) -> ElasticsearchError:
    if status_code == 404:
        return NotFoundError(status_code, body)
    return ElasticsearchError(status_code, body)

import os
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from .transport import DEFAULT_MAX_BODY_SIZE, DEFAULT_TIMEOUT


def normalize_base_url(url: str) -> str:
    """
    ホストURLを正規化します。
    スキーム（http://またはhttps://）が付与されていない場合はhttp://を付与し、末尾の "/" を取り除きます。
    """
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = f"http://{url}"
    return url.rstrip("/")


def _env_bool(value: str) -> bool:
    return value.strip().lower() not in ("0", "false", "no", "off")


class ClientConfig(BaseModel):
    base_url: str = Field(default="http://localhost:9200", description="ElasticsearchのベースURL")
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="リクエストのタイムアウト（秒）")
    max_body_size: int = Field(default=DEFAULT_MAX_BODY_SIZE, gt=0, description="リクエスト/レスポンスボディの最大バイト数")
    username: Optional[str] = Field(default=None, description="Basic認証のユーザー名")
    password: Optional[str] = Field(default=None, description="Basic認証のパスワード")
    verify_certs: bool = Field(default=True, description="TLS証明書を検証するかどうか")

    @field_validator("base_url")
    @classmethod
    def _normalize_base_url(cls, value: str) -> str:
        return normalize_base_url(value)

    @classmethod
    def from_yaml(cls, file_path: str):
        with open(file_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}
        return cls(**config_data)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None):
        """
        環境変数（および.envファイル）から設定を読み込みます。
        未設定の項目は既定値のままになります。
        :param env_file: 読み込む.envファイルのパス（省略時は自動探索）
        """
        load_dotenv(env_file)
        values = {}
        if os.getenv("ELASTICSEARCH_URL"):
            values["base_url"] = os.getenv("ELASTICSEARCH_URL")
        if os.getenv("ELASTICSEARCH_TIMEOUT"):
            values["timeout"] = float(os.getenv("ELASTICSEARCH_TIMEOUT"))
        if os.getenv("ELASTICSEARCH_MAX_BODY_SIZE"):
            values["max_body_size"] = int(os.getenv("ELASTICSEARCH_MAX_BODY_SIZE"))
        if os.getenv("ELASTICSEARCH_USERNAME"):
            values["username"] = os.getenv("ELASTICSEARCH_USERNAME")
        if os.getenv("ELASTICSEARCH_PASSWORD"):
            values["password"] = os.getenv("ELASTICSEARCH_PASSWORD")
        if os.getenv("ELASTICSEARCH_VERIFY_CERTS"):
            values["verify_certs"] = _env_bool(os.getenv("ELASTICSEARCH_VERIFY_CERTS"))
        return cls(**values)

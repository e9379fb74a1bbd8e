from typing import Annotated, List, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    環境変数（および `.env`）から読み込まれる設定。
    - store_backend: 復習エントリの保存先（sqlite / memory）
    - agenda_past_policy: 期限切れエントリを今日に繰り上げるか、除外するか
    - timezone: API 境界で「今日」を決めるタイムゾーン
    """

    environment: str = Field(
        default="development",
        description="Runtime environment / 実行環境",
    )

    host: str = Field(default="127.0.0.1", description="Bind address for the API server / APIサーバの待受アドレス")
    port: int = Field(default=8000, description="Bind port for the API server / APIサーバの待受ポート")

    # --- 永続化 ---
    store_backend: Literal["sqlite", "memory"] = Field(
        default="sqlite",
        description="Revision entry storage backend / 保存先バックエンド",
    )
    store_db_path: str = Field(
        default=".data/revisions.sqlite3",
        description="Path to the SQLite database / SQLite DBパス",
    )

    # --- ユーザ ---
    user_ids: Annotated[List[int], NoDecode] = Field(
        default_factory=lambda: [1, 2, 3, 4, 5],
        description="Selectable user identifiers / 選択可能なユーザID",
    )

    # --- スケジュール/アジェンダ ---
    agenda_past_policy: Literal["floor", "drop"] = Field(
        default="floor",
        description="How past-due entries are projected (floor to today or drop) / 期限切れの扱い",
    )
    timezone: str = Field(
        default="UTC",
        description="IANA timezone used to compute today / 今日の判定に使うタイムゾーン",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("user_ids", mode="before")
    @classmethod
    def parse_user_ids(cls, v):
        # "1,2,3" 形式の環境変数も受け付ける
        if isinstance(v, str):
            return [int(part.strip()) for part in v.split(",") if part.strip()]
        if isinstance(v, int):
            return [v]
        return v

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        # 設定読込時に IANA 名を検証する
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone: {v!r}") from exc
        return v


settings = Settings()

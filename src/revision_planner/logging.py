"""Structured logging setup.

structlog を JSON 出力で初期化する。stdlib logging 側はメッセージのみを
出力させ、`INFO:root:` のようなプレフィックスが JSON 行に混ざらないようにする。
"""

import logging

import structlog
from structlog import contextvars as structlog_contextvars


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structlog for application-wide logging.

    ISO タイムスタンプ・ログレベル・ContextVar（request_id 等）を付与し、
    1 イベント 1 行の JSON として出力する。
    """
    # force=True で既存ハンドラ（uvicorn 等）を上書きして一貫化
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler()],
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog_contextvars.merge_contextvars,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


logger = structlog.get_logger()

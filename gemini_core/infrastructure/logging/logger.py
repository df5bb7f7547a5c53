"""JSON 行日志。

每条日志写成一行 JSON：固定字段 ts/level/name/msg，
再合并调用方通过 extra={"extra": {...}} 传入的上下文。
ClientLogger 为单个客户端绑定 mode/model 等默认上下文，
调用点只需给出本次操作相关的字段。
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, MutableMapping, Tuple

from gemini_core.config.settings import settings

LOGGER_NAME = "gemini_core"
LOG_FILE = "gemini.log"


class JsonFormatter(logging.Formatter):
    def __init__(self, redact_content: bool = False):
        super().__init__()
        self._redact_content = redact_content

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if self._redact_content:
            msg = (msg or "")[:64]
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ClientLogger(logging.LoggerAdapter):
    """把绑定的上下文合并进每条日志的 extra 字段，调用点字段优先。"""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        call_extra = (kwargs.get("extra") or {}).get("extra") or {}
        merged = dict(self.extra)
        merged.update(call_extra)
        kwargs["extra"] = {"extra": merged}
        return msg, kwargs

    def bind(self, **fields: Any) -> "ClientLogger":
        context = dict(self.extra)
        context.update(fields)
        return ClientLogger(self.logger, context)


def setup_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = (log_dir / LOG_FILE).resolve()
    # 重复 import 时不再追加同一个文件 handler
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == log_path:
            return logger
    fh = logging.FileHandler(log_path, encoding="utf-8")
    fh.setLevel(logging.INFO)
    fh.setFormatter(JsonFormatter(redact_content=settings.log_redact_content))
    logger.addHandler(fh)
    return logger


def client_logger(**context: Any) -> ClientLogger:
    """返回绑定了默认上下文（如 mode、model）的日志适配器。"""

    return ClientLogger(logger, context)


logger = setup_logger()

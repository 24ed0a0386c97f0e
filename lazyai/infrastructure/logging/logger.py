import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from lazyai.domain.exceptions import ConfigError


logger = logging.getLogger("lazyai")


class JsonFormatter(logging.Formatter):
    def __init__(self, redact_content: bool = False):
        super().__init__()
        self._redact_content = redact_content

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if self._redact_content:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logger(settings, verbose: bool = False) -> logging.Logger:
    """按 Settings 配置 lazyai 日志：JSON 行写入 <log_dir>/lazyai.log。

    重复调用会先移除旧的 handler；verbose 时额外输出到 stderr。
    日志目录无法创建或日志文件无法打开时抛 ConfigError。
    """

    logger.setLevel(settings.log_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    log_dir = Path(settings.log_dir).expanduser()
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_dir / "lazyai.log", encoding="utf-8")
    except OSError as e:
        raise ConfigError(
            code="LOG_SETUP_ERROR",
            message=f"cannot open log file in {log_dir}: {e}; set log_dir in your config file",
        )
    fh.setLevel(settings.log_level)
    fh.setFormatter(JsonFormatter(redact_content=settings.log_redact_content))
    logger.addHandler(fh)

    if verbose:
        sh = logging.StreamHandler(sys.stderr)
        sh.setLevel(logging.DEBUG)
        sh.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(sh)
        logger.setLevel(logging.DEBUG)

    logger.propagate = False
    return logger

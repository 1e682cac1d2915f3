from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

_STANDARD_ATTRS = frozenset(
	{
		"name",
		"msg",
		"args",
		"levelname",
		"levelno",
		"pathname",
		"filename",
		"module",
		"exc_info",
		"exc_text",
		"stack_info",
		"lineno",
		"funcName",
		"created",
		"msecs",
		"relativeCreated",
		"thread",
		"threadName",
		"processName",
		"process",
		"taskName",
		"message",
	}
)


class JsonFormatter(logging.Formatter):
	def format(self, record: logging.LogRecord) -> str:
		extras = {key: value for key, value in record.__dict__.items() if key not in _STANDARD_ATTRS}
		payload = {
			"timestamp": datetime.now(timezone.utc).isoformat(),
			"level": record.levelname,
			"logger": record.name,
			"message": record.getMessage(),
		}
		if extras:
			payload["context"] = extras
		if record.exc_info:
			payload["exception"] = self.formatException(record.exc_info)
		return json.dumps(payload, ensure_ascii=True, default=str)


def configure_logging(level: str = "INFO") -> None:
	root = logging.getLogger()
	root.setLevel(level.upper())

	if root.handlers:
		return

	handler = logging.StreamHandler()
	handler.setFormatter(JsonFormatter())
	root.addHandler(handler)

"""
Shared logging utilities for the Name Screening Service

Provides logging setup from configuration, per-request log correlation
and sanitization of user-provided text before it reaches a log line.
"""

import logging
import re
from pathlib import Path
from typing import Any, MutableMapping, Optional, Tuple

from config_manager import ConfigManager, get_config


def setup_logging(config: Optional[ConfigManager] = None) -> None:
    """Configure the root logger from the ``logging`` config section

    Args:
        config: Configuration manager instance
    """
    config = config or get_config()
    log_cfg = config.logging

    root = logging.getLogger()
    root.setLevel(log_cfg.level.upper())
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(log_cfg.format)

    if log_cfg.console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    if log_cfg.file:
        log_path = Path(log_cfg.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)


def sanitize_for_logging(text: Any) -> str:
    """Sanitize user input for safe logging, preventing log injection

    Removes newlines, carriage returns, and other control characters
    that could be used to inject fake log entries.

    Args:
        text: User input text

    Returns:
        Sanitized text safe for logging
    """
    if text is None or text == '':
        return ''
    # Remove newlines, carriage returns, and other control characters
    sanitized = re.sub(r'[\r\n\x00-\x1f\x7f-\x9f]', ' ', str(text))
    sanitized = re.sub(r'\s+', ' ', sanitized).strip()
    return sanitized[:500] if len(sanitized) > 500 else sanitized


class RequestLoggerAdapter(logging.LoggerAdapter):
    """Prefixes every message with the request id it belongs to"""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        request_id = sanitize_for_logging(self.extra.get('request_id', '')) or '-'
        return f"request_id={request_id} {msg}", kwargs


def get_request_logger(name: str, request_id: Any) -> RequestLoggerAdapter:
    """Get a logger bound to a single request"""
    return RequestLoggerAdapter(logging.getLogger(name), {'request_id': request_id})

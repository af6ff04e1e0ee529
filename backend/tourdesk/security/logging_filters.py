"""Logging filters that scrub sensitive content."""

from __future__ import annotations

import logging
import re

_SENSITIVE_PATTERN = re.compile(
    r"(Authorization: Bearer\s+[\w\.-]+"
    r"|access_token\"\s*:\s*\"[^\"]+\""
    r"|password(?:_current|_confirm)?\"\s*:\s*\"[^\"]+\""
    r"|jwt=[\w\.-]+"
    r"|resetPassword/[0-9a-fA-F]+)",
    re.IGNORECASE,
)


class SensitiveFilter(logging.Filter):
    """Replace sensitive tokens in log messages with a redaction marker."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = _SENSITIVE_PATTERN.sub("**REDACTED**", record.msg)
        if record.args:
            if isinstance(record.args, tuple):
                record.args = tuple(
                    _SENSITIVE_PATTERN.sub("**REDACTED**", arg)
                    if isinstance(arg, str)
                    else arg
                    for arg in record.args
                )
        return True


__all__ = ["SensitiveFilter"]

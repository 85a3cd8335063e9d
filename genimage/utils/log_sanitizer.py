"""Masking of credential-like tokens in log output."""

import logging
import re
from typing import Optional

# Whitespace-delimited runs of 20+ characters drawn from base64/url-safe sets
_TOKEN_PATTERN = re.compile(r"(^|\s)([A-Za-z0-9_+/=\-]{20,})(?=\s|$)")


def mask_secrets(text: str) -> str:
    """Mask long opaque tokens, keeping the first and last four characters.

    Example:
        >>> mask_secrets("key AIzaSyA1234567890abcdefghij done")
        'key AIza****ghij done'
    """
    return _TOKEN_PATTERN.sub(
        lambda m: f"{m.group(1)}{m.group(2)[:4]}****{m.group(2)[-4:]}",
        text,
    )


class SecretMaskingFilter(logging.Filter):
    """Logging filter that applies ``mask_secrets`` to every record.

    The record's message is rendered once, masked, and stored back so
    formatters never see the original arguments. Tracebacks are rendered
    into ``exc_text`` and masked too; formatters reuse ``exc_text`` instead
    of formatting ``exc_info`` again.
    """

    _formatter = logging.Formatter()

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_secrets(message)
        if masked != message or record.args:
            record.msg = masked
            record.args = None

        if record.exc_info and not record.exc_text:
            record.exc_text = self._formatter.formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = mask_secrets(record.exc_text)
        if record.stack_info:
            record.stack_info = mask_secrets(record.stack_info)
        return True


def install_secret_masking(logger: Optional[logging.Logger] = None) -> SecretMaskingFilter:
    """Attach a SecretMaskingFilter to every handler of a logger.

    Args:
        logger: Logger whose handlers get the filter, the root logger by default

    Returns:
        The installed filter
    """
    logger = logger or logging.getLogger()
    secret_filter = SecretMaskingFilter()
    for handler in logger.handlers:
        handler.addFilter(secret_filter)
    return secret_filter

import logging
import re
from typing import Iterable, Union


_DIGEST_HEX = re.compile(r"0x([0-9a-fA-F]{6})[0-9a-fA-F]{52}([0-9a-fA-F]{6})\b")


class DigestShorteningFilter(logging.Filter):
    """Abbreviate 32-byte hex digests in log records unless DEBUG is on."""

    def __init__(self, level: int = logging.INFO):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        if self.level <= logging.DEBUG:
            return True
        msg = record.getMessage()
        short = _DIGEST_HEX.sub(r"0x\1…\2", msg)
        if short != msg:
            record.msg = short
            record.args = None
        return True


def setup_logging(
    level: Union[int, str] = logging.INFO,
    loggers: Iterable[str] = ("billboard_api", "billboard_cli", "uvicorn"),
) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level)
    f = DigestShorteningFilter(level)
    for handler in logging.getLogger().handlers:
        for old in [x for x in handler.filters if isinstance(x, DigestShorteningFilter)]:
            handler.removeFilter(old)
        handler.addFilter(f)
    for name in loggers:
        logging.getLogger(name).setLevel(level)

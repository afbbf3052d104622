from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    resolved = logging.getLevelName((level or "INFO").upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    root = logging.getLogger()
    root.setLevel(resolved)
    for handler in root.handlers:
        if getattr(handler, "_market_linker", False):
            handler.setLevel(resolved)
            return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler.setLevel(resolved)
    handler._market_linker = True  # type: ignore[attr-defined]
    root.addHandler(handler)

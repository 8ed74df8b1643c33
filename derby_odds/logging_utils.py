from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str = "derby_odds", level: int = logging.INFO) -> logging.Logger:
	logger = logging.getLogger(name)
	if logger.handlers:
		return logger
	logger.setLevel(level)
	handler: logging.Handler
	if os.getenv("NO_RICH") != "1":
		handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)
	else:
		handler = logging.StreamHandler()
	handler.setFormatter(logging.Formatter(LOG_FORMAT))
	logger.addHandler(handler)
	return logger

from __future__ import annotations
import logging
import logging.config
from pathlib import Path
from typing import Optional
import yaml

DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(config_path: str = "configs/logging.yaml", level: Optional[int] = None) -> None:
    """
    Configure logging from a YAML dictConfig file.

    Falls back to ``basicConfig`` when the file does not exist. ``level``,
    when given, is applied to the ``simple_networking`` logger afterwards.
    """
    path = Path(config_path)
    if not path.exists():
        logging.basicConfig(level=logging.INFO, format=DEFAULT_FORMAT)
    else:
        with path.open("r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
        cfg.setdefault("version", 1)
        logging.config.dictConfig(cfg)

    if level is not None:
        logging.getLogger("simple_networking").setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)

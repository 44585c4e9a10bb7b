"""Logging configuration for the depgraph driver."""
from __future__ import annotations

import logging
import os

logger = logging.getLogger("depgraph")

_handler = logging.StreamHandler()
_formatter = logging.Formatter("%(levelname)s %(message)s")
_handler.setFormatter(_formatter)
logger.addHandler(_handler)
logger.setLevel(os.environ.get("DEPGRAPH_LOG", "INFO").upper())

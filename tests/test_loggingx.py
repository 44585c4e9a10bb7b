import logging
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

from depgraph.loggingx import logger


def test_logger_formats_level_and_message():
    (handler,) = logger.handlers
    record = logging.LogRecord("depgraph", logging.WARNING, __file__, 1, "Analyzer pid=%s ignored SIGTERM", (7,), None)

    assert logger.name == "depgraph"
    assert handler.format(record) == "WARNING Analyzer pid=7 ignored SIGTERM"

"""
Tests for libmath.core.logger: hierarchy, DEBUG2 level, one-time setup.
"""
import io
import logging

import pytest

from libmath.core import logger as lm_logger


@pytest.fixture
def clean_root():
    root = logging.getLogger(lm_logger.ROOT_NAME)
    handlers = root.handlers[:]
    level = root.level
    root.handlers.clear()
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLogger:
    def test_hierarchy(self):
        log = lm_logger.get_logger("libmath.solver.las.bicgstab")
        assert log.name == "libmath.solver.las.bicgstab"
        assert log.parent.name.startswith("libmath")

    def test_default_name(self):
        assert lm_logger.get_logger().name == lm_logger.ROOT_NAME

    def test_debug2_level(self, caplog):
        caplog.set_level(lm_logger.DEBUG2, logger=lm_logger.ROOT_NAME)
        lm_logger.get_logger("libmath.test").debug2("inner %d", 3)
        record = caplog.records[-1]
        assert record.levelno == lm_logger.DEBUG2
        assert record.levelname == "DEBUG2"
        assert record.getMessage() == "inner 3"

    def test_debug2_filtered_at_debug(self, caplog):
        caplog.set_level(logging.DEBUG, logger=lm_logger.ROOT_NAME)
        lm_logger.get_logger("libmath.test").debug2("hidden")
        assert not [r for r in caplog.records if r.getMessage() == "hidden"]

    def test_setup_once(self, clean_root):
        stream = io.StringIO()
        lm_logger.setup(logging.INFO, stream=stream)
        lm_logger.setup(logging.WARNING, stream=stream)
        assert len(clean_root.handlers) == 1
        assert clean_root.level == logging.WARNING

        lm_logger.get_logger("libmath.core.matrix").warning("careful")
        assert stream.getvalue() == "WARNING: libmath.core.matrix: careful\n"

    def test_set_level(self, clean_root):
        lm_logger.set_level("DEBUG")
        assert clean_root.level == logging.DEBUG


class TestStopwatch:
    def test_monotonic(self):
        watch = lm_logger.Stopwatch()
        first = watch.ms
        assert first >= 0.0
        assert watch.ms >= first

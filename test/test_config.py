import logging

import pyarrow.compute as pc
import pytest

from viewground import config, errors
from viewground.view import MultiFrameView


def test_get_logger_names():
    assert config.get_logger().name == "viewground"
    assert config.get_logger("viewground.view.frame").name == "viewground.view.frame"
    assert config.get_logger("plugin").name == "viewground.plugin"


def test_set_log_level():
    logger = config.get_logger()
    previous = logger.level
    try:
        config.set_log_level(logging.DEBUG)
        assert logger.level == logging.DEBUG
        handlers = list(logger.handlers)
        config.set_log_level(logging.INFO)
        assert logger.handlers == handlers
        assert logger.level == logging.INFO
    finally:
        logger.setLevel(previous)


def test_filter_is_logged(emp_store, caplog):
    view = MultiFrameView.from_store(emp_store)
    with caplog.at_level(logging.DEBUG, logger="viewground"):
        view.filter("DeptId", lambda v: pc.equal(v, 1))
    assert "Filter on DeptId kept 3 of 7 rows" in caplog.text


@pytest.mark.parametrize(
    "error,message",
    [
        (errors.FieldNotFound("EmpName"), "field not found: EmpName"),
        (errors.FieldCollision(["a", 1]), "field collision: a, 1"),
        (errors.DimensionMismatch("3 != 4"), "dimension mismatch: 3 != 4"),
        (errors.RowIndexError(7, 3), "index 7 out of range for length 3"),
    ],
)
def test_error_messages(error, message):
    assert isinstance(error, errors.ViewgroundError)
    assert str(error) == message

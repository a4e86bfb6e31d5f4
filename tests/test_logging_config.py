import logging

import pytest

from perspective.utils import setup_logging


@pytest.fixture
def package_logger():
    logger = logging.getLogger("perspective")
    saved_level, saved_handlers = logger.level, list(logger.handlers)
    yield logger
    for handler in logger.handlers:
        if handler not in saved_handlers:
            handler.close()
    logger.handlers = saved_handlers
    logger.setLevel(saved_level)


def test_setup_logging_configures_package_logger_only(package_logger):
    root = logging.getLogger()
    root_handlers, root_level = list(root.handlers), root.level

    logger = setup_logging(level="debug")

    assert logger is package_logger
    assert logger.level == logging.DEBUG
    assert root.handlers == root_handlers
    assert root.level == root_level


def test_setup_logging_does_not_stack_handlers(package_logger):
    before = len(package_logger.handlers)
    setup_logging()
    setup_logging(level="warning")
    assert len(package_logger.handlers) == before + 1
    assert package_logger.level == logging.WARNING


def test_setup_logging_writes_to_log_file(tmp_path, package_logger):
    log_file = tmp_path / "logs" / "parallel.log"
    setup_logging(level="info", log_file=str(log_file))

    logging.getLogger("perspective.parallel.partition").error("Item %s failed", 7)
    for handler in package_logger.handlers:
        handler.flush()

    assert "[ERROR] perspective.parallel.partition - Item 7 failed" in log_file.read_text()


def test_setup_logging_accepts_unknown_level(package_logger):
    assert setup_logging(level="not-a-level").level == logging.INFO

import logging

from consumption.logger import LOGGER_NAME, configure_logging


def test_configure_logging_is_idempotent(tmp_path):
    log_file = tmp_path / "logs" / "consumo.log"
    logger = configure_logging("DEBUG", str(log_file))
    handlers = list(logger.handlers)
    again = configure_logging("WARNING", str(log_file))
    assert again is logging.getLogger(LOGGER_NAME)
    assert again.handlers == handlers
    assert again.level == logging.WARNING

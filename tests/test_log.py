"""Tests for the console/logging helpers."""

import logging

from utils import log


def test_setup_writes_to_log_file(tmp_path):
    log_file = tmp_path / "logs" / "gateway.log"
    logger = log.setup_verbose_logging("test-gateway-file", log_file=str(log_file))
    try:
        logger.debug("upstream call")
        for handler in logger.handlers:
            handler.flush()
        assert "upstream call" in log_file.read_text()
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


def test_setup_is_idempotent():
    logger = log.setup_verbose_logging("test-gateway-console", level=logging.INFO)
    try:
        again = log.setup_verbose_logging("test-gateway-console", level=logging.INFO)
        assert again is logger
        assert len(logger.handlers) == 1
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)


def test_err_goes_to_stderr(capsys):
    log.err('Missing "TINK_CLIENT_ID"')
    captured = capsys.readouterr()
    assert 'Missing "TINK_CLIENT_ID"' in captured.err
    assert captured.out == ""

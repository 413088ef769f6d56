"""
Unit tests for utils/logging_config.py functions.
"""
import os
import sys
import pytest
import logging
from unittest.mock import patch

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from utils.logging_config import setup_logging, get_logger
from utils.settings import Settings


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestSetupLogging:
    """Test cases for setup_logging function."""

    def test_setup_logging_with_log_level(self):
        logger = setup_logging(log_level='DEBUG')

        assert isinstance(logger, logging.Logger)
        assert logger.level == logging.DEBUG

    def test_level_defaults_to_settings(self):
        with patch('utils.settings.get_settings', return_value=Settings(log_level='WARNING')):
            logger = setup_logging()

        assert logger.level == logging.WARNING

    def test_invalid_level_falls_back_to_info(self):
        assert setup_logging(log_level='LOUD').level == logging.INFO

    def test_single_console_handler(self):
        setup_logging(log_level='INFO')
        logger = setup_logging(log_level='INFO')

        stream_handlers = [h for h in logger.handlers if type(h) is logging.StreamHandler]
        assert len(stream_handlers) == 1

    def test_file_handler_creates_directory(self, temp_dir):
        log_file = os.path.join(temp_dir, 'logs', 'api.log')

        logger = setup_logging(log_file=log_file, log_level='INFO')
        logging.getLogger('api.test').info('hello file')
        for handler in logger.handlers:
            handler.flush()

        assert os.path.exists(log_file)
        with open(log_file, encoding='utf-8') as f:
            assert 'hello file' in f.read()

    def test_noisy_loggers_silenced(self):
        setup_logging(log_level='DEBUG')

        assert logging.getLogger('urllib3').level == logging.WARNING


class TestGetLogger:
    def test_get_logger(self):
        assert get_logger('api.scraper') is logging.getLogger('api.scraper')

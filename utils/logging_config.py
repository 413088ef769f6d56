import logging
import os


def setup_logging(log_file=None, log_level=None):
    """
    Setup logging configuration for the API server and debug scripts

    Args:
        log_file: Log file path (optional)
        log_level: Log level name, e.g. 'DEBUG' (optional, defaults to settings)
    """
    if log_level is None:
        from utils.settings import get_settings
        log_level = get_settings().log_level

    # Convert string to logging level
    numeric_level = getattr(logging, str(log_level).upper(), logging.INFO)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Silence noisy third-party loggers
    for noisy in ('urllib3', 'httpx', 'httpcore'):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return root_logger


def get_logger(name):
    """
    Get a logger with the specified name

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)

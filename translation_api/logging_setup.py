"""Logging configuration."""

import logging
import sys

LOG_FORMAT = '%(asctime)s | %(levelname)-7s | %(name)s | %(message)s'


def configure_logging(app):
    """Attach a single stream handler to the package logger."""
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)

    package_logger = logging.getLogger('translation_api')
    package_logger.setLevel(level)

    if not any(getattr(h, '_translation_api', False) for h in package_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._translation_api = True
        package_logger.addHandler(handler)

    return package_logger

#!/usr/bin/env python3
"""
Logging Configuration for the PitchBook reservation engine
Provides console and rotating file logging for the roster/waitlist engine
"""

import os
import logging
import logging.handlers
from datetime import datetime
from typing import Optional

from infrastructure.constants import ENGINE_LOGGERS
from infrastructure.settings import AppSettings, get_settings


def setup_logging(settings: Optional[AppSettings] = None) -> str:
    """
    Set up logging with a console handler and rotating file handlers.

    Args:
        settings: Settings snapshot; defaults to :func:`get_settings`.

    Returns:
        The directory the log files are written to.
    """
    settings = settings or get_settings()
    production_mode = settings.production_mode
    log_dir = settings.log_directory

    os.makedirs(log_dir, exist_ok=True)

    main_log_file = os.path.join(log_dir, 'pitchbook.log')
    error_log_file = os.path.join(log_dir, 'pitchbook_errors.log')
    reservations_log_file = os.path.join(log_dir, 'reservations.log')

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING if production_mode else logging.DEBUG)
    root_logger.handlers = []

    # Detailed formatter with file, line, and function information
    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d in %(funcName)s()] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING if production_mode else logging.INFO)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    main_file_handler = logging.handlers.RotatingFileHandler(
        main_log_file,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    main_file_handler.setLevel(logging.WARNING if production_mode else logging.INFO)
    main_file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(main_file_handler)

    error_file_handler = logging.handlers.RotatingFileHandler(
        error_log_file,
        maxBytes=5*1024*1024,  # 5MB
        backupCount=5,
        encoding='utf-8'
    )
    error_file_handler.setLevel(logging.ERROR)
    error_file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(error_file_handler)

    # Dedicated handler for roster, waitlist and orchestration activity
    reservations_handler = logging.handlers.RotatingFileHandler(
        reservations_log_file,
        maxBytes=20*1024*1024,  # 20MB
        backupCount=5,
        encoding='utf-8'
    )
    reservations_handler.setLevel(logging.INFO if production_mode else logging.DEBUG)
    reservations_handler.setFormatter(detailed_formatter)

    for name in ENGINE_LOGGERS:
        engine_logger = logging.getLogger(name)
        engine_logger.handlers = [reservations_handler]
        engine_logger.setLevel(logging.INFO if production_mode else logging.DEBUG)

    # Reduce noise from external libraries
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)

    root_logger.info("="*80)
    root_logger.info(f"PitchBook Logging Initialized - {datetime.now()}")
    root_logger.info(f"Production Mode: {'ON' if production_mode else 'OFF'}")
    root_logger.info(f"Main log: {main_log_file}")
    root_logger.info(f"Error log: {error_log_file}")
    root_logger.info(f"Reservations log: {reservations_log_file}")
    root_logger.info("="*80)
    return log_dir


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the given name

    Args:
        name: Logger name (usually the component class name)

    Returns:
        logging.Logger instance
    """
    return logging.getLogger(name)

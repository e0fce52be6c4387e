#!/usr/bin/env python3
"""
Logging Configuration for the monitoring bot
Console output plus rotating log files, with a dedicated monitoring log
"""

import logging
import logging.handlers
import os
from datetime import datetime
from typing import Optional

# Read production mode setting
PRODUCTION_MODE = os.getenv('PRODUCTION_MODE', 'true').lower() == 'true'

LOG_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'logs')

# Component loggers routed to the dedicated monitoring log
MONITORING_LOGGERS = (
    'MonitoringService',
    'BookingCoordinator',
    'JobRegistry',
    'MonitoringRepository',
)


def setup_logging(production_mode: Optional[bool] = None, log_dir: str = LOG_DIR) -> None:
    """
    Set up logging with console, main, error and monitoring handlers.

    Args:
        production_mode: Overrides the PRODUCTION_MODE environment flag
        log_dir: Directory that receives the rotating log files
    """
    production = PRODUCTION_MODE if production_mode is None else production_mode
    os.makedirs(log_dir, exist_ok=True)

    main_log_file = os.path.join(log_dir, 'bot.log')
    error_log_file = os.path.join(log_dir, 'bot_errors.log')
    monitoring_log_file = os.path.join(log_dir, 'monitoring.log')

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO if production else logging.DEBUG)
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
    console_handler.setLevel(logging.WARNING if production else logging.INFO)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    main_file_handler = logging.handlers.RotatingFileHandler(
        main_log_file,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    main_file_handler.setLevel(logging.INFO)
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

    monitoring_handler = logging.handlers.RotatingFileHandler(
        monitoring_log_file,
        maxBytes=20*1024*1024,  # 20MB
        backupCount=5,
        encoding='utf-8'
    )
    monitoring_handler.setLevel(logging.INFO if production else logging.DEBUG)
    monitoring_handler.setFormatter(detailed_formatter)

    for name in MONITORING_LOGGERS:
        component_logger = logging.getLogger(name)
        component_logger.addHandler(monitoring_handler)
        component_logger.setLevel(logging.INFO if production else logging.DEBUG)

    # Reduce noise from external libraries
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('telegram').setLevel(logging.INFO)

    root_logger.info("=" * 80)
    root_logger.info(f"Monitoring bot logging initialized - {datetime.now()}")
    root_logger.info(f"Production Mode: {'ON' if production else 'OFF'}")
    root_logger.info(f"Main log: {main_log_file}")
    root_logger.info(f"Error log: {error_log_file}")
    root_logger.info(f"Monitoring log: {monitoring_log_file}")
    root_logger.info("=" * 80)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name"""
    return logging.getLogger(name)

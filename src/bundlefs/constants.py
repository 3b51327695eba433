"""
Constants and configuration values for bundlefs.

This module contains the names, permission modes, environment variable names
and other fixed values used throughout the package.
"""

# Source path conventions
CURRENT_DIR = "."
SOURCE_PATH_SEPARATOR = "/"

# Temporary destination naming
DEFAULT_NAME_PREFIX = "bundlefs"
NAME_PREFIX_SEPARATOR = "-"

# Permission modes for extracted content (subject to the process umask)
DIR_PERMISSIONS = 0o755
FILE_PERMISSIONS = 0o644

# Termination listener exit statuses
SIGNAL_EXIT_BASE = 128
FALLBACK_SIGNAL_EXIT_STATUS = 1
LISTENER_SIGNAL_NAMES = ("SIGINT", "SIGTERM", "SIGHUP")
LISTENER_THREAD_NAME = "bundlefs-listener"

# Logging configuration
LOGGER_NAME = "bundlefs"
LOG_FILE_NAME = "bundlefs.log"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5

# Configuration file
APP_NAME = "bundlefs"
CONFIG_FILE_NAME = "bundlefs.yaml"

# Environment variable names
LOG_LEVEL_ENV_VAR = "BUNDLEFS_LOG_LEVEL"
LOG_DIR_ENV_VAR = "BUNDLEFS_LOG_DIR"
NAME_PREFIX_ENV_VAR = "BUNDLEFS_NAME_PREFIX"
BASE_DIR_ENV_VAR = "BUNDLEFS_BASE_DIR"

"""
Constants Module - Centralized configuration values
===================================================

PURPOSE: Single source of truth for the defaults used across the codebase
PATTERN: Plain module-level constants grouped by category
SCOPE: Application-wide configuration values

Values here are defaults only; ``infrastructure.settings`` lets the
environment override the ones that matter at runtime.
"""

from datetime import datetime

# Timezone of the reservation service
DEFAULT_TIMEZONE = "Europe/Warsaw"

# Monitoring scheduler timing (seconds)
MAX_INITIAL_DELAY_SECONDS = 10 * 60      # initial delay drawn from [0, 10min)
PERIOD_BASE_SECONDS = 10 * 60            # period drawn from [10min, 15min)
PERIOD_MAX_DELTA_SECONDS = 5 * 60
DISCOVERY_INTERVAL_SECONDS = 60          # new/expired monitorings sweep
WORKER_POOL_SIZE = 10                    # concurrent monitoring ticks

# Monitoring limits
MAX_ACTIVE_MONITORINGS = 10              # per account
MAX_TERMS_IN_MESSAGE = 5                 # closest terms listed in a notification

# Search defaults
DEFAULT_LANGUAGE_ID = 10
DEFAULT_OFFSET_HOURS = 0

# Manual booking commands encode a term start as minutes since this instant
TERM_EPOCH = datetime(2018, 1, 1)
BOOK_COMMAND_PREFIX = "/book"

# Storage defaults
MONITORINGS_FILE = "monitorings.json"      # relative to DATA_DIRECTORY
USERS_FILE = "users.json"
DATA_DIRECTORY = "data"

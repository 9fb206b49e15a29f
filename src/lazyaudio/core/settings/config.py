"""
Centralized application configuration.

Edit the variables below to configure development settings.
"""

import logging

# =============================================================================
# DEVELOPMENT SETTINGS - Edit these for local development
# =============================================================================
LOG_LEVEL = "DEBUG"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_TO_CONSOLE = True  # Set to True to output logs to terminal
# =============================================================================

# =============================================================================
# MODE SETTINGS
# =============================================================================
HOOK_TIMEOUT_SECONDS = 5.0  # Upper bound for a single lifecycle hook
SESSION_TICK_INTERVAL_MS = 1000  # Duration refresh for open sessions
# =============================================================================


def get_log_level() -> int:
    """Get the logging level as an integer."""
    return getattr(logging, LOG_LEVEL.upper(), logging.INFO)

"""Environment-variable-based configuration."""

import os


def get_buffer_size() -> int:
    """Return the stream read chunk size in bytes from FB_BUFFER_SIZE."""
    return int(os.environ.get("FB_BUFFER_SIZE", "65536"))


def is_stream_logging_enabled() -> bool:
    """Return True if FB_LOG_RESULT_STREAM is set to TRUE."""
    return os.environ.get("FB_LOG_RESULT_STREAM", "").upper() == "TRUE"


def get_log_level() -> str:
    """Return the logging level from FB_LOG_LEVEL."""
    return os.environ.get("FB_LOG_LEVEL", "WARNING")

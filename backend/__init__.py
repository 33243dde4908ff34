"""
Backend package for the chat application's HTTP API.

This package contains the core backend service components including:
- Flask application, health endpoint and API middleware
- Service lifecycle orchestration (startup, readiness, graceful shutdown)
- Configuration, storage and cache service handles
"""

import logging
import os

# Configure logging with clickable paths before anything else imports logging
logging.basicConfig(
    level=logging.INFO, format="%(levelname)s: %(pathname)s:%(lineno)d %(message)s"
)


class ClickablePathFilter(logging.Filter):
    """Filter to make file paths clickable in the terminal."""

    def filter(self, record: logging.LogRecord) -> bool:
        if hasattr(record, "pathname"):
            # Convert absolute path to relative path from workspace root
            workspace_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
            try:
                record.pathname = os.path.relpath(record.pathname, workspace_root)
            except ValueError:
                # Paths on another drive cannot be made relative
                pass
        return True


# Apply filter to the root logger's handlers; logger-level filters do not see
# records propagated from child loggers
for _handler in logging.getLogger().handlers:
    _handler.addFilter(ClickablePathFilter())

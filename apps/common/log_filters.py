"""
Logging filters shared by the settings modules.
"""

import logging

from apps.common.middleware import current_request_id


class RequestIDFilter(logging.Filter):
    """Expose the current request ID to formatters as ``%(request_id)s``"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = current_request_id.get()
        return True

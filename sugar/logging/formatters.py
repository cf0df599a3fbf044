"""Logging formatters for operator-facing output."""

import logging


class SugarFormatter(logging.Formatter):
    """Logging formatter that prefixes messages with the tool name and severity."""

    LEVEL_MARKERS = {
        logging.WARNING: "!WARN! ",
        logging.ERROR: "ERR ",
        logging.CRITICAL: "ERR ",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with a ``sugar:`` prefix and level marker.

        Parameters
        ----------
        record : logging.LogRecord
            Log record to format

        Returns
        -------
        str
            Formatted log message
        """
        msg = super().format(record)
        marker = self.LEVEL_MARKERS.get(record.levelno, "")
        return f"sugar: {marker}{msg}"

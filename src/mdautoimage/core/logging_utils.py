"""Terminal logging for autoimage runs.

Long trajectories produce one INFO summary at setup and then, ideally,
silence. Skipped topologies and degenerate frames are logged as warnings and
highlighted so they are not lost in that output; the per-candidate image
search is only shown at DEBUG level.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

LEVEL_COLORS = {
    logging.DEBUG: "\033[2m",  # Dim
    logging.WARNING: "\033[93m",  # Yellow
    logging.ERROR: "\033[91m",  # Red
    logging.CRITICAL: "\033[91m",  # Red
}
RESET = "\033[0m"


class ColoredFormatter(logging.Formatter):
    """Formatter that colors DEBUG, WARNING and ERROR records.

    Parameters
    ----------
    fmt : str, optional
        Format string passed to :class:`logging.Formatter`.
    stream : TextIO, optional
        Stream the records end up on. Colors are only added when it is an
        interactive terminal. Default: ``sys.stderr``.
    """

    def __init__(self, fmt: Optional[str] = None, stream: Optional[TextIO] = None) -> None:
        super().__init__(fmt)
        self.stream = stream if stream is not None else sys.stderr

    @property
    def use_color(self) -> bool:
        isatty = getattr(self.stream, "isatty", None)
        return bool(isatty and isatty())

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if color and self.use_color:
            return f"{color}{message}{RESET}"
        return message


def setup_logging(
    quiet: bool = False,
    debug: bool = False,
    stream: Optional[TextIO] = None,
) -> logging.Handler:
    """Route all log records to one colored stream handler.

    Parameters
    ----------
    quiet : bool, optional
        Only show warnings and errors (skipped topologies and frames).
    debug : bool, optional
        Also show the per-frame anchor shifts and candidate image searches,
        prefixed with the module name. Takes precedence over ``quiet``.
    stream : TextIO, optional
        Output stream. Default: ``sys.stderr``.

    Returns
    -------
    logging.Handler
        The installed handler; it replaces any handlers on the root logger.

    Examples
    --------
    >>> from mdautoimage.core.logging_utils import setup_logging
    >>> setup_logging()  # setup summary and warnings
    >>> setup_logging(debug=True)  # every image search
    """
    stream = stream if stream is not None else sys.stderr
    if debug:
        level, fmt = logging.DEBUG, "%(name)s: %(message)s"
    elif quiet:
        level, fmt = logging.WARNING, "%(levelname)s: %(message)s"
    else:
        level, fmt = logging.INFO, "%(message)s"

    handler = logging.StreamHandler(stream)
    handler.setFormatter(ColoredFormatter(fmt, stream))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    suppress_mdanalysis_info()
    return handler


def suppress_mdanalysis_info() -> None:
    """Keep MDAnalysis topology-parsing chatter out of the autoimage log.

    Universe creation logs attribute guessing and segid assignment at INFO.
    Only MDAnalysis warnings are kept.
    """
    logging.getLogger("MDAnalysis").setLevel(logging.WARNING)

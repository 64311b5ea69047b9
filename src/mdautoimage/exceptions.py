"""Exception types raised by mdautoimage."""


class AutoImageError(Exception):
    """Base class for all autoimage failures."""

    pass


class AutoImageSetupError(AutoImageError):
    """Raised when a topology cannot be set up for imaging.

    This is fatal for the topology: no frame of it can be imaged.
    """

    pass


class DegenerateBoxError(AutoImageError):
    """Raised when a frame's box cannot be used for imaging (zero lengths)."""

    pass

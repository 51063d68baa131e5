"""Cuehand — natural-language instructions resolved into actions on a live web page."""

__version__ = "0.3.0"

from cuehand.config import CuehandConfig, CuehandConfigError, CuehandError  # noqa: E402
from cuehand.engine.session import Cuehand, ObserveResult  # noqa: E402

__all__ = [
    "Cuehand",
    "CuehandConfig",
    "CuehandConfigError",
    "CuehandError",
    "ObserveResult",
    "__version__",
]

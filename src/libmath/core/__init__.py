"""libmath core: matrix type, decompositions, tolerant comparison, settings."""

# Import modules themselves (allows: from libmath.core import matrix)
from . import boolean
from . import exceptions
from . import kernels
from . import linalg
from . import logger
from . import matrix
from . import settings

from .boolean import is_equal, round_to, sign
from .exceptions import *  # noqa: F401,F403
from .matrix import Dimension, MatRep, Matrix, concatenate
from .settings import (
    DEFAULT_SETTINGS,
    Settings,
    ToleranceMode,
    get_settings,
    get_target_tolerance,
    reset_settings,
    set_num_threads,
    set_settings,
    set_target_tolerance,
)

__all__ = [
    "boolean",
    "exceptions",
    "kernels",
    "linalg",
    "logger",
    "matrix",
    "settings",
    "is_equal",
    "round_to",
    "sign",
    "Dimension",
    "MatRep",
    "Matrix",
    "concatenate",
    "DEFAULT_SETTINGS",
    "Settings",
    "ToleranceMode",
    "get_settings",
    "get_target_tolerance",
    "reset_settings",
    "set_num_threads",
    "set_settings",
    "set_target_tolerance",
] + exceptions.__all__

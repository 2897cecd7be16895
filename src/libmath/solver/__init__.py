"""Linear (``las``) and nonlinear (``us``) system solvers."""

from . import las
from . import us

__all__ = ["las", "us"]

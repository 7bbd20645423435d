"""typesynth: synthesize small Python functions from input/output examples."""

from typesynth.errors import ErrorCategory, TypesynthError

__version__ = "0.1.0"

__all__ = ["ErrorCategory", "TypesynthError", "__version__"]

"""Exception types raised by the path-coefficient engine.

Every error is raised where it is detected and reaches the caller
unchanged.  All of them derive from ``PathAnalysisError`` (itself a
``ValueError``), which is what grouped analysis catches to isolate one
group's failure from its siblings.
"""


class PathAnalysisError(ValueError):
    """Base class for failures of a path analysis on a given input."""


class InsufficientDataError(PathAnalysisError):
    """Too few valid paired observations for a correlation to be defined."""


class SingularMatrixError(PathAnalysisError):
    """The predictor correlation matrix cannot be inverted and no correction is active."""


class SelectionExhaustedError(PathAnalysisError):
    """VIF pruning cannot meet its threshold without going below 2 predictors."""


class InvalidConfigurationError(PathAnalysisError):
    """Options are inconsistent or out of range."""

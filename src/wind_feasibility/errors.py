# errors.py
# ------------------------------------------------------------
# Exception types raised by the analysis pipeline.
# ------------------------------------------------------------

from __future__ import annotations

from typing import Optional, Tuple


class WindFeasibilityError(Exception):
    """Base class for pipeline errors."""


# Malformed timestamp/value or missing required column
class DataError(WindFeasibilityError):
    pass


class FitError(WindFeasibilityError):
    """Numerical fit did not converge (Weibull or SARIMA)."""

    def __init__(
        self,
        message: str,
        label: Optional[str] = None,
        order: Optional[Tuple[int, int, int]] = None,
        seasonal_order: Optional[Tuple[int, int, int, int]] = None,
    ) -> None:
        super().__init__(message)
        self.label = label
        self.order = order
        self.seasonal_order = seasonal_order


# Data outside the available window, or too few points for a stable fit
class InputRangeError(WindFeasibilityError):
    pass

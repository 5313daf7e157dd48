"""Least-squares curve fitting over small point sets.

Quadratic and linear fits used to smooth indicator time series into
slope/min/max features.

Example:
    >>> coeffs = fit_polynomial([0, 1, 2, 3], [1, 2, 5, 10])
    >>> round(float(coeffs.evaluate(4.0)), 6)
    17.0
"""

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PolyCoefficients:
    """Coefficients of y = x2*x^2 + x1*x + x0."""

    x2: float
    x1: float
    x0: float

    def evaluate(self, x: float | NDArray[np.float64]) -> float | NDArray[np.float64]:
        """Evaluate the polynomial at x."""
        return self.x2 * np.square(x) + self.x1 * np.asarray(x) + self.x0

    def slope_at(self, x: float) -> float:
        """First derivative at x."""
        return 2.0 * self.x2 * x + self.x1

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary."""
        return {"x2": self.x2, "x1": self.x1, "x0": self.x0}


@dataclass(frozen=True)
class IndicatorFeatures:
    """Smoothed features of an indicator series.

    Attributes:
        slope: Slope of the fitted curve at the last observation
        minimum: Minimum of the fitted curve over the observed range
        maximum: Maximum of the fitted curve over the observed range
        coefficients: The quadratic fit itself
    """

    slope: float
    minimum: float
    maximum: float
    coefficients: PolyCoefficients


def _as_arrays(
    x: Sequence[float], y: Sequence[float]
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    xs = np.asarray(x, dtype=np.float64)
    ys = np.asarray(y, dtype=np.float64)

    if xs.shape != ys.shape:
        raise ValueError(f"x and y must have the same length, got {xs.size} and {ys.size}")

    return xs, ys


def fit_polynomial(x: Sequence[float], y: Sequence[float]) -> PolyCoefficients:
    """Fit a quadratic by least squares.

    Args:
        x: Sample abscissas
        y: Sample values

    Returns:
        Quadratic coefficients (x2, x1, x0)

    Raises:
        ValueError: If fewer than 3 distinct points are given
    """
    xs, ys = _as_arrays(x, y)

    if np.unique(xs).size < 3:
        raise ValueError("Quadratic fit needs at least 3 distinct x values")

    x2, x1, x0 = np.polyfit(xs, ys, deg=2)
    return PolyCoefficients(x2=float(x2), x1=float(x1), x0=float(x0))


def fit_linear(x: Sequence[float], y: Sequence[float]) -> PolyCoefficients:
    """Fit a straight line by least squares.

    Args:
        x: Sample abscissas
        y: Sample values

    Returns:
        Coefficients with x2 = 0

    Raises:
        ValueError: If fewer than 2 points are given or all x are equal
    """
    xs, ys = _as_arrays(x, y)

    if xs.size < 2:
        raise ValueError("Linear fit needs at least 2 points")

    x_mean = xs.mean()
    denominator = np.sum(xs * xs) - xs.sum() * x_mean

    if denominator == 0.0:
        raise ValueError("Linear fit is undefined for a vertical line")

    x1 = (np.sum(xs * ys) - xs.sum() * ys.mean()) / denominator
    x0 = ys.mean() - x1 * x_mean

    return PolyCoefficients(x2=0.0, x1=float(x1), x0=float(x0))


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean."""
    return float(np.mean(values))


def stdev(values: Sequence[float]) -> float:
    """Population standard deviation."""
    return float(np.std(values))


def smoothed_features(values: Sequence[float]) -> IndicatorFeatures:
    """Derive slope/min/max features from an evenly spaced series.

    Fits a quadratic when there are at least 3 observations and falls back
    to a line for 2.

    Args:
        values: Indicator observations, oldest first

    Returns:
        IndicatorFeatures for the series

    Example:
        >>> f = smoothed_features([1.0, 2.0, 3.0, 4.0])
        >>> round(f.slope, 6)
        1.0
    """
    ys = np.asarray(values, dtype=np.float64)
    xs = np.arange(ys.size, dtype=np.float64)

    if ys.size >= 3:
        coeffs = fit_polynomial(xs, ys)
    else:
        coeffs = fit_linear(xs, ys)

    fitted = np.asarray(coeffs.evaluate(xs))

    # include the vertex when it lies inside the observed range
    if coeffs.x2 != 0.0:
        vertex = -coeffs.x1 / (2.0 * coeffs.x2)
        if xs[0] < vertex < xs[-1]:
            fitted = np.append(fitted, coeffs.evaluate(vertex))

    logger.debug(f"Smoothed {ys.size} observations: {coeffs}")

    return IndicatorFeatures(
        slope=coeffs.slope_at(float(xs[-1])),
        minimum=float(fitted.min()),
        maximum=float(fitted.max()),
        coefficients=coeffs,
    )

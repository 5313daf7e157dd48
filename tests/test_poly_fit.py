"""Tests for polynomial fitting and indicator smoothing."""

import numpy as np
import pytest

from engine.poly_fit import (
    PolyCoefficients,
    fit_linear,
    fit_polynomial,
    mean,
    smoothed_features,
    stdev,
)


class TestFitPolynomial:
    """Tests for the quadratic fit."""

    def test_exact_quadratic(self):
        """Points on y = x² + 1 are recovered exactly."""
        coeffs = fit_polynomial([0, 1, 2, 3], [1, 2, 5, 10])

        assert np.isclose(coeffs.x2, 1.0)
        assert np.isclose(coeffs.x1, 0.0, atol=1e-9)
        assert np.isclose(coeffs.x0, 1.0)

    def test_evaluate_and_slope(self):
        """Test evaluation and first derivative."""
        coeffs = PolyCoefficients(x2=2.0, x1=-3.0, x0=1.0)

        assert np.isclose(coeffs.evaluate(2.0), 3.0)
        assert np.isclose(coeffs.slope_at(2.0), 5.0)
        assert np.allclose(coeffs.evaluate(np.array([0.0, 1.0])), [1.0, 0.0])

    def test_least_squares_with_noise(self):
        """Noisy samples stay close to the generating curve."""
        np.random.seed(7)
        x = np.linspace(-2, 2, 50)
        y = 0.5 * x**2 - x + 3 + np.random.normal(0, 0.01, x.size)

        coeffs = fit_polynomial(x, y)
        assert np.isclose(coeffs.x2, 0.5, atol=0.01)
        assert np.isclose(coeffs.x1, -1.0, atol=0.01)
        assert np.isclose(coeffs.x0, 3.0, atol=0.01)

    def test_too_few_points(self):
        """Test error when fewer than 3 distinct x values."""
        with pytest.raises(ValueError, match="at least 3 distinct"):
            fit_polynomial([1, 1, 2], [1, 2, 3])

    def test_length_mismatch(self):
        """Test error on mismatched inputs."""
        with pytest.raises(ValueError, match="same length"):
            fit_polynomial([1, 2, 3], [1, 2])


class TestFitLinear:
    """Tests for the linear fit."""

    def test_exact_line(self):
        """Points on y = 2x + 1 are recovered exactly."""
        coeffs = fit_linear([1, 2, 3], [3, 5, 7])

        assert coeffs.x2 == 0.0
        assert np.isclose(coeffs.x1, 2.0)
        assert np.isclose(coeffs.x0, 1.0)

    def test_single_point(self):
        """Test error with a single point."""
        with pytest.raises(ValueError, match="at least 2 points"):
            fit_linear([1], [1])

    def test_vertical_line(self):
        """Test error when every x is equal."""
        with pytest.raises(ValueError, match="vertical line"):
            fit_linear([2, 2, 2], [1, 2, 3])


class TestSmoothedFeatures:
    """Tests for indicator smoothing."""

    def test_linear_series(self):
        """A straight series has constant slope."""
        features = smoothed_features([1.0, 2.0, 3.0, 4.0])

        assert np.isclose(features.slope, 1.0)
        assert np.isclose(features.minimum, 1.0)
        assert np.isclose(features.maximum, 4.0)

    def test_vertex_inside_range(self):
        """The peak between observations is included."""
        features = smoothed_features([0.0, 1.0, 1.0, 0.0])

        assert np.isclose(features.maximum, 1.125)
        assert np.isclose(features.minimum, 0.0, atol=1e-9)
        assert features.slope < 0

    def test_two_points_fall_back_to_line(self):
        """Two observations use a linear fit."""
        features = smoothed_features([2.0, 5.0])

        assert features.coefficients.x2 == 0.0
        assert np.isclose(features.slope, 3.0)


class TestStats:
    """Tests for summary statistics."""

    def test_mean_and_stdev(self):
        assert mean([1.0, 2.0, 3.0]) == 2.0
        assert np.isclose(stdev([2, 4, 4, 4, 5, 5, 7, 9]), 2.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""Univariate and bivariate normal distribution functions.

The bivariate CDF follows Drezner (1978): a 5x5 Gauss-Hermite quadrature
for the negative quadrant, with the remaining quadrants reduced to it.

Example:
    >>> cnd(0.0)
    0.5
    >>> round(cbnd(0.0, 0.0, 0.5), 6)
    0.333333
"""

import math

import numpy as np
from scipy.special import ndtr

_INV_SQRT_2PI = 1.0 / math.sqrt(2.0 * math.pi)

# Drezner quadrature abscissas and weights
_Y = np.array([0.10024215, 0.48281397, 1.0609498, 1.7797294, 2.6697604])

_XX = np.array(
    [
        [
            0.06170561535782249917847508414,
            0.09745745062408049663726927747,
            0.05251757861786850167806761647,
            0.00825867481095899844123486844,
            0.00020489864250404100768677973,
        ],
        [
            0.09745745062408049663726927747,
            0.15392366848734490014649622935,
            0.08294592470016330654214442575,
            0.01304369769172619882013908210,
            0.00032361559347527383201023610,
        ],
        [
            0.05251757861786850167806761647,
            0.08294592470016330654214442575,
            0.04469765106287610506585750159,
            0.00702894868074539942714995533,
            0.00017438900015825459450038992,
        ],
        [
            0.00825867481095899844123486844,
            0.01304369769172619882013908210,
            0.00702894868074539942714995533,
            0.00110534040115559985262283504,
            0.00002742361854484439765474585,
        ],
        [
            0.00020489864250404100768677973,
            0.00032361559347527383201023610,
            0.00017438900015825459450038992,
            0.00002742361854484439765474585,
            0.00000068038303250915557643890,
        ],
    ]
)


def cnd(x: float) -> float:
    """Cumulative standard normal distribution N(x)."""
    return float(ndtr(x))


def npdf(x: float) -> float:
    """Standard normal probability density n(x)."""
    return _INV_SQRT_2PI * math.exp(-0.5 * x * x)


def _sign(x: float) -> float:
    return -1.0 if x < 0.0 else 1.0


def cbnd(a: float, b: float, rho: float) -> float:
    """Cumulative bivariate normal distribution M(a, b; rho).

    Args:
        a: Upper limit of the first variable
        b: Upper limit of the second variable
        rho: Correlation between the variables, in (-1, 1)

    Returns:
        P(X <= a, Y <= b) for standard normals with correlation rho

    Raises:
        ValueError: If the inputs fall outside every reduction case (NaN)
    """
    if math.isinf(b):
        b = 10.0

    if a <= 0.0 and b <= 0.0 and rho <= 0.0:
        t = math.sqrt(2.0 * (1.0 - rho * rho))
        a1 = a / t
        b1 = b / t

        ai = a1 * (2.0 * _Y - a1)
        bj = b1 * (2.0 * _Y - b1)
        cross = 2.0 * rho * np.outer(_Y - a1, _Y - b1)

        total = np.sum(_XX * np.exp(ai[:, None] + bj[None, :] + cross))
        return float(math.sqrt(1.0 - rho * rho) / math.pi * total)

    if a <= 0.0 and b >= 0.0 and rho >= 0.0:
        return cnd(a) - cbnd(a, -b, -rho)

    if a >= 0.0 and b <= 0.0 and rho >= 0.0:
        return cnd(b) - cbnd(-a, b, -rho)

    if a >= 0.0 and b >= 0.0 and rho <= 0.0:
        return cnd(a) + cnd(b) - 1.0 + cbnd(-a, -b, rho)

    if a * b * rho > 0.0:
        denom = math.sqrt(a * a - 2.0 * rho * a * b + b * b)
        rho1 = (rho * a - b) * _sign(a) / denom
        rho2 = (rho * b - a) * _sign(b) / denom
        delta = (1.0 - _sign(a) * _sign(b)) / 4.0

        return cbnd(a, 0.0, rho1) + cbnd(b, 0.0, rho2) - delta

    raise ValueError(f"Invalid bivariate normal input a={a}, b={b}, rho={rho}")

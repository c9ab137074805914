"""
Closed-form approximations of the distribution functions used by the tests.

All p-values produced by this package go through these functions. They are
controlled numerical approximations (normal CDF to ~7 digits, Wilson-Hilferty
for chi-squared), not arbitrary-precision results.
"""

import math

# Abramowitz & Stegun 7.1.26
_AS_P = 0.3275911
_AS_COEFFS = (0.254829592, -0.284496736, 1.421413741, -1.453152027, 1.061405429)

# Lanczos, g = 7, n = 9
_LANCZOS_G = 7
_LANCZOS_COEFFS = (
    0.99999999999980993,
    676.5203681218851,
    -1259.1392167224028,
    771.32342877765313,
    -176.61502916214059,
    12.507343278686905,
    -0.13857109526572012,
    9.9843695780195716e-6,
    1.5056327351493116e-7,
)

_BETA_MAX_ITERATIONS = 100
_BETA_EPSILON = 1e-10
_BETA_TINY = 1e-30

# Acklam's inverse normal CDF
_PPF_A = (
    -3.969683028665376e01,
    2.209460984245205e02,
    -2.759285104469687e02,
    1.383577518672690e02,
    -3.066479806614716e01,
    2.506628277459239e00,
)
_PPF_B = (
    -5.447609879822406e01,
    1.615858368580409e02,
    -1.556989798598866e02,
    6.680131188771972e01,
    -1.328068155288572e01,
)
_PPF_C = (
    -7.784894002430293e-03,
    -3.223964580411365e-01,
    -2.400758277161838e00,
    -2.549732539343734e00,
    4.374664141464968e00,
    2.938163982698783e00,
)
_PPF_D = (
    7.784695709041462e-03,
    3.224671290700398e-01,
    2.445134137142996e00,
    3.754408661907416e00,
)
_PPF_LOW = 0.02425


def normal_cdf(z: float) -> float:
    """
    Standard normal CDF P(Z <= z) via the Abramowitz-Stegun approximation.

    Accurate to about 7 significant digits. Symmetry around zero is handled
    through the sign of ``z``.
    """
    sign = -1.0 if z < 0 else 1.0
    x = abs(z) / math.sqrt(2.0)

    t = 1.0 / (1.0 + _AS_P * x)
    a1, a2, a3, a4, a5 = _AS_COEFFS
    poly = ((((a5 * t + a4) * t + a3) * t + a2) * t + a1) * t
    y = 1.0 - poly * math.exp(-x * x)

    return 0.5 * (1.0 + sign * y)


def log_gamma(z: float) -> float:
    """
    Natural log of the gamma function (Lanczos approximation, g=7).

    For ``z < 0.5`` the reflection formula
    ``log(pi / sin(pi z)) - log_gamma(1 - z)`` is used.
    """
    if z < 0.5:
        return math.log(math.pi / math.sin(math.pi * z)) - log_gamma(1.0 - z)

    z -= 1.0
    x = _LANCZOS_COEFFS[0]
    for i in range(1, _LANCZOS_G + 2):
        x += _LANCZOS_COEFFS[i] / (z + i)

    t = z + _LANCZOS_G + 0.5
    return 0.5 * math.log(2.0 * math.pi) + (z + 0.5) * math.log(t) - t + math.log(x)


def _floor_tiny(value: float) -> float:
    return _BETA_TINY if abs(value) < _BETA_TINY else value


def incomplete_beta_regularized(x: float, a: float, b: float) -> float:
    """
    Regularized incomplete beta function I_x(a, b).

    Evaluated with Lentz's continued fraction. Above the mean-like split point
    ``(a + 1) / (a + b + 2)`` the symmetry ``I_x(a, b) = 1 - I_{1-x}(b, a)``
    is applied so the fraction converges quickly.

    Parameters
    ----------
    x : float
        Evaluation point in [0, 1].
    a, b : float
        Positive shape parameters.

    Returns
    -------
    float
        Value in [0, 1].
    """
    if x <= 0:
        return 0.0
    if x >= 1:
        return 1.0

    if x > (a + 1.0) / (a + b + 2.0):
        return 1.0 - incomplete_beta_regularized(1.0 - x, b, a)

    front = math.exp(
        log_gamma(a + b)
        - log_gamma(a)
        - log_gamma(b)
        + a * math.log(x)
        + b * math.log(1.0 - x)
    )

    c = 1.0
    d = 1.0 / _floor_tiny(1.0 - (a + b) * x / (a + 1.0))
    h = d

    for m in range(1, _BETA_MAX_ITERATIONS + 1):
        m2 = 2 * m

        # Even step
        aa = m * (b - m) * x / ((a + m2 - 1.0) * (a + m2))
        d = 1.0 / _floor_tiny(1.0 + aa * d)
        c = _floor_tiny(1.0 + aa / c)
        h *= d * c

        # Odd step
        aa = -(a + m) * (a + b + m) * x / ((a + m2) * (a + m2 + 1.0))
        d = 1.0 / _floor_tiny(1.0 + aa * d)
        c = _floor_tiny(1.0 + aa / c)
        delta = d * c
        h *= delta

        if abs(delta - 1.0) < _BETA_EPSILON:
            break

    return min(max(front * h / a, 0.0), 1.0)


def chi_squared_cdf(x: float, df: float) -> float:
    """Chi-squared CDF using the Wilson-Hilferty cube-root transformation."""
    if x <= 0:
        return 0.0
    if df <= 0:
        return float("nan")

    z = (x / df) ** (1.0 / 3.0) - (1.0 - 2.0 / (9.0 * df))
    return normal_cdf(z / math.sqrt(2.0 / (9.0 * df)))


def chi_squared_p_value(statistic: float, df: float) -> float:
    """Upper-tail chi-squared probability."""
    return 1.0 - chi_squared_cdf(statistic, df)


def f_distribution_p_value(f: float, df1: float, df2: float) -> float:
    """Upper-tail F-distribution probability via the incomplete beta function."""
    if f <= 0:
        return 1.0
    x = df2 / (df2 + df1 * f)
    return incomplete_beta_regularized(x, df2 / 2.0, df1 / 2.0)


def normal_ppf(p: float) -> float:
    """Inverse standard normal CDF (Acklam's rational approximation)."""
    if p <= 0:
        return float("-inf")
    if p >= 1:
        return float("inf")
    if p == 0.5:
        return 0.0

    a, b, c, d = _PPF_A, _PPF_B, _PPF_C, _PPF_D

    if p < _PPF_LOW:
        q = math.sqrt(-2.0 * math.log(p))
        return (((((c[0] * q + c[1]) * q + c[2]) * q + c[3]) * q + c[4]) * q + c[5]) / (
            (((d[0] * q + d[1]) * q + d[2]) * q + d[3]) * q + 1.0
        )

    if p <= 1.0 - _PPF_LOW:
        q = p - 0.5
        r = q * q
        return (
            (((((a[0] * r + a[1]) * r + a[2]) * r + a[3]) * r + a[4]) * r + a[5])
            * q
            / (((((b[0] * r + b[1]) * r + b[2]) * r + b[3]) * r + b[4]) * r + 1.0)
        )

    q = math.sqrt(-2.0 * math.log(1.0 - p))
    return -(((((c[0] * q + c[1]) * q + c[2]) * q + c[3]) * q + c[4]) * q + c[5]) / (
        (((d[0] * q + d[1]) * q + d[2]) * q + d[3]) * q + 1.0
    )

"""Statistics tools over numeric series, backed by numpy."""
import math
from typing import List, Optional, Tuple

import numpy as np
from pydantic import Field

from compute_tools.common.errors import DomainError, InvalidInputError
from compute_tools.common.models import ToolInput, ToolOutput
from compute_tools.tools.base import tool

MAX_BINS = 50
MAX_EXPLICIT_BINS = 10_000
MAX_POLYNOMIAL_DEGREE = 10
# Significance level of the normality test
NORMALITY_ALPHA = 0.05
# Beyond this many degrees of freedom the t distribution is treated as normal
NORMAL_APPROXIMATION_DF = 30


class SeriesInput(ToolInput):
    data: List[float] = Field(..., description="Numeric series")


class TwoSeriesInput(ToolInput):
    x: List[float] = Field(..., description="Independent series")
    y: List[float] = Field(..., description="Dependent series, same length as x")


class HistogramInput(ToolInput):
    data: List[float] = Field(..., description="Numeric series")
    num_bins: Optional[int] = Field(
        default=None, ge=1, le=MAX_EXPLICIT_BINS, description="Bin count; Sturges' rule when absent"
    )


class MultiSeriesInput(ToolInput):
    data: List[List[float]] = Field(..., description="One series per variable, all the same length")
    variable_names: Optional[List[str]] = Field(default=None, description="Defaults to Variable_1, Variable_2, ...")


class PolynomialInput(ToolInput):
    x: List[float]
    y: List[float]
    degree: int = Field(..., ge=1, le=MAX_POLYNOMIAL_DEGREE, description="Polynomial degree")


class Quartiles(ToolOutput):
    q1: float
    q2: float
    q3: float
    iqr: float


class DescriptiveStatisticsResult(ToolOutput):
    count: int
    mean: float
    median: float
    mode: Optional[float] = Field(default=None, description="Most frequent value, only when one repeats")
    standard_deviation: float
    variance: float
    min: float
    max: float
    range: float
    sum: float
    quartiles: Quartiles
    skewness: float
    kurtosis: float = Field(..., description="Excess kurtosis")


class LinearRegressionResult(ToolOutput):
    slope: float
    intercept: float
    r_squared: float
    correlation_coefficient: float
    standard_error: float
    slope_std_error: float
    intercept_std_error: float
    t_statistic_slope: float
    t_statistic_intercept: float
    p_value_slope: float
    p_value_intercept: float
    equation: str
    residuals: List[float]
    predicted_values: List[float]
    sample_size: int


class CorrelationResult(ToolOutput):
    correlation_coefficient: float
    p_value: Optional[float] = None
    sample_size: int
    interpretation: str


class CorrelationMatrixResult(ToolOutput):
    variables: List[str]
    correlation_matrix: List[List[float]]
    sample_size: int


class PolynomialRegressionResult(ToolOutput):
    coefficients: List[float] = Field(..., description="Constant term first")
    r_squared: float
    equation: str
    predicted_values: List[float]
    residuals: List[float]
    degree: int


class NormalityResult(ToolOutput):
    is_normal: bool
    jarque_bera_statistic: float
    p_value: float
    confidence_level: float
    interpretation: str


class HistogramBin(ToolOutput):
    lower_bound: float
    upper_bound: float
    count: int
    frequency: float
    density: float


class HistogramResult(ToolOutput):
    bins: List[HistogramBin]
    total_count: int
    bin_width: float
    range: Tuple[float, float]


def _series(values: List[float]) -> np.ndarray:
    if not values:
        raise InvalidInputError("Input data cannot be empty")
    return np.asarray(values, dtype=float)


def _paired(data: TwoSeriesInput, purpose: str) -> Tuple[np.ndarray, np.ndarray]:
    if len(data.x) != len(data.y):
        raise InvalidInputError("X and Y series must have the same length")
    if len(data.x) < 2:
        raise InvalidInputError(f"Need at least 2 data points for {purpose}")
    return np.asarray(data.x, dtype=float), np.asarray(data.y, dtype=float)


def percentile(sorted_values: np.ndarray, pct: float) -> float:
    """Percentile by linear interpolation between the closest ranks."""
    index = pct / 100.0 * (len(sorted_values) - 1)
    lower, upper = math.floor(index), math.ceil(index)
    if lower == upper:
        return float(sorted_values[lower])
    weight = index - lower
    return float(sorted_values[lower] * (1.0 - weight) + sorted_values[upper] * weight)


def _mode(values: np.ndarray) -> Optional[float]:
    unique, counts = np.unique(values, return_counts=True)
    if counts.max() <= 1:
        return None
    # Smallest of the most frequent values
    return float(unique[int(np.argmax(counts))])


def normal_cdf(x: float) -> float:
    return 0.5 * (1.0 + math.erf(x / math.sqrt(2.0)))


def two_sided_p_value(t_stat: float, df: int) -> float:
    """
    Two-sided p-value of a Student t statistic.

    Exact series in cos(theta), theta = atan(|t| / sqrt(df)), up to 30 degrees of
    freedom; normal approximation above.

    :param float t_stat: t statistic
    :param int df: Degrees of freedom

    :return: p-value in [0, 1]
    :rtype: float
    """
    if df <= 0:
        return 1.0
    t_stat = abs(t_stat)
    if df > NORMAL_APPROXIMATION_DF:
        return 2.0 * (1.0 - normal_cdf(t_stat))

    theta = math.atan(t_stat / math.sqrt(df))
    cos_sq = math.cos(theta) ** 2
    term = series = 1.0
    if df % 2:
        for k in range(1, (df - 1) // 2):
            term *= 2.0 * k / (2.0 * k + 1.0) * cos_sq
            series += term
        central = 2.0 / math.pi * (theta + (math.sin(theta) * math.cos(theta) * series if df > 1 else 0.0))
    else:
        for k in range(1, df // 2):
            term *= (2.0 * k - 1.0) / (2.0 * k) * cos_sq
            series += term
        central = math.sin(theta) * series
    return min(1.0, max(0.0, 1.0 - central))


def interpret_correlation(r: float) -> str:
    """Human-readable strength and direction of a correlation coefficient."""
    magnitude = abs(r)
    if magnitude >= 0.9:
        strength = "very strong"
    elif magnitude >= 0.7:
        strength = "strong"
    elif magnitude >= 0.5:
        strength = "moderate"
    elif magnitude >= 0.3:
        strength = "weak"
    elif magnitude >= 0.1:
        strength = "very weak"
    else:
        strength = "negligible"

    if r > 0:
        direction = "positive"
    elif r < 0:
        direction = "negative"
    else:
        direction = "no"
    return f"{strength} {direction} correlation"


@tool("descriptive_statistics", SeriesInput)
def descriptive_statistics(data: SeriesInput) -> DescriptiveStatisticsResult:
    """
    Summary statistics of a series.

    Variance and standard deviation are population statistics; kurtosis is excess kurtosis.

    :raises InvalidInputError: If the series is empty
    """
    values = _series(data.data)
    ordered = np.sort(values)
    mean = float(values.mean())
    variance = float(np.mean((values - mean) ** 2))
    std = math.sqrt(variance)

    if std == 0:
        skewness = kurtosis = 0.0
    else:
        z = (values - mean) / std
        skewness = float(np.mean(z ** 3))
        kurtosis = float(np.mean(z ** 4)) - 3.0

    q1, q2, q3 = (percentile(ordered, pct) for pct in (25.0, 50.0, 75.0))
    return DescriptiveStatisticsResult(
        count=len(values),
        mean=mean,
        median=float(np.median(values)),
        mode=_mode(values),
        standard_deviation=std,
        variance=variance,
        min=float(ordered[0]),
        max=float(ordered[-1]),
        range=float(ordered[-1] - ordered[0]),
        sum=float(values.sum()),
        quartiles=Quartiles(q1=q1, q2=q2, q3=q3, iqr=q3 - q1),
        skewness=skewness,
        kurtosis=kurtosis,
    )


@tool("linear_regression", TwoSeriesInput)
def linear_regression(data: TwoSeriesInput) -> LinearRegressionResult:
    """
    Ordinary least squares fit of y = slope * x + intercept.

    :raises InvalidInputError: If the series differ in length or have fewer than 2 points
    :raises DomainError: If x has zero variance
    """
    x, y = _paired(data, "regression")
    n = len(x)
    x_dev = x - x.mean()
    y_dev = y - y.mean()
    sxx = float(np.sum(x_dev * x_dev))
    syy = float(np.sum(y_dev * y_dev))
    sxy = float(np.sum(x_dev * y_dev))
    if sxx == 0:
        raise DomainError("X values have zero variance - cannot perform regression")

    slope = sxy / sxx
    intercept = float(y.mean()) - slope * float(x.mean())
    predicted = slope * x + intercept
    residuals = y - predicted
    rss = float(np.sum(residuals * residuals))

    r_squared = 1.0 if syy == 0 else 1.0 - rss / syy
    r = 0.0 if syy == 0 else sxy / math.sqrt(sxx * syy)

    df = n - 2
    standard_error = math.sqrt(rss / df) if df > 0 else 0.0
    slope_se = standard_error / math.sqrt(sxx)
    mean_x = float(x.mean())
    intercept_se = standard_error * math.sqrt(1.0 / n + mean_x * mean_x / sxx)
    t_slope = slope / slope_se if slope_se > 0 else 0.0
    t_intercept = intercept / intercept_se if intercept_se > 0 else 0.0

    sign = "+" if intercept >= 0 else "-"
    return LinearRegressionResult(
        slope=slope,
        intercept=intercept,
        r_squared=r_squared,
        correlation_coefficient=r,
        standard_error=standard_error,
        slope_std_error=slope_se,
        intercept_std_error=intercept_se,
        t_statistic_slope=t_slope,
        t_statistic_intercept=t_intercept,
        p_value_slope=two_sided_p_value(t_slope, df),
        p_value_intercept=two_sided_p_value(t_intercept, df),
        equation=f"y = {slope:.6f}x {sign} {abs(intercept):.6f}",
        residuals=residuals.tolist(),
        predicted_values=predicted.tolist(),
        sample_size=n,
    )


def _coefficient(x: np.ndarray, y: np.ndarray) -> Optional[float]:
    """Pearson r clamped to [-1, 1]; None when either series has zero variance."""
    x_dev = x - x.mean()
    y_dev = y - y.mean()
    sxx = float(np.sum(x_dev * x_dev))
    syy = float(np.sum(y_dev * y_dev))
    if sxx == 0 or syy == 0:
        return None
    r = float(np.sum(x_dev * y_dev)) / math.sqrt(sxx * syy)
    return max(-1.0, min(1.0, r))


def _correlation(x: np.ndarray, y: np.ndarray, label: str = "") -> CorrelationResult:
    n = len(x)
    r = _coefficient(x, y)
    if r is None:
        return CorrelationResult(
            correlation_coefficient=0.0,
            sample_size=n,
            interpretation="No correlation (zero variance in one variable)",
        )

    p_value = None
    if n >= 3:
        t_stat = math.inf if abs(r) == 1.0 else r * math.sqrt((n - 2) / (1.0 - r * r))
        p_value = two_sided_p_value(t_stat, n - 2)

    return CorrelationResult(
        correlation_coefficient=r,
        p_value=p_value,
        sample_size=n,
        interpretation=f"{label}{interpret_correlation(r)}",
    )


def rank(values: np.ndarray) -> np.ndarray:
    """1-based ranks; tied values share the mean of the ranks they span."""
    order = np.argsort(values, kind="stable")
    ranks = np.empty(len(values), dtype=float)
    start = 0
    while start < len(order):
        end = start
        while end < len(order) and values[order[end]] == values[order[start]]:
            end += 1
        ranks[order[start:end]] = (start + end + 1) / 2.0
        start = end
    return ranks


@tool("pearson_correlation", TwoSeriesInput)
def pearson_correlation(data: TwoSeriesInput) -> CorrelationResult:
    """
    Pearson correlation coefficient with an approximate p-value and interpretation.

    A series with zero variance yields a coefficient of 0 rather than an error.
    """
    x, y = _paired(data, "correlation")
    return _correlation(x, y)


@tool("spearman_correlation", TwoSeriesInput)
def spearman_correlation(data: TwoSeriesInput) -> CorrelationResult:
    """Spearman rank correlation: Pearson's coefficient over average ranks."""
    x, y = _paired(data, "correlation")
    return _correlation(rank(x), rank(y), label="Spearman rank correlation: ")


@tool("correlation_matrix", MultiSeriesInput)
def correlation_matrix(data: MultiSeriesInput) -> CorrelationMatrixResult:
    """
    Pairwise Pearson coefficients of several equally long series.

    The diagonal is 1; a pair involving a constant series is 0.

    :raises InvalidInputError: If there is no series, lengths differ, a series has fewer
        than 2 points, or the names do not match the series
    """
    if not data.data:
        raise InvalidInputError("Input data cannot be empty")
    sample_size = len(data.data[0])
    for i, series in enumerate(data.data):
        if len(series) != sample_size:
            raise InvalidInputError(
                f"All data series must have the same length. "
                f"Series {i} has length {len(series)}, expected {sample_size}"
            )
    if sample_size < 2:
        raise InvalidInputError("Need at least 2 data points for correlation")

    names = data.variable_names
    if names is None:
        names = [f"Variable_{i + 1}" for i in range(len(data.data))]
    elif len(names) != len(data.data):
        raise InvalidInputError("Number of variable names must match number of data series")

    columns = [np.asarray(series, dtype=float) for series in data.data]
    matrix = [
        [1.0 if i == j else (_coefficient(a, b) or 0.0) for j, b in enumerate(columns)]
        for i, a in enumerate(columns)
    ]
    return CorrelationMatrixResult(variables=names, correlation_matrix=matrix, sample_size=sample_size)


def _polynomial_equation(coefficients: List[float]) -> str:
    terms = [f"{coefficients[0]:.6f}"]
    for power, coefficient in enumerate(coefficients[1:], start=1):
        sign = "+" if coefficient >= 0 else "-"
        suffix = "x" if power == 1 else f"x^{power}"
        terms.append(f"{sign} {abs(coefficient):.6f}{suffix}")
    return "y = " + " ".join(terms)


@tool("polynomial_regression", PolynomialInput)
def polynomial_regression(data: PolynomialInput) -> PolynomialRegressionResult:
    """
    Least squares fit of a polynomial of the given degree.

    Coefficients are listed from the constant term upwards.

    :raises InvalidInputError: If the series differ in length or have too few points
    :raises DomainError: If the x values cannot determine every coefficient
    """
    degree = data.degree
    if len(data.x) != len(data.y):
        raise InvalidInputError("X and Y series must have the same length")
    if len(data.x) < degree + 1:
        raise InvalidInputError(f"Need at least {degree + 1} data points for degree {degree} polynomial")

    x = np.asarray(data.x, dtype=float)
    y = np.asarray(data.y, dtype=float)
    design = np.vander(x, degree + 1, increasing=True)
    coefficients, _, matrix_rank, _ = np.linalg.lstsq(design, y, rcond=None)
    if matrix_rank < degree + 1:
        raise DomainError("Matrix is singular - cannot solve linear system")

    predicted = design @ coefficients
    residuals = y - predicted
    rss = float(np.sum(residuals * residuals))
    tss = float(np.sum((y - y.mean()) ** 2))
    coefficient_list = coefficients.tolist()
    return PolynomialRegressionResult(
        coefficients=coefficient_list,
        r_squared=1.0 if tss == 0 else 1.0 - rss / tss,
        equation=_polynomial_equation(coefficient_list),
        predicted_values=predicted.tolist(),
        residuals=residuals.tolist(),
        degree=degree,
    )


@tool("test_normality", SeriesInput)
def normality_test(data: SeriesInput) -> NormalityResult:
    """
    Jarque-Bera test of normality at the 5% level.

    With two degrees of freedom the chi-square tail is exactly exp(-JB / 2).

    :raises InvalidInputError: If there are fewer than 3 values
    :raises DomainError: If every value is identical
    """
    values = np.asarray(data.data, dtype=float)
    n = len(values)
    if n < 3:
        raise InvalidInputError("Need at least 3 data points for normality testing")
    std = float(values.std())
    if std == 0:
        raise DomainError("Standard deviation is zero, cannot test normality")

    z = (values - values.mean()) / std
    skewness = float(np.mean(z ** 3))
    excess_kurtosis = float(np.mean(z ** 4)) - 3.0
    statistic = n / 6.0 * (skewness * skewness + excess_kurtosis * excess_kurtosis / 4.0)
    p_value = math.exp(-statistic / 2.0)
    is_normal = p_value > NORMALITY_ALPHA
    if is_normal:
        interpretation = (
            f"Data appears to be normally distributed (p-value: {p_value:.4f} > {NORMALITY_ALPHA:.2f})"
        )
    else:
        interpretation = (
            f"Data does not appear to be normally distributed (p-value: {p_value:.4f} <= {NORMALITY_ALPHA:.2f})"
        )
    return NormalityResult(
        is_normal=is_normal,
        jarque_bera_statistic=statistic,
        p_value=p_value,
        confidence_level=NORMALITY_ALPHA,
        interpretation=interpretation,
    )


@tool("histogram", HistogramInput)
def histogram(data: HistogramInput) -> HistogramResult:
    """
    Equal-width histogram of a series.

    The bin count defaults to Sturges' rule, ceil(log2 n) + 1, clamped to [1, 50].
    The maximum value is counted in the last bin.

    :raises InvalidInputError: If the series is empty
    :raises DomainError: If every value is identical, or the span cannot be split into
        bins of finite non-zero width
    """
    values = _series(data.data)
    low, high = float(values.min()), float(values.max())
    if low == high:
        raise DomainError("All data values are the same, cannot create histogram")

    n = len(values)
    num_bins = data.num_bins or max(1, min(MAX_BINS, math.ceil(math.log2(n)) + 1))
    width = (high - low) / num_bins
    if width == 0.0 or not math.isfinite(width):
        raise DomainError(f"Data range {low}..{high} cannot be split into {num_bins} bins")

    indices = np.floor((values - low) / width).astype(int)
    indices = np.clip(indices, 0, num_bins - 1)
    indices[values == high] = num_bins - 1
    counts = np.bincount(indices, minlength=num_bins)

    bins = []
    for i, count in enumerate(counts.tolist()):
        frequency = count / n
        bins.append(
            HistogramBin(
                lower_bound=low + i * width,
                upper_bound=high if i == num_bins - 1 else low + (i + 1) * width,
                count=count,
                frequency=frequency,
                density=frequency / width,
            )
        )
    return HistogramResult(bins=bins, total_count=n, bin_width=width, range=(low, high))

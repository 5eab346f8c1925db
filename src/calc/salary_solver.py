"""Find the gross salary that delivers a target after-tax income."""

import logging
from typing import Optional

from model.TaxYearData import TaxYearData
from tax.PayrollDeductions import payroll_deductions
from tax.PersonalTax import personal_tax

logger = logging.getLogger(__name__)

FIXED_POINT = 'fixed-point'
BISECTION = 'bisection'

TOLERANCE = 1.0
MAX_ITERATIONS = 10
MAX_BISECTION_STEPS = 100
STEP_FACTOR = 1.4


def after_tax_salary(salary: float, tax_data: TaxYearData) -> float:
    """Salary less personal tax and employee payroll deductions, with no dividends."""
    tax = personal_tax(salary, 0.0, 0.0, 0.0, tax_data)
    payroll = payroll_deductions(salary, tax_data)
    return salary - tax.total_tax - payroll.total_employee


def _fixed_point(target: float, tax_data: TaxYearData, max_iterations: int) -> Optional[float]:
    salary = target * 1.5
    for i in range(max_iterations):
        gap = target - after_tax_salary(salary, tax_data)
        logger.debug("Solver iteration %d: salary %.2f, gap %.2f", i + 1, salary, gap)
        if abs(gap) < TOLERANCE:
            return salary
        salary += gap * STEP_FACTOR
    logger.warning("Salary solver stopped after %d iterations for target %.2f; falling back to bisection",
                   max_iterations, target)
    return None


def _bisection(target: float, tax_data: TaxYearData) -> float:
    low, high = 0.0, max(target, 1.0)
    while after_tax_salary(high, tax_data) < target:
        high *= 2
    mid = high
    for _ in range(MAX_BISECTION_STEPS):
        mid = (low + high) / 2
        gap = target - after_tax_salary(mid, tax_data)
        if abs(gap) < TOLERANCE:
            return mid
        if gap > 0:
            low = mid
        else:
            high = mid
    logger.warning("Salary bisection stopped after %d steps for target %.2f; using %.2f",
                   MAX_BISECTION_STEPS, target, mid)
    return mid


def required_salary(target: float, tax_data: TaxYearData, method: str = FIXED_POINT,
                    max_iterations: int = MAX_ITERATIONS) -> float:
    """Estimate the salary whose after-tax amount is within $1 of ``target``.

    The fixed-point method starts at 1.5x the target and moves by 1.4x the
    remaining gap each iteration; when it has not converged by
    ``max_iterations`` the answer comes from bisection instead. Bisection
    brackets the answer and halves the interval. Neither raises.

    Args:
        target: After-tax income the salary must provide.
        tax_data: Rates for the year and province.
        method: FIXED_POINT or BISECTION.
        max_iterations: Iteration cap for the fixed-point method.

    Returns:
        The gross salary, 0 for a non-positive target.
    """
    if target <= 0:
        return 0.0
    if method == BISECTION:
        return _bisection(target, tax_data)
    if method != FIXED_POINT:
        raise ValueError(f"Unknown salary solver method: {method}")
    salary = _fixed_point(target, tax_data, max_iterations)
    if salary is None:
        return _bisection(target, tax_data)
    return salary

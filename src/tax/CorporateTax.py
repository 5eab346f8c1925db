"""Corporate tax on active business income and passive investment income.

Active income up to the small business limit is taxed at the combined small
business rate and the rest at the general rate. The limit is ground down by
$5 for every dollar of adjusted aggregate investment income (AAII) above
$50,000, reaching zero at $150,000.
"""

from model.ProjectionData import CorporateTaxResult, InvestmentReturns, PassiveIncomeGrind
from model.TaxYearData import TaxYearData

BUSINESS_LIMIT = 500000
PASSIVE_THRESHOLD = 50000
GRIND_RATE = 5


def adjusted_aggregate_investment_income(returns: InvestmentReturns, inclusion_rate: float = 0.5) -> float:
    """Foreign income plus the taxable part of realized gains."""
    return returns.foreign_income + returns.realized_capital_gain * inclusion_rate


def reduced_sbd_limit(aaii: float, business_limit: float = BUSINESS_LIMIT,
                      threshold: float = PASSIVE_THRESHOLD, grind_rate: float = GRIND_RATE) -> float:
    """Small business limit remaining after the passive income grind."""
    reduction = grind_rate * max(0.0, aaii - threshold)
    return min(business_limit, max(0.0, business_limit - reduction))


def passive_income_grind(aaii: float, taxable_business_income: float, tax_data: TaxYearData,
                         business_limit: float = BUSINESS_LIMIT, threshold: float = PASSIVE_THRESHOLD,
                         grind_rate: float = GRIND_RATE) -> PassiveIncomeGrind:
    limit = reduced_sbd_limit(aaii, business_limit, threshold, grind_rate)
    reduction = business_limit - limit
    rate_gap = tax_data.corporate.general - tax_data.corporate.small_business
    return PassiveIncomeGrind(
        total_passive_income=aaii,
        reduced_sbd_limit=limit,
        sbd_reduction=reduction,
        additional_tax_from_grind=min(taxable_business_income, reduction) * rate_gap,
        is_fully_ground=limit == 0,
    )


def corporate_tax(active_business_income: float, deductible_expenses: float, aaii: float,
                  tax_data: TaxYearData, business_limit: float = BUSINESS_LIMIT,
                  threshold: float = PASSIVE_THRESHOLD, grind_rate: float = GRIND_RATE) -> CorporateTaxResult:
    """Calculate the corporation's tax for the year.

    Args:
        active_business_income: Pre-tax retained earnings from the business.
        deductible_expenses: Salaries, employer payroll costs and employer
            health tax paid for the year.
        aaii: Adjusted aggregate investment income.
        tax_data: Rates for the year and province.

    Returns:
        CorporateTaxResult with the active and passive tax and grind details.
    """
    taxable = max(0.0, active_business_income - deductible_expenses)
    grind = passive_income_grind(aaii, taxable, tax_data, business_limit, threshold, grind_rate)

    small_business_income = min(taxable, grind.reduced_sbd_limit)
    general_income = max(0.0, taxable - grind.reduced_sbd_limit)
    tax_on_active = (small_business_income * tax_data.corporate.small_business
                     + general_income * tax_data.corporate.general)

    return CorporateTaxResult(
        taxable_business_income=taxable,
        tax_on_active=tax_on_active,
        tax_on_passive=aaii * tax_data.corporate.passive_investment,
        after_tax_business_income=taxable - tax_on_active,
        grind=grind,
    )

"""Personal income tax on salary and dividends for one tax year.

Salary and grossed-up dividends are taxed together through the federal and
provincial progressive brackets. Dividend tax credits, the Quebec federal
abatement, the provincial surtax and the Ontario health premium are then
applied in that order.
"""

from typing import Sequence

from model.ProjectionData import PersonalTaxResult
from model.TaxYearData import HealthPremium, Surtax, TaxBracket, TaxYearData

ELIGIBLE = 'eligible'
NON_ELIGIBLE = 'non_eligible'


def tax_by_brackets(income: float, brackets: Sequence[TaxBracket]) -> float:
    """Progressive tax on ``income``.

    Args:
        income: Income after the basic personal amount.
        brackets: Brackets sorted by ascending threshold.

    Returns:
        The tax, zero at or below the first threshold.
    """
    tax = 0.0
    for i, bracket in enumerate(brackets):
        if income <= bracket.threshold:
            break
        next_threshold = brackets[i + 1].threshold if i + 1 < len(brackets) else float('inf')
        tax += (min(income, next_threshold) - bracket.threshold) * bracket.rate
        if income <= next_threshold:
            break
    return tax


def marginal_rate_at_income(brackets: Sequence[TaxBracket], income: float) -> float:
    """Rate of the highest bracket whose threshold is below ``income``."""
    rate = brackets[0].rate
    for bracket in brackets:
        if income > bracket.threshold:
            rate = bracket.rate
        else:
            break
    return rate


def provincial_surtax(provincial_tax: float, surtax: Surtax) -> float:
    result = 0.0
    if provincial_tax > surtax.first_threshold:
        result += (provincial_tax - surtax.first_threshold) * surtax.first_rate
    if provincial_tax > surtax.second_threshold:
        result += (provincial_tax - surtax.second_threshold) * surtax.second_rate
    return result


def health_premium(income: float, premium: HealthPremium) -> float:
    """Premium for the bracket income falls in, capped at its maximum.

    Args:
        income: Actual (not grossed-up) income net of the RRSP deduction.
        premium: The province's premium table; an empty table charges nothing.
    """
    if not premium.brackets or income <= premium.minimum_income:
        return 0.0

    applicable = premium.brackets[0]
    for bracket in reversed(premium.brackets):
        if income > bracket.threshold:
            applicable = bracket
            break

    return min(applicable.base + (income - applicable.threshold) * applicable.rate, applicable.max_premium)


def personal_tax(salary: float, eligible_dividends: float, non_eligible_dividends: float,
                 deduction: float, tax_data: TaxYearData) -> PersonalTaxResult:
    """Calculate combined federal and provincial personal tax.

    Capital dividends are tax-free and are not passed in.

    Args:
        salary: Employment income.
        eligible_dividends: Actual eligible dividends received.
        non_eligible_dividends: Actual non-eligible dividends received.
        deduction: RRSP deduction.
        tax_data: Rates for the year and province.

    Returns:
        PersonalTaxResult with the federal, provincial (including surtax) and
        health premium components.
    """
    dividend = tax_data.dividend
    eligible_grossed_up = eligible_dividends * (1 + dividend.eligible.gross_up)
    non_eligible_grossed_up = non_eligible_dividends * (1 + dividend.non_eligible.gross_up)

    taxable_income = max(0.0, salary + eligible_grossed_up + non_eligible_grossed_up - deduction)
    if taxable_income <= 0:
        return PersonalTaxResult()

    federal_before_credits = tax_by_brackets(
        max(0.0, taxable_income - tax_data.federal_basic_personal_amount), tax_data.federal_brackets)
    provincial_before_credits = tax_by_brackets(
        max(0.0, taxable_income - tax_data.provincial_basic_personal_amount), tax_data.provincial_brackets)

    federal_credits = (eligible_grossed_up * dividend.eligible.federal_credit
                       + non_eligible_grossed_up * dividend.non_eligible.federal_credit)
    provincial_credits = (eligible_grossed_up * dividend.eligible.provincial_credit
                          + non_eligible_grossed_up * dividend.non_eligible.provincial_credit)

    federal_tax = max(0.0, federal_before_credits - federal_credits)
    # Abatement applies to basic federal tax after credits
    if tax_data.federal_abatement:
        federal_tax *= 1 - tax_data.federal_abatement

    provincial_after_credits = max(0.0, provincial_before_credits - provincial_credits)
    surtax = provincial_surtax(provincial_after_credits, tax_data.surtax)

    premium = health_premium(
        max(0.0, salary + eligible_dividends + non_eligible_dividends - deduction), tax_data.health_premium)

    return PersonalTaxResult(
        federal_tax=federal_tax,
        provincial_tax=provincial_after_credits + surtax,
        provincial_surtax=surtax,
        health_premium=premium,
        dividend_tax_credits=federal_credits + provincial_credits,
        taxable_income=taxable_income,
    )


def effective_dividend_rate(tax_data: TaxYearData, dividend_class: str, estimated_income: float) -> float:
    """Approximate tax per dollar of actual dividend at a given income level.

    Uses the combined marginal rate at ``estimated_income`` applied to the
    grossed-up dividend, less the federal and provincial credits. The federal
    part is abated the same way ``personal_tax`` abates federal tax.

    Args:
        tax_data: Rates for the year and province.
        dividend_class: ``ELIGIBLE`` or ``NON_ELIGIBLE``.
        estimated_income: Income at which marginal rates are read.
    """
    rates = tax_data.dividend.eligible if dividend_class == ELIGIBLE else tax_data.dividend.non_eligible
    grossed_up = 1 + rates.gross_up
    federal_rate = marginal_rate_at_income(tax_data.federal_brackets, estimated_income)
    provincial_rate = marginal_rate_at_income(tax_data.provincial_brackets, estimated_income)
    federal = grossed_up * (federal_rate - rates.federal_credit) * (1 - tax_data.federal_abatement)
    provincial = grossed_up * (provincial_rate - rates.provincial_credit)
    rate = federal + provincial
    return max(0.0, rate)

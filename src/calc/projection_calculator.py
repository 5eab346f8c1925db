"""Multi-year projection of owner compensation, taxes and corporate accounts."""

import logging
from typing import List, Optional

from calc.salary_solver import FIXED_POINT
from calc.year_calculator import CarryForward, YearCalculator
from model.NotionalAccounts import NotionalAccounts
from model.ProjectionData import ProjectionSummary, SpouseSummary, YearlyResult
from model.UserInputs import UserInputs
from tax.TaxYearDataProvider import TaxYearDataProvider

logger = logging.getLogger(__name__)


def provider_for(inputs: UserInputs) -> TaxYearDataProvider:
    """Build a tax data provider covering every year of the scenario."""
    final_year = inputs.starting_year + inputs.planning_horizon - 1
    return TaxYearDataProvider(inputs.expected_inflation_rate, final_year)


def calculate_projection(inputs: UserInputs, provider: Optional[TaxYearDataProvider] = None,
                         solver_method: str = FIXED_POINT) -> ProjectionSummary:
    """Project the scenario year by year and summarize it.

    Inputs are validated before any year is computed. Each year's accounts
    and contribution room start the following year.

    Args:
        inputs: The scenario.
        provider: Tax tables to use; built from the inputs when omitted.
        solver_method: Salary solver method for the dynamic strategy.

    Returns:
        ProjectionSummary holding one YearlyResult per year, numbered from 1.

    Raises:
        ConfigurationError: If the inputs are invalid.
    """
    inputs.validate()
    if provider is None:
        provider = provider_for(inputs)

    logger.info("Projecting %d years from %d for %s (%s strategy)", inputs.planning_horizon,
                inputs.starting_year, inputs.province, inputs.salary_strategy)

    calculator = YearCalculator(inputs, provider, solver_method)
    state = CarryForward(
        accounts=NotionalAccounts(
            cda=inputs.cda_balance,
            erdtoh=inputs.erdtoh_balance,
            nrdtoh=inputs.nrdtoh_balance,
            grip=inputs.grip_balance,
            corporate_investments=inputs.corporate_investment_balance,
        ),
        rrsp_room=inputs.rrsp_room,
        tfsa_room=inputs.tfsa_room,
        spouse_rrsp_room=inputs.spouse.rrsp_room if inputs.spouse else 0.0,
        spouse_tfsa_room=inputs.spouse.tfsa_room if inputs.spouse else 0.0,
    )

    yearly_results = []
    for display_year in range(1, inputs.planning_horizon + 1):
        result = calculator.calculate(display_year, state)
        yearly_results.append(result)
        tfsa_limit = provider.get_tax_year_data(result.calendar_year, inputs.province).tfsa_annual_limit
        state = calculator.carry_forward(state, result, tfsa_limit)

    summary = calculate_summary(yearly_results)
    logger.info("Projection complete: total tax %.2f, final corporate balance %.2f",
                summary.total_tax, summary.final_corporate_balance)
    return summary


def calculate_summary(yearly_results: List[YearlyResult]) -> ProjectionSummary:
    """Aggregate yearly results, including any spouse, into a ProjectionSummary."""
    total_salary = sum(r.salary + (r.spouse.salary if r.spouse else 0.0) for r in yearly_results)
    total_dividends = sum(sum(s.dividends.gross_dividends for s in r.shareholders) for r in yearly_results)
    total_personal_tax = sum(r.total_personal_tax for r in yearly_results)
    total_active = sum(r.corporate_tax.tax_on_active for r in yearly_results)
    total_passive = sum(r.corporate_tax.tax_on_passive for r in yearly_results)
    total_refund = sum(r.rdtoh_refund for r in yearly_results)
    total_return = sum(r.investment_returns.total_return for r in yearly_results)
    total_compensation = total_salary + total_dividends
    total_tax = sum(r.total_tax for r in yearly_results)

    spouse_summary = None
    spouse_years = [r.spouse for r in yearly_results if r.spouse is not None]
    if spouse_years:
        spouse_summary = SpouseSummary(
            total_salary=sum(s.salary for s in spouse_years),
            total_dividends=sum(s.dividends.gross_dividends for s in spouse_years),
            total_personal_tax=sum(s.personal_tax.total_tax for s in spouse_years),
            total_after_tax_income=sum(s.after_tax_income for s in spouse_years),
            total_rrsp_room_generated=sum(s.rrsp_room_generated for s in spouse_years),
            total_rrsp_contributions=sum(s.rrsp_contribution for s in spouse_years),
            total_tfsa_contributions=sum(s.tfsa_contribution for s in spouse_years),
        )

    return ProjectionSummary(
        total_compensation=total_compensation,
        total_salary=total_salary,
        total_dividends=total_dividends,
        total_personal_tax=total_personal_tax,
        total_corporate_tax=total_active + total_passive,
        total_corporate_tax_on_active=total_active,
        total_corporate_tax_on_passive=total_passive,
        total_rdtoh_refund=total_refund,
        total_payroll=sum(r.total_payroll for r in yearly_results),
        total_tax=total_tax,
        effective_tax_rate=total_tax / total_compensation if total_compensation > 0 else 0.0,
        effective_compensation_rate=(total_personal_tax + total_active) / total_compensation
        if total_compensation > 0 else 0.0,
        effective_passive_rate=(total_passive - total_refund) / total_return if total_return > 0 else 0.0,
        final_corporate_balance=yearly_results[-1].notional_accounts.corporate_investments,
        total_rrsp_room_generated=sum(s.rrsp_room_generated for r in yearly_results for s in r.shareholders),
        total_rrsp_contributions=sum(s.rrsp_contribution for r in yearly_results for s in r.shareholders),
        total_tfsa_contributions=sum(s.tfsa_contribution for r in yearly_results for s in r.shareholders),
        average_annual_income=total_compensation / len(yearly_results),
        yearly_results=yearly_results,
        spouse=spouse_summary,
    )


def compare_strategies(inputs1: UserInputs, inputs2: UserInputs,
                       provider: Optional[TaxYearDataProvider] = None) -> dict:
    """Project two scenarios and report how the first compares to the second.

    Positive ``tax_savings`` means the first scenario pays less tax; positive
    ``final_balance_difference`` means it leaves more in the corporation.
    Without a ``provider`` each scenario is projected with its own, built for
    its horizon and inflation rate.
    """
    summary1 = calculate_projection(inputs1, provider)
    summary2 = calculate_projection(inputs2, provider)
    return {"summary1": summary1, "summary2": summary2, **summary_differences(summary1, summary2)}


def summary_differences(summary1: ProjectionSummary, summary2: ProjectionSummary) -> dict:
    """Tax savings, final balance and RRSP room differences of the first summary over the second."""
    return {
        "tax_savings": summary2.total_tax - summary1.total_tax,
        "final_balance_difference": summary1.final_corporate_balance - summary2.final_corporate_balance,
        "rrsp_room_difference": summary1.total_rrsp_room_generated - summary2.total_rrsp_room_generated,
    }

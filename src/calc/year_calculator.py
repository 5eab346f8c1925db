"""Compute one projection year: compensation mix, taxes and the accounts carried forward."""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from calc.notional_accounts import (InvestmentConstants, calculate_investment_returns, fund,
                                    process_salary_payment, update_accounts_from_returns)
from calc.salary_solver import FIXED_POINT, after_tax_salary, required_salary
from model.NotionalAccounts import NotionalAccounts
from model.ProjectionData import DividendFunding, ShareholderResult, YearlyResult
from model.TaxYearData import TaxYearData
from model.UserInputs import STRATEGY_DIVIDENDS_ONLY, STRATEGY_FIXED, UserInputs
from tax.CorporateTax import BUSINESS_LIMIT, GRIND_RATE, PASSIVE_THRESHOLD, corporate_tax
from tax.indexation import inflate_amount
from tax.PayrollDeductions import payroll_deductions
from tax.PersonalTax import ELIGIBLE, NON_ELIGIBLE, effective_dividend_rate, personal_tax
from tax.TaxYearDataProvider import TaxYearDataProvider

logger = logging.getLogger(__name__)

# Rough gross-up from after-tax need to taxable income for reading marginal rates
ESTIMATED_INCOME_FACTOR = 1.5
# Share of salary assumed available after tax when sizing an RRSP contribution
NET_SALARY_FRACTION = 0.6
RESIDUAL_TOLERANCE = 1.0


@dataclass(frozen=True)
class CarryForward:
    """State threaded from one year to the next."""
    accounts: NotionalAccounts
    rrsp_room: float = 0.0
    tfsa_room: float = 0.0
    spouse_rrsp_room: float = 0.0
    spouse_tfsa_room: float = 0.0


@dataclass(frozen=True)
class _Draw:
    salary: float
    funding: DividendFunding
    refund: float
    employer_cost: float


class YearCalculator:
    """Calculates single projection years for a scenario.

    The tax data provider is injected so that file loading stays with the
    caller and every year of a run reads the same indexed tables.
    """

    def __init__(self, inputs: UserInputs, provider: TaxYearDataProvider, solver_method: str = FIXED_POINT):
        self.inputs = inputs
        self.provider = provider
        self.solver_method = solver_method
        self.constants = InvestmentConstants.from_reference(provider.corporate_investment)
        limits = provider.small_business_limit
        self.business_limit = limits.get("businessLimit", BUSINESS_LIMIT)
        self.passive_threshold = limits.get("passiveThreshold", PASSIVE_THRESHOLD)
        self.grind_rate = limits.get("grindRate", GRIND_RATE)

    def _inflate(self, amount: float, years: int) -> float:
        if not self.inputs.inflate_spending_needs:
            return amount
        return inflate_amount(amount, years, self.inputs.expected_inflation_rate)

    def _draw(self, strategy: str, fixed_salary: Optional[float], required: float,
              estimated_need: float, accounts: NotionalAccounts,
              tax_data: TaxYearData) -> Tuple[_Draw, NotionalAccounts]:
        """Decide salary and dividends for one shareholder under a strategy."""
        estimated_income = estimated_need * ESTIMATED_INCOME_FACTOR
        eligible_rate = effective_dividend_rate(tax_data, ELIGIBLE, estimated_income)
        non_eligible_rate = effective_dividend_rate(tax_data, NON_ELIGIBLE, estimated_income)
        refund_rate = tax_data.rdtoh_refund_rate

        salary = 0.0
        employer_cost = 0.0
        funding = DividendFunding()
        refund = 0.0

        if strategy == STRATEGY_FIXED and fixed_salary:
            salary = fixed_salary
            payroll = payroll_deductions(salary, tax_data)
            employer_cost = payroll.employer_cost
            accounts = process_salary_payment(accounts, salary, employer_cost)
            remaining = max(0.0, required - after_tax_salary(salary, tax_data))
            if remaining > 0:
                funding, refund, accounts = fund(remaining, accounts, refund_rate, eligible_rate,
                                                 non_eligible_rate, allow_cash=True)
        elif strategy == STRATEGY_DIVIDENDS_ONLY:
            funding, refund, accounts = fund(required, accounts, refund_rate, eligible_rate,
                                             non_eligible_rate, allow_cash=True)
        else:
            funding, refund, accounts = fund(required, accounts, refund_rate, eligible_rate, non_eligible_rate)
            residual = required - funding.after_tax_income
            if residual > RESIDUAL_TOLERANCE:
                salary = required_salary(residual, tax_data, self.solver_method)
                payroll = payroll_deductions(salary, tax_data)
                employer_cost = payroll.employer_cost
                accounts = process_salary_payment(accounts, salary, employer_cost)
                # Salary covers whatever the pools could not
                funding = replace(funding, shortfall=0.0)

        if funding.shortfall > RESIDUAL_TOLERANCE:
            logger.warning("Requirement of %.2f under-funded by %.2f in %d (%s strategy)",
                           required, funding.shortfall, tax_data.year, strategy)

        return _Draw(salary, funding, refund, employer_cost), accounts

    @staticmethod
    def _settle(draw: _Draw, tfsa_contribution: float, contribute_to_rrsp: bool, rrsp_room: float,
                tax_data: TaxYearData) -> ShareholderResult:
        """Apply the RRSP deduction and compute the shareholder's personal tax and payroll."""
        rrsp_contribution = 0.0
        if contribute_to_rrsp and rrsp_room > 0:
            available = draw.funding.after_tax_income + (draw.salary * NET_SALARY_FRACTION if draw.salary > 0 else 0.0)
            rrsp_contribution = min(rrsp_room, tax_data.rrsp_dollar_limit, available)

        tax = personal_tax(draw.salary, draw.funding.eligible_dividends, draw.funding.non_eligible_dividends,
                           rrsp_contribution, tax_data)
        return ShareholderResult(
            salary=draw.salary,
            dividends=draw.funding,
            personal_tax=tax,
            payroll=payroll_deductions(draw.salary, tax_data),
            rdtoh_refund=draw.refund,
            rrsp_room_generated=draw.salary * tax_data.rrsp_contribution_rate,
            rrsp_contribution=rrsp_contribution,
            tfsa_contribution=tfsa_contribution,
        )

    def calculate(self, display_year: int, state: CarryForward) -> YearlyResult:
        """Calculate one year.

        Args:
            display_year: 1-based position in the projection.
            state: Accounts and contribution room at the start of the year.

        Returns:
            The year's YearlyResult; its notional_accounts start the next year.
        """
        inputs = self.inputs
        years_elapsed = display_year - 1
        calendar_year = inputs.starting_year + years_elapsed
        tax_data = self.provider.get_tax_year_data(calendar_year, inputs.province)

        returns = calculate_investment_returns(
            state.accounts.corporate_investments, inputs.investment_return_rate,
            inputs.canadian_equity_percent, inputs.us_equity_percent,
            inputs.international_equity_percent, inputs.fixed_income_percent,
            tax_data.rdtoh_refund_rate, self.constants)
        accounts = update_accounts_from_returns(state.accounts, returns, self.constants)

        inflated_need = self._inflate(inputs.required_income, years_elapsed)
        required = inflated_need

        tfsa_contribution = 0.0
        if inputs.maximize_tfsa and state.tfsa_room > 0:
            tfsa_contribution = min(tax_data.tfsa_annual_limit, state.tfsa_room)
            required += tfsa_contribution

        resp_contribution = 0.0
        if inputs.contribute_to_resp and inputs.resp_contribution_amount:
            resp_contribution = self._inflate(inputs.resp_contribution_amount, years_elapsed)
            required += resp_contribution

        debt_paydown = 0.0
        if inputs.pay_down_debt and inputs.debt_paydown_amount:
            # Debt payments are nominal and never inflated
            debt_paydown = inputs.debt_paydown_amount
            required += debt_paydown

        fixed_salary = None
        if inputs.fixed_salary_amount:
            fixed_salary = self._inflate(inputs.fixed_salary_amount, years_elapsed)
        draw, accounts = self._draw(inputs.salary_strategy, fixed_salary, required, inflated_need,
                                    accounts, tax_data)
        primary = self._settle(draw, tfsa_contribution, inputs.contribute_to_rrsp, state.rrsp_room, tax_data)
        employer_costs = draw.employer_cost

        spouse_result = None
        spouse = inputs.spouse
        spouse_need = self._inflate(spouse.required_income, years_elapsed) if spouse is not None else 0.0
        if spouse is not None and spouse_need > 0:
            spouse_required = spouse_need
            spouse_tfsa = 0.0
            if spouse.maximize_tfsa and state.spouse_tfsa_room > 0:
                spouse_tfsa = min(tax_data.tfsa_annual_limit, state.spouse_tfsa_room)
                spouse_required += spouse_tfsa
            spouse_fixed = self._inflate(spouse.fixed_salary_amount, years_elapsed) \
                if spouse.fixed_salary_amount else None
            spouse_draw, accounts = self._draw(spouse.salary_strategy, spouse_fixed, spouse_required,
                                               spouse_need, accounts, tax_data)
            spouse_result = self._settle(spouse_draw, spouse_tfsa, spouse.contribute_to_rrsp,
                                         state.spouse_rrsp_room, tax_data)
            employer_costs += spouse_draw.employer_cost

        total_salaries = primary.salary + (spouse_result.salary if spouse_result else 0.0)
        employer_health_tax = self.provider.employer_health_tax.total_contribution(
            inputs.province, total_salaries, calendar_year)

        aaii = returns.foreign_income + returns.realized_capital_gain * self.constants.capital_gains_inclusion_rate
        corp = corporate_tax(inputs.annual_corporate_retained_earnings,
                             total_salaries + employer_costs + employer_health_tax,
                             aaii, tax_data, self.business_limit, self.passive_threshold, self.grind_rate)
        accounts = accounts.with_changes(
            corporate_investments=accounts.corporate_investments + corp.after_tax_business_income)

        shareholders = [primary] if spouse_result is None else [primary, spouse_result]
        compensation = sum(s.salary + s.dividends.gross_dividends for s in shareholders)
        gross_dividends = sum(s.dividends.gross_dividends for s in shareholders)
        personal_taxes = sum(s.personal_tax.total_tax for s in shareholders)
        corp_share = 0.0
        if corp.after_tax_business_income > 0:
            corp_share = corp.tax_on_active * min(1.0, gross_dividends / corp.after_tax_business_income)
        integrated_rate = (personal_taxes + corp_share) / compensation if compensation > 0 else 0.0

        logger.debug("Year %d (%d): salary %.2f, dividends %.2f, corporate cash %.2f",
                     display_year, calendar_year, primary.salary, primary.dividends.gross_dividends,
                     accounts.corporate_investments)

        return YearlyResult(
            year=display_year,
            calendar_year=calendar_year,
            primary=primary,
            corporate_tax=corp,
            notional_accounts=accounts,
            investment_returns=returns,
            employer_health_tax=employer_health_tax,
            resp_contribution=resp_contribution,
            debt_paydown=debt_paydown,
            required_income=required,
            effective_integrated_rate=integrated_rate,
            spouse=spouse_result,
        )

    @staticmethod
    def carry_forward(state: CarryForward, result: YearlyResult, tfsa_limit: float) -> CarryForward:
        """Roll accounts and contribution room into the next year."""
        spouse = result.spouse
        return CarryForward(
            accounts=result.notional_accounts,
            rrsp_room=state.rrsp_room + result.primary.rrsp_room_generated - result.primary.rrsp_contribution,
            tfsa_room=state.tfsa_room + tfsa_limit - result.primary.tfsa_contribution,
            spouse_rrsp_room=state.spouse_rrsp_room + (
                spouse.rrsp_room_generated - spouse.rrsp_contribution if spouse else 0.0),
            spouse_tfsa_room=state.spouse_tfsa_room + (tfsa_limit - spouse.tfsa_contribution if spouse else 0.0),
        )

"""Result records produced by the projection engine.

Each projected year yields one YearlyResult holding everything calculated
for that year: compensation mix, personal/payroll/corporate tax, refunds,
investment returns and the notional accounts carried into the next year.
ProjectionSummary aggregates the sequence.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from model.NotionalAccounts import NotionalAccounts


@dataclass(frozen=True)
class DividendFunding:
    capital_dividends: float = 0.0
    eligible_dividends: float = 0.0
    non_eligible_dividends: float = 0.0
    regular_dividends: float = 0.0  # GRIP-backed eligible dividends that triggered no refund
    after_tax_income: float = 0.0
    shortfall: float = 0.0

    @property
    def gross_dividends(self) -> float:
        return self.capital_dividends + self.eligible_dividends + self.non_eligible_dividends


@dataclass(frozen=True)
class InvestmentReturns:
    total_return: float = 0.0
    canadian_dividends: float = 0.0
    foreign_dividends: float = 0.0
    interest: float = 0.0
    foreign_income: float = 0.0  # Foreign dividends plus interest
    realized_capital_gain: float = 0.0
    unrealized_capital_gain: float = 0.0
    cda_increase: float = 0.0
    erdtoh_increase: float = 0.0
    nrdtoh_increase: float = 0.0
    grip_increase: float = 0.0


@dataclass(frozen=True)
class PersonalTaxResult:
    federal_tax: float = 0.0
    provincial_tax: float = 0.0  # Includes surtax
    provincial_surtax: float = 0.0
    health_premium: float = 0.0
    dividend_tax_credits: float = 0.0
    taxable_income: float = 0.0

    @property
    def total_tax(self) -> float:
        return self.federal_tax + self.provincial_tax + self.health_premium


@dataclass(frozen=True)
class PayrollResult:
    cpp: float = 0.0   # CPP, or QPP in Quebec
    cpp2: float = 0.0  # CPP2, or QPP2 in Quebec
    ei: float = 0.0
    qpip: float = 0.0  # Quebec only
    employer_cost: float = 0.0

    @property
    def total_employee(self) -> float:
        return self.cpp + self.cpp2 + self.ei + self.qpip


@dataclass(frozen=True)
class PassiveIncomeGrind:
    total_passive_income: float = 0.0
    reduced_sbd_limit: float = 0.0
    sbd_reduction: float = 0.0
    additional_tax_from_grind: float = 0.0
    is_fully_ground: bool = False


@dataclass(frozen=True)
class CorporateTaxResult:
    taxable_business_income: float = 0.0
    tax_on_active: float = 0.0
    tax_on_passive: float = 0.0
    after_tax_business_income: float = 0.0
    grind: PassiveIncomeGrind = field(default_factory=PassiveIncomeGrind)

    @property
    def total_tax(self) -> float:
        return self.tax_on_active + self.tax_on_passive


@dataclass(frozen=True)
class ShareholderResult:
    """Compensation and personal taxes of one shareholder for one year."""
    salary: float = 0.0
    dividends: DividendFunding = field(default_factory=DividendFunding)
    personal_tax: PersonalTaxResult = field(default_factory=PersonalTaxResult)
    payroll: PayrollResult = field(default_factory=PayrollResult)
    rdtoh_refund: float = 0.0
    rrsp_room_generated: float = 0.0
    rrsp_contribution: float = 0.0
    tfsa_contribution: float = 0.0

    @property
    def after_tax_income(self) -> float:
        return (self.salary + self.dividends.gross_dividends
                - self.personal_tax.total_tax - self.payroll.total_employee)


@dataclass(frozen=True)
class YearlyResult:
    year: int            # Display year, 1..N
    calendar_year: int
    primary: ShareholderResult
    corporate_tax: CorporateTaxResult
    notional_accounts: NotionalAccounts
    investment_returns: InvestmentReturns
    employer_health_tax: float = 0.0
    resp_contribution: float = 0.0
    debt_paydown: float = 0.0
    required_income: float = 0.0
    effective_integrated_rate: float = 0.0
    spouse: Optional[ShareholderResult] = None

    @property
    def salary(self) -> float:
        return self.primary.salary

    @property
    def dividends(self) -> DividendFunding:
        return self.primary.dividends

    @property
    def shareholders(self) -> List[ShareholderResult]:
        return [self.primary] if self.spouse is None else [self.primary, self.spouse]

    @property
    def rdtoh_refund(self) -> float:
        return sum(s.rdtoh_refund for s in self.shareholders)

    @property
    def total_personal_tax(self) -> float:
        return sum(s.personal_tax.total_tax for s in self.shareholders)

    @property
    def total_payroll(self) -> float:
        return sum(s.payroll.total_employee for s in self.shareholders)

    @property
    def total_tax(self) -> float:
        """Personal tax + corporate tax + employee payroll deductions."""
        return self.total_personal_tax + self.corporate_tax.total_tax + self.total_payroll

    @property
    def after_tax_income(self) -> float:
        return self.primary.after_tax_income

    @property
    def total_compensation(self) -> float:
        return sum(s.salary + s.dividends.gross_dividends for s in self.shareholders)


@dataclass(frozen=True)
class SpouseSummary:
    total_salary: float = 0.0
    total_dividends: float = 0.0
    total_personal_tax: float = 0.0
    total_after_tax_income: float = 0.0
    total_rrsp_room_generated: float = 0.0
    total_rrsp_contributions: float = 0.0
    total_tfsa_contributions: float = 0.0


@dataclass(frozen=True)
class ProjectionSummary:
    total_compensation: float
    total_salary: float
    total_dividends: float
    total_personal_tax: float
    total_corporate_tax: float
    total_corporate_tax_on_active: float
    total_corporate_tax_on_passive: float
    total_rdtoh_refund: float
    total_payroll: float
    total_tax: float
    effective_tax_rate: float
    effective_compensation_rate: float
    effective_passive_rate: float
    final_corporate_balance: float
    total_rrsp_room_generated: float
    total_rrsp_contributions: float
    total_tfsa_contributions: float
    average_annual_income: float
    yearly_results: List[YearlyResult]
    spouse: Optional[SpouseSummary] = None

    def get_year(self, year: int) -> Optional[YearlyResult]:
        """Get the result for a display year (1..N), or None if out of range."""
        if 1 <= year <= len(self.yearly_results):
            return self.yearly_results[year - 1]
        return None

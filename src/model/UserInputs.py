"""Caller-supplied scenario configuration.

Scenarios are stored as ``input-parameters/<name>/spec.json`` files with
camelCase keys and turned into a UserInputs with ``UserInputs.from_spec``.
``validate`` must pass before any projection year is computed.
"""

import math
from dataclasses import dataclass, replace
from typing import List, Optional

PROVINCE_CODES = ('AB', 'BC', 'MB', 'NB', 'NL', 'NS', 'NT', 'NU', 'ON', 'PE', 'QC', 'SK', 'YT')

STRATEGY_DYNAMIC = 'dynamic'
STRATEGY_FIXED = 'fixed'
STRATEGY_DIVIDENDS_ONLY = 'dividends-only'
SALARY_STRATEGIES = (STRATEGY_DYNAMIC, STRATEGY_FIXED, STRATEGY_DIVIDENDS_ONLY)

MIN_HORIZON = 3
MAX_HORIZON = 10
MAX_REQUIRED_INCOME = 10_000_000


class ConfigurationError(ValueError):
    """Raised when a scenario cannot be projected as configured."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


@dataclass
class SpouseInputs:
    """Second shareholder drawing from the same corporation."""
    required_income: float = 0.0
    salary_strategy: str = STRATEGY_DYNAMIC
    fixed_salary_amount: Optional[float] = None
    rrsp_room: float = 0.0
    tfsa_room: float = 0.0
    maximize_tfsa: bool = False
    contribute_to_rrsp: bool = False

    @classmethod
    def from_spec(cls, spec: dict) -> 'SpouseInputs':
        return cls(
            required_income=spec.get('requiredIncome', 0.0),
            salary_strategy=spec.get('salaryStrategy', STRATEGY_DYNAMIC),
            fixed_salary_amount=spec.get('fixedSalaryAmount'),
            rrsp_room=spec.get('rrspRoom', 0.0),
            tfsa_room=spec.get('tfsaRoom', 0.0),
            maximize_tfsa=spec.get('maximizeTFSA', False),
            contribute_to_rrsp=spec.get('contributeToRRSP', False),
        )


@dataclass
class UserInputs:
    required_income: float
    province: str = 'ON'
    planning_horizon: int = 5
    starting_year: int = 2026
    expected_inflation_rate: float = 0.02
    inflate_spending_needs: bool = True

    # Starting balances
    corporate_investment_balance: float = 0.0
    cda_balance: float = 0.0
    erdtoh_balance: float = 0.0
    nrdtoh_balance: float = 0.0
    grip_balance: float = 0.0
    rrsp_room: float = 0.0
    tfsa_room: float = 0.0

    # Portfolio (percentages summing to 100)
    investment_return_rate: float = 0.0431
    canadian_equity_percent: float = 33.33
    us_equity_percent: float = 33.33
    international_equity_percent: float = 33.34
    fixed_income_percent: float = 0.0

    annual_corporate_retained_earnings: float = 0.0

    salary_strategy: str = STRATEGY_DYNAMIC
    fixed_salary_amount: Optional[float] = None

    maximize_tfsa: bool = False
    contribute_to_rrsp: bool = False
    contribute_to_resp: bool = False
    pay_down_debt: bool = False
    resp_contribution_amount: float = 0.0
    debt_paydown_amount: float = 0.0

    spouse: Optional[SpouseInputs] = None

    @classmethod
    def from_spec(cls, spec: dict) -> 'UserInputs':
        """Build inputs from a spec.json dictionary (camelCase keys)."""
        spouse_spec = spec.get('spouse')
        return cls(
            required_income=spec.get('requiredIncome', 0.0),
            province=spec.get('province', 'ON'),
            planning_horizon=spec.get('planningHorizon', 5),
            starting_year=spec.get('startingYear', 2026),
            expected_inflation_rate=spec.get('expectedInflationRate', 0.02),
            inflate_spending_needs=spec.get('inflateSpendingNeeds', True),
            corporate_investment_balance=spec.get('corporateInvestmentBalance', 0.0),
            cda_balance=spec.get('cdaBalance', 0.0),
            erdtoh_balance=spec.get('eRDTOHBalance', 0.0),
            nrdtoh_balance=spec.get('nRDTOHBalance', 0.0),
            grip_balance=spec.get('gripBalance', 0.0),
            rrsp_room=spec.get('rrspRoom', 0.0),
            tfsa_room=spec.get('tfsaRoom', 0.0),
            investment_return_rate=spec.get('investmentReturnRate', 0.0431),
            canadian_equity_percent=spec.get('canadianEquityPercent', 33.33),
            us_equity_percent=spec.get('usEquityPercent', 33.33),
            international_equity_percent=spec.get('internationalEquityPercent', 33.34),
            fixed_income_percent=spec.get('fixedIncomePercent', 0.0),
            annual_corporate_retained_earnings=spec.get('annualCorporateRetainedEarnings', 0.0),
            salary_strategy=spec.get('salaryStrategy', STRATEGY_DYNAMIC),
            fixed_salary_amount=spec.get('fixedSalaryAmount'),
            maximize_tfsa=spec.get('maximizeTFSA', False),
            contribute_to_rrsp=spec.get('contributeToRRSP', False),
            contribute_to_resp=spec.get('contributeToRESP', False),
            pay_down_debt=spec.get('payDownDebt', False),
            resp_contribution_amount=spec.get('respContributionAmount', 0.0),
            debt_paydown_amount=spec.get('debtPaydownAmount', 0.0),
            spouse=SpouseInputs.from_spec(spouse_spec) if spouse_spec else None,
        )

    def with_strategy(self, salary_strategy: str, fixed_salary_amount: Optional[float] = None) -> 'UserInputs':
        """Copy of these inputs with only the salary strategy changed."""
        return replace(self, salary_strategy=salary_strategy,
                       fixed_salary_amount=fixed_salary_amount if fixed_salary_amount is not None
                       else self.fixed_salary_amount)

    def validate(self) -> None:
        """Raise ConfigurationError listing every problem with these inputs."""
        errors = []

        if self.province not in PROVINCE_CODES:
            errors.append(f"Unknown province code '{self.province}'. Expected one of {', '.join(PROVINCE_CODES)}")

        if self.required_income < 0:
            errors.append("Required income cannot be negative")
        elif self.required_income > MAX_REQUIRED_INCOME:
            errors.append(f"Required income cannot exceed ${MAX_REQUIRED_INCOME:,}")

        if not isinstance(self.planning_horizon, int) or not MIN_HORIZON <= self.planning_horizon <= MAX_HORIZON:
            errors.append(f"Planning horizon must be between {MIN_HORIZON} and {MAX_HORIZON} years")

        if not 0 <= self.expected_inflation_rate <= 0.10:
            errors.append("Inflation rate must be between 0% and 10%")

        if not 0 <= self.investment_return_rate <= 0.20:
            errors.append("Investment return rate must be between 0% and 20%")

        allocation = {
            "Canadian equity": self.canadian_equity_percent,
            "US equity": self.us_equity_percent,
            "International equity": self.international_equity_percent,
            "Fixed income": self.fixed_income_percent,
        }
        for label, percent in allocation.items():
            if not 0 <= percent <= 100:
                errors.append(f"{label} must be between 0% and 100%")
        total = sum(allocation.values())
        if not math.isclose(total, 100, abs_tol=0.01 + 1e-9):
            errors.append(f"Portfolio allocation must sum to 100% (currently {total:.2f}%)")

        non_negative = {
            "Corporate investment balance": self.corporate_investment_balance,
            "CDA balance": self.cda_balance,
            "eRDTOH balance": self.erdtoh_balance,
            "nRDTOH balance": self.nrdtoh_balance,
            "GRIP balance": self.grip_balance,
            "RRSP room": self.rrsp_room,
            "TFSA room": self.tfsa_room,
            "Annual retained earnings": self.annual_corporate_retained_earnings,
            "RESP contribution amount": self.resp_contribution_amount,
            "Debt paydown amount": self.debt_paydown_amount,
        }
        for label, value in non_negative.items():
            if value < 0:
                errors.append(f"{label} cannot be negative")

        errors.extend(_strategy_errors(self.salary_strategy, self.fixed_salary_amount, ""))

        if self.spouse is not None:
            if self.spouse.required_income < 0:
                errors.append("Spouse required income cannot be negative")
            if self.spouse.rrsp_room < 0 or self.spouse.tfsa_room < 0:
                errors.append("Spouse contribution room cannot be negative")
            errors.extend(_strategy_errors(self.spouse.salary_strategy, self.spouse.fixed_salary_amount, "Spouse: "))

        if errors:
            raise ConfigurationError(errors)


def _strategy_errors(strategy: str, fixed_amount: Optional[float], prefix: str) -> List[str]:
    if strategy not in SALARY_STRATEGIES:
        return [f"{prefix}Salary strategy '{strategy}' must be one of {', '.join(SALARY_STRATEGIES)}"]
    if strategy == STRATEGY_FIXED and (not fixed_amount or fixed_amount <= 0):
        return [f"{prefix}Fixed salary amount must be greater than $0 when using fixed salary strategy"]
    return []

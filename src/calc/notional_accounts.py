"""Corporate notional account engine.

Accrues investment returns into the corporation's notional pools and pays
dividends out of them in a fixed priority order. All operations take a
NotionalAccounts value and return a new one.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from model.NotionalAccounts import POOL_EPSILON, NotionalAccounts
from model.ProjectionData import DividendFunding, InvestmentReturns

logger = logging.getLogger(__name__)

CAPITAL = 'capital'
ELIGIBLE = 'eligible'
NON_ELIGIBLE = 'non_eligible'

CASH = 'corporate_investments'


@dataclass(frozen=True)
class InvestmentConstants:
    """Return composition and investment income tax constants.

    Built from the ``corporateInvestment`` block of federal-details.json.
    """
    canadian_dividend_yield: float = 0.024
    us_dividend_yield: float = 0.015
    international_dividend_yield: float = 0.020
    realized_gain_fraction: float = 0.5
    capital_gains_inclusion_rate: float = 0.5
    non_eligible_refundable_rate: float = 0.3067
    non_refundable_rate: float = 0.265
    foreign_withholding_credit_rate: float = 0.0

    @classmethod
    def from_reference(cls, block: dict) -> 'InvestmentConstants':
        defaults = cls()
        return cls(
            canadian_dividend_yield=block.get("canadianDividendYield", defaults.canadian_dividend_yield),
            us_dividend_yield=block.get("usDividendYield", defaults.us_dividend_yield),
            international_dividend_yield=block.get("internationalDividendYield",
                                                   defaults.international_dividend_yield),
            realized_gain_fraction=block.get("realizedGainFraction", defaults.realized_gain_fraction),
            capital_gains_inclusion_rate=block.get("capitalGainsInclusionRate",
                                                   defaults.capital_gains_inclusion_rate),
            non_eligible_refundable_rate=block.get("nonEligibleRefundableRate",
                                                   defaults.non_eligible_refundable_rate),
            non_refundable_rate=block.get("nonRefundableRate", defaults.non_refundable_rate),
            foreign_withholding_credit_rate=block.get("foreignWithholdingCreditRate",
                                                      defaults.foreign_withholding_credit_rate),
        )


@dataclass(frozen=True)
class ReturnComposition:
    canadian_dividend_rate: float
    foreign_dividend_rate: float
    interest_rate: float
    capital_gain_rate: float

    @property
    def foreign_income_rate(self) -> float:
        return self.foreign_dividend_rate + self.interest_rate


def return_composition(return_rate: float, canadian_pct: float, us_pct: float, international_pct: float,
                       fixed_income_pct: float,
                       constants: InvestmentConstants = InvestmentConstants()) -> ReturnComposition:
    """Split a total return rate into dividend, interest and capital gain rates.

    Allocation shares are percentages. Whatever is not dividends or interest
    is capital gain.
    """
    canadian = canadian_pct / 100 * constants.canadian_dividend_yield
    foreign_pct = us_pct + international_pct
    blended_yield = 0.0
    if foreign_pct > 0:
        blended_yield = (constants.us_dividend_yield * us_pct
                         + constants.international_dividend_yield * international_pct) / foreign_pct
    foreign = foreign_pct / 100 * blended_yield
    interest = fixed_income_pct / 100 * return_rate
    return ReturnComposition(
        canadian_dividend_rate=canadian,
        foreign_dividend_rate=foreign,
        interest_rate=interest,
        capital_gain_rate=return_rate - canadian - foreign - interest,
    )


def calculate_investment_returns(balance: float, return_rate: float, canadian_pct: float, us_pct: float,
                                 international_pct: float, fixed_income_pct: float, part_iv_rate: float,
                                 constants: InvestmentConstants = InvestmentConstants()) -> InvestmentReturns:
    """Calculate one year of returns on the corporate portfolio.

    Args:
        balance: Corporate investment balance at the start of the year.
        return_rate: Total annual return rate.
        canadian_pct, us_pct, international_pct, fixed_income_pct: Allocation in percent.
        part_iv_rate: Refundable Part IV rate on Canadian dividends received.
        constants: Yields and investment income tax rates.

    Returns:
        InvestmentReturns; all zero for a non-positive balance.
    """
    if balance <= 0:
        return InvestmentReturns()

    composition = return_composition(return_rate, canadian_pct, us_pct, international_pct,
                                     fixed_income_pct, constants)
    canadian_dividends = balance * composition.canadian_dividend_rate
    foreign_dividends = balance * composition.foreign_dividend_rate
    interest = balance * composition.interest_rate
    foreign_income = foreign_dividends + interest
    capital_gain = balance * composition.capital_gain_rate
    realized = capital_gain * constants.realized_gain_fraction
    taxable_gain = realized * constants.capital_gains_inclusion_rate

    nrdtoh_increase = max(0.0, (foreign_income + taxable_gain) * constants.non_eligible_refundable_rate
                          - foreign_dividends * constants.foreign_withholding_credit_rate)

    return InvestmentReturns(
        total_return=balance * return_rate,
        canadian_dividends=canadian_dividends,
        foreign_dividends=foreign_dividends,
        interest=interest,
        foreign_income=foreign_income,
        realized_capital_gain=realized,
        unrealized_capital_gain=capital_gain - realized,
        cda_increase=realized - taxable_gain,
        erdtoh_increase=canadian_dividends * part_iv_rate,
        nrdtoh_increase=nrdtoh_increase,
        grip_increase=canadian_dividends,
    )


def update_accounts_from_returns(accounts: NotionalAccounts, returns: InvestmentReturns,
                                 constants: InvestmentConstants = InvestmentConstants()) -> NotionalAccounts:
    """Add a year's returns to the pools and cash.

    Cash grows by the total return less the non-refundable tax on
    investment income; the refundable part is carried in nRDTOH.
    """
    taxable_income = returns.foreign_income + returns.realized_capital_gain * constants.capital_gains_inclusion_rate
    return accounts.with_changes(
        cda=accounts.cda + returns.cda_increase,
        erdtoh=accounts.erdtoh + returns.erdtoh_increase,
        nrdtoh=accounts.nrdtoh + returns.nrdtoh_increase,
        grip=accounts.grip + returns.grip_increase,
        corporate_investments=accounts.corporate_investments + returns.total_return
        - taxable_income * constants.non_refundable_rate,
    )


def process_salary_payment(accounts: NotionalAccounts, salary: float, employer_cost: float) -> NotionalAccounts:
    return accounts.with_changes(corporate_investments=accounts.corporate_investments - salary - employer_cost)


@dataclass(frozen=True)
class PolicyStep:
    """One step of the dividend cascade.

    Attributes:
        name: Label used in logs.
        pool: Account that limits the step's dividends.
        dividend_class: CAPITAL, ELIGIBLE or NON_ELIGIBLE.
        refund_pool: RDTOH pool refunded by the dividend, if any.
        consumes_grip: Whether the dividend is designated eligible out of GRIP.
        requires_cash: Step only runs when cash-backed dividends are allowed.
        after_exhausted: Step only runs once this pool is empty.
    """
    name: str
    pool: str
    dividend_class: str
    refund_pool: Optional[str] = None
    consumes_grip: bool = False
    requires_cash: bool = False
    after_exhausted: Optional[str] = None


DEPLETION_ORDER: Tuple[PolicyStep, ...] = (
    PolicyStep('capital dividends', 'cda', CAPITAL),
    PolicyStep('eRDTOH eligible dividends', 'erdtoh', ELIGIBLE, refund_pool='erdtoh', consumes_grip=True),
    PolicyStep('nRDTOH non-eligible dividends', 'nrdtoh', NON_ELIGIBLE, refund_pool='nrdtoh'),
    PolicyStep('eRDTOH non-eligible dividends', 'erdtoh', NON_ELIGIBLE, refund_pool='erdtoh',
               after_exhausted='nrdtoh'),
    PolicyStep('GRIP eligible dividends', 'grip', ELIGIBLE, consumes_grip=True),
    PolicyStep('cash non-eligible dividends', CASH, NON_ELIGIBLE, requires_cash=True),
)


def _step_capacity(step: PolicyStep, balances: dict, refund_rate: float) -> float:
    if step.refund_pool is not None:
        capacity = balances[step.refund_pool] / refund_rate if refund_rate > 0 else 0.0
    else:
        capacity = balances[step.pool]
    if step.consumes_grip:
        capacity = min(capacity, balances['grip'])
    return max(0.0, capacity)


def fund(target: float, accounts: NotionalAccounts, refund_rate: float, eligible_rate: float,
         non_eligible_rate: float, allow_cash: bool = False,
         steps: Tuple[PolicyStep, ...] = DEPLETION_ORDER) -> Tuple[DividendFunding, float, NotionalAccounts]:
    """Pay dividends out of the notional pools until ``target`` after-tax income is reached.

    Steps run in order. Each grosses the remaining after-tax need up at its
    class's effective rate, caps the dividend at the step's capacity, and
    reduces the pools and cash. Corporate cash falls by the dividend less any
    RDTOH refund.

    Args:
        target: After-tax income to deliver.
        accounts: Accounts before any dividend is paid.
        refund_rate: RDTOH refund per dollar of taxable dividend.
        eligible_rate: Effective personal tax rate on eligible dividends.
        non_eligible_rate: Effective personal tax rate on non-eligible dividends.
        allow_cash: Fund any remainder with non-eligible dividends from cash.
        steps: Cascade to run.

    Returns:
        Tuple of (DividendFunding, total RDTOH refund, updated accounts). A
        remainder that could not be funded is reported as the shortfall.
    """
    balances = accounts.to_dict()
    rates = {CAPITAL: 0.0, ELIGIBLE: eligible_rate, NON_ELIGIBLE: non_eligible_rate}
    paid = {CAPITAL: 0.0, ELIGIBLE: 0.0, NON_ELIGIBLE: 0.0}
    regular = 0.0
    refund_total = 0.0
    after_tax_total = 0.0
    remaining = target

    for step in steps:
        if remaining <= 0:
            break
        if step.requires_cash and not allow_cash:
            continue
        if step.after_exhausted is not None and balances[step.after_exhausted] > POOL_EPSILON:
            continue
        rate = rates[step.dividend_class]
        if rate >= 1:
            continue
        capacity = _step_capacity(step, balances, refund_rate)
        if capacity <= 0:
            continue

        dividend = min(remaining / (1 - rate), capacity)
        after_tax = dividend * (1 - rate)
        refund = 0.0
        if step.refund_pool is not None:
            refund = min(dividend * refund_rate, balances[step.refund_pool])
            balances[step.refund_pool] = max(0.0, balances[step.refund_pool] - refund)
        elif step.pool != CASH:
            balances[step.pool] = max(0.0, balances[step.pool] - dividend)
        if step.consumes_grip and step.pool != 'grip':
            balances['grip'] = max(0.0, balances['grip'] - dividend)
        balances[CASH] -= dividend - refund

        paid[step.dividend_class] += dividend
        if step.pool == 'grip':
            regular += dividend
        refund_total += refund
        after_tax_total += after_tax
        remaining -= after_tax
        logger.debug("%s: dividend %.2f, after-tax %.2f, refund %.2f, remaining %.2f",
                     step.name, dividend, after_tax, refund, remaining)

    funding = DividendFunding(
        capital_dividends=paid[CAPITAL],
        eligible_dividends=paid[ELIGIBLE],
        non_eligible_dividends=paid[NON_ELIGIBLE],
        regular_dividends=regular,
        after_tax_income=after_tax_total,
        shortfall=max(0.0, remaining),
    )
    return funding, refund_total, NotionalAccounts(**balances)


def dividend_capacity(accounts: NotionalAccounts, refund_rate: float) -> dict:
    """Dividends each pool could support right now, before cash-backed dividends.

    Returns:
        Dict with capital, eligible (refund-bearing and GRIP-only),
        non-eligible (nRDTOH plus leftover eRDTOH) and total capacity.
    """
    capital = max(0.0, accounts.cda)
    grip = max(0.0, accounts.grip)
    erdtoh_capacity = max(0.0, accounts.erdtoh) / refund_rate if refund_rate > 0 else 0.0
    nrdtoh_capacity = max(0.0, accounts.nrdtoh) / refund_rate if refund_rate > 0 else 0.0
    eligible_with_refund = min(erdtoh_capacity, grip)
    # eRDTOH left over once GRIP is used up can still be recovered with non-eligible dividends
    non_eligible = nrdtoh_capacity + (erdtoh_capacity - eligible_with_refund)
    return {
        "capital": capital,
        "eligible_with_refund": eligible_with_refund,
        "eligible_from_grip": grip - eligible_with_refund,
        "eligible": grip,
        "non_eligible": non_eligible,
        "total": capital + grip + non_eligible,
    }

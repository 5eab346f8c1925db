"""Side-by-side comparison of preset compensation strategies.

The scenario is projected once per strategy with only the salary strategy
changed. Winners are picked by lowest total tax, highest final corporate
balance, and a weighted score of the two.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from calc.projection_calculator import calculate_projection, provider_for
from model.ProjectionData import ProjectionSummary
from model.UserInputs import STRATEGY_DIVIDENDS_ONLY, STRATEGY_DYNAMIC, STRATEGY_FIXED, UserInputs
from tax.TaxYearDataProvider import TaxYearDataProvider

logger = logging.getLogger(__name__)

CORPORATE_LIQUIDATION_RATE = 0.40
DEFAULT_MARGINAL_RATE = 0.35
LOWER_RATE_DROP = 0.10
LOWER_RATE_FLOOR = 0.20
TAX_WEIGHT = 0.6
BALANCE_WEIGHT = 0.4

SALARY_AT_YMPE = 'salary-at-ympe'
DIVIDENDS_ONLY = 'dividends-only'
DYNAMIC = 'dynamic'
CURRENT_SETUP = 'current-setup'


@dataclass(frozen=True)
class AfterTaxWealth:
    """Wealth if everything were liquidated at the end of the horizon.

    Pre-existing RRSP and TFSA balances are left out since they are the same
    under every strategy.
    """
    at_current_rate: float
    at_lower_rate: float
    at_top_rate: float
    current_rrsp_withdrawal_rate: float
    lower_rrsp_withdrawal_rate: float
    top_rrsp_withdrawal_rate: float
    corporate_liquidation_rate: float = CORPORATE_LIQUIDATION_RATE


@dataclass
class StrategyResult:
    id: str
    label: str
    description: str
    summary: ProjectionSummary
    tax_savings: float = 0.0
    balance_difference: float = 0.0
    rrsp_room_difference: float = 0.0
    after_tax_wealth: Optional[AfterTaxWealth] = None
    is_current_setup: bool = False


@dataclass
class ComparisonResult:
    strategies: List[StrategyResult]
    lowest_tax: str
    highest_balance: str
    best_overall: str
    yearly_data: Dict[str, list] = field(default_factory=dict)

    def get(self, strategy_id: str) -> Optional[StrategyResult]:
        return next((s for s in self.strategies if s.id == strategy_id), None)


def calculate_after_tax_wealth(summary: ProjectionSummary, average_marginal_rate: float,
                               top_rate: float) -> AfterTaxWealth:
    """Value RRSP contributions and the corporate balance net of tax on the way out.

    RRSP contributions are valued at three withdrawal rates: the projection's
    average rate, 10 points lower (floored at 20%) and the province's top
    rate. The corporate balance is assumed paid out at 40%.
    """
    lower_rate = max(average_marginal_rate - LOWER_RATE_DROP, LOWER_RATE_FLOOR)
    base = summary.total_compensation - summary.total_tax
    corporate = summary.final_corporate_balance * (1 - CORPORATE_LIQUIDATION_RATE)
    rrsp = summary.total_rrsp_contributions
    return AfterTaxWealth(
        at_current_rate=base + rrsp * (1 - average_marginal_rate) + corporate,
        at_lower_rate=base + rrsp * (1 - lower_rate) + corporate,
        at_top_rate=base + rrsp * (1 - top_rate) + corporate,
        current_rrsp_withdrawal_rate=average_marginal_rate,
        lower_rrsp_withdrawal_rate=lower_rate,
        top_rrsp_withdrawal_rate=top_rate,
    )


def _score(summary: ProjectionSummary, max_tax: float, max_balance: float) -> float:
    tax_part = (1 - summary.total_tax / max_tax) * TAX_WEIGHT if max_tax > 0 else 0.0
    balance_part = summary.final_corporate_balance / max_balance * BALANCE_WEIGHT if max_balance > 0 else 0.0
    return tax_part + balance_part


def run_strategy_comparison(inputs: UserInputs,
                            provider: Optional[TaxYearDataProvider] = None) -> ComparisonResult:
    """Project the preset strategies (and the user's own, if custom) and rank them.

    Args:
        inputs: The scenario; everything except the salary strategy is kept.
        provider: Tax tables to use; built from the inputs when omitted.

    Returns:
        ComparisonResult with per-strategy summaries, diffs against the best
        overall strategy, after-tax wealth and the winners.
    """
    inputs.validate()
    if provider is None:
        provider = provider_for(inputs)

    ympe = provider.get_tax_year_data(inputs.starting_year, inputs.province).cpp.ympe
    definitions = [
        (SALARY_AT_YMPE, 'Salary at YMPE',
         f"Fixed salary at ${ympe:,.0f} (maximizes CPP, generates RRSP room)",
         inputs.with_strategy(STRATEGY_FIXED, ympe), False),
        (DIVIDENDS_ONLY, 'Dividends Only',
         'Zero salary, all compensation via dividends (no CPP, no RRSP room)',
         inputs.with_strategy(STRATEGY_DIVIDENDS_ONLY), False),
        (DYNAMIC, 'Dynamic Optimizer',
         'Pools are drawn first and salary covers the rest each year',
         inputs.with_strategy(STRATEGY_DYNAMIC), False),
    ]

    if inputs.salary_strategy == STRATEGY_DIVIDENDS_ONLY:
        definitions.insert(0, (CURRENT_SETUP, 'My Current Setup', 'Your current dividends-only setup',
                               inputs, True))
    elif inputs.salary_strategy == STRATEGY_FIXED and inputs.fixed_salary_amount:
        definitions.insert(0, (CURRENT_SETUP, 'My Current Setup',
                               f"Your current fixed salary of ${inputs.fixed_salary_amount:,.0f}", inputs, True))

    strategies = []
    for strategy_id, label, description, variant, is_current in definitions:
        logger.debug("Projecting strategy %s", strategy_id)
        strategies.append(StrategyResult(strategy_id, label, description,
                                         calculate_projection(variant, provider), is_current_setup=is_current))

    lowest_tax = min(strategies, key=lambda s: s.summary.total_tax)
    highest_balance = max(strategies, key=lambda s: s.summary.final_corporate_balance)
    max_tax = max(s.summary.total_tax for s in strategies)
    max_balance = max(s.summary.final_corporate_balance for s in strategies)
    best = max(strategies, key=lambda s: _score(s.summary, max_tax, max_balance))

    top_rate = provider.provincial.top_combined_rate(inputs.province)
    for s in strategies:
        summary = s.summary
        s.tax_savings = best.summary.total_tax - summary.total_tax
        s.balance_difference = summary.final_corporate_balance - best.summary.final_corporate_balance
        s.rrsp_room_difference = summary.total_rrsp_room_generated - best.summary.total_rrsp_room_generated
        average_rate = (summary.total_tax / summary.total_compensation
                        if summary.total_compensation > 0 else DEFAULT_MARGINAL_RATE)
        s.after_tax_wealth = calculate_after_tax_wealth(summary, average_rate, top_rate)

    logger.info("Strategy comparison: lowest tax %s, highest balance %s, best overall %s",
                lowest_tax.id, highest_balance.id, best.id)

    return ComparisonResult(
        strategies=strategies,
        lowest_tax=lowest_tax.id,
        highest_balance=highest_balance.id,
        best_overall=best.id,
        yearly_data={s.id: s.summary.yearly_results for s in strategies},
    )

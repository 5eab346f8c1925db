import os
import sys
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))
from calc.projection_calculator import calculate_projection
from calc.strategy_comparison import (CURRENT_SETUP, DIVIDENDS_ONLY, DYNAMIC, SALARY_AT_YMPE,
                                      calculate_after_tax_wealth, run_strategy_comparison)
from model.UserInputs import UserInputs
from tax.TaxYearDataProvider import TaxYearDataProvider


@pytest.fixture(scope="module")
def provider():
    return TaxYearDataProvider(0.02, 2035)


def make_inputs(**overrides) -> UserInputs:
    values = dict(
        required_income=90000,
        planning_horizon=4,
        corporate_investment_balance=400000,
        cda_balance=5000,
        nrdtoh_balance=6000,
        grip_balance=10000,
        annual_corporate_retained_earnings=220000,
    )
    values.update(overrides)
    return UserInputs(**values)


@pytest.fixture(scope="module")
def dynamic_comparison(provider):
    return run_strategy_comparison(make_inputs(), provider)


def test_preset_strategies_for_dynamic_user(dynamic_comparison):
    assert [s.id for s in dynamic_comparison.strategies] == [SALARY_AT_YMPE, DIVIDENDS_ONLY, DYNAMIC]
    assert not any(s.is_current_setup for s in dynamic_comparison.strategies)


def test_current_setup_added_for_fixed_salary(provider):
    result = run_strategy_comparison(make_inputs(salary_strategy='fixed', fixed_salary_amount=50000), provider)

    current = result.strategies[0]
    assert current.id == CURRENT_SETUP
    assert current.is_current_setup
    assert '$50,000' in current.description


def test_current_setup_added_for_dividends_only(provider):
    result = run_strategy_comparison(make_inputs(salary_strategy='dividends-only'), provider)

    assert result.strategies[0].id == CURRENT_SETUP
    assert len(result.strategies) == 4


def test_salary_at_ympe_pays_ympe(dynamic_comparison):
    ympe = dynamic_comparison.get(SALARY_AT_YMPE)

    assert ympe.summary.yearly_results[0].salary == pytest.approx(74600)


def test_dividends_only_pays_no_salary(dynamic_comparison):
    assert dynamic_comparison.get(DIVIDENDS_ONLY).summary.total_salary == 0
    assert dynamic_comparison.get(DIVIDENDS_ONLY).summary.total_rrsp_room_generated == 0


def test_winners(dynamic_comparison):
    strategies = dynamic_comparison.strategies

    assert dynamic_comparison.lowest_tax == min(strategies, key=lambda s: s.summary.total_tax).id
    assert dynamic_comparison.highest_balance == max(
        strategies, key=lambda s: s.summary.final_corporate_balance).id
    assert dynamic_comparison.best_overall in [s.id for s in strategies]


def test_differences_are_against_best_overall(dynamic_comparison):
    best = dynamic_comparison.get(dynamic_comparison.best_overall)

    assert best.tax_savings == 0
    assert best.balance_difference == 0
    assert best.rrsp_room_difference == 0
    for s in dynamic_comparison.strategies:
        assert s.tax_savings == pytest.approx(best.summary.total_tax - s.summary.total_tax)


def test_after_tax_wealth_rates(dynamic_comparison):
    for s in dynamic_comparison.strategies:
        wealth = s.after_tax_wealth
        assert wealth.lower_rrsp_withdrawal_rate == pytest.approx(
            max(wealth.current_rrsp_withdrawal_rate - 0.10, 0.20))
        assert wealth.top_rrsp_withdrawal_rate == pytest.approx(0.5353)
        assert wealth.corporate_liquidation_rate == 0.40


def test_yearly_data_per_strategy(dynamic_comparison):
    assert set(dynamic_comparison.yearly_data) == {SALARY_AT_YMPE, DIVIDENDS_ONLY, DYNAMIC}
    assert all(len(years) == 4 for years in dynamic_comparison.yearly_data.values())


def test_get_unknown_strategy(dynamic_comparison):
    assert dynamic_comparison.get('nope') is None


def test_calculate_after_tax_wealth(provider):
    summary = calculate_projection(make_inputs(contribute_to_rrsp=True, rrsp_room=20000,
                                               salary_strategy='fixed', fixed_salary_amount=80000), provider)

    wealth = calculate_after_tax_wealth(summary, 0.25, 0.53)

    base = summary.total_compensation - summary.total_tax
    corporate = summary.final_corporate_balance * 0.6
    rrsp = summary.total_rrsp_contributions
    assert rrsp > 0
    assert wealth.at_current_rate == pytest.approx(base + rrsp * 0.75 + corporate)
    assert wealth.at_lower_rate == pytest.approx(base + rrsp * 0.80 + corporate)
    assert wealth.at_top_rate == pytest.approx(base + rrsp * 0.47 + corporate)

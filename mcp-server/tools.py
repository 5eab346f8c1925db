"""Corporate Planner Tools for MCP Server.

This module provides the tool implementations that wrap the projection
engine and expose scenario results through MCP.
"""

import os
import sys
import json
import logging
from typing import Dict, List, Optional

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from calc.notional_accounts import dividend_capacity
from calc.projection_calculator import calculate_projection, provider_for, summary_differences
from calc.strategy_comparison import run_strategy_comparison
from model.ProjectionData import ProjectionSummary, ShareholderResult, YearlyResult
from model.UserInputs import UserInputs

logger = logging.getLogger(__name__)


def _shareholder_details(s: ShareholderResult) -> dict:
    return {
        "salary": round(s.salary, 2),
        "dividends": {
            "capital": round(s.dividends.capital_dividends, 2),
            "eligible": round(s.dividends.eligible_dividends, 2),
            "non_eligible": round(s.dividends.non_eligible_dividends, 2),
            "regular": round(s.dividends.regular_dividends, 2),
            "gross": round(s.dividends.gross_dividends, 2),
            "shortfall": round(s.dividends.shortfall, 2)
        },
        "personal_tax": {
            "federal": round(s.personal_tax.federal_tax, 2),
            "provincial": round(s.personal_tax.provincial_tax, 2),
            "provincial_surtax": round(s.personal_tax.provincial_surtax, 2),
            "health_premium": round(s.personal_tax.health_premium, 2),
            "dividend_tax_credits": round(s.personal_tax.dividend_tax_credits, 2),
            "taxable_income": round(s.personal_tax.taxable_income, 2),
            "total": round(s.personal_tax.total_tax, 2)
        },
        "payroll": {
            "cpp": round(s.payroll.cpp, 2),
            "cpp2": round(s.payroll.cpp2, 2),
            "ei": round(s.payroll.ei, 2),
            "qpip": round(s.payroll.qpip, 2),
            "employee_total": round(s.payroll.total_employee, 2),
            "employer_cost": round(s.payroll.employer_cost, 2)
        },
        "rdtoh_refund": round(s.rdtoh_refund, 2),
        "rrsp_room_generated": round(s.rrsp_room_generated, 2),
        "rrsp_contribution": round(s.rrsp_contribution, 2),
        "tfsa_contribution": round(s.tfsa_contribution, 2),
        "after_tax_income": round(s.after_tax_income, 2)
    }


def _summary_totals(summary: ProjectionSummary) -> dict:
    return {
        "total_compensation": round(summary.total_compensation, 2),
        "total_salary": round(summary.total_salary, 2),
        "total_dividends": round(summary.total_dividends, 2),
        "total_personal_tax": round(summary.total_personal_tax, 2),
        "total_corporate_tax": round(summary.total_corporate_tax, 2),
        "total_payroll": round(summary.total_payroll, 2),
        "total_rdtoh_refund": round(summary.total_rdtoh_refund, 2),
        "total_tax": round(summary.total_tax, 2),
        "final_corporate_balance": round(summary.final_corporate_balance, 2),
        "total_rrsp_room_generated": round(summary.total_rrsp_room_generated, 2)
    }


class CorporatePlannerTools:
    """Tools that wrap the projection engine for one scenario."""

    def __init__(self, base_path: str, scenario_name: str):
        """Load the scenario and project it.

        Args:
            base_path: Path to the project root directory
            scenario_name: Name of the scenario folder in input-parameters
        """
        self.base_path = base_path
        self.scenario_name = scenario_name
        self.spec = self._load_spec()
        self.inputs = UserInputs.from_spec(self.spec)
        self.provider = provider_for(self.inputs)
        self.summary: ProjectionSummary = calculate_projection(self.inputs, self.provider)

    def _load_spec(self) -> dict:
        spec_path = os.path.join(
            self.base_path, 'input-parameters', self.scenario_name, 'spec.json'
        )
        with open(spec_path, 'r') as f:
            return json.load(f)

    @property
    def first_year(self) -> int:
        return self.inputs.starting_year

    @property
    def last_year(self) -> int:
        return self.inputs.starting_year + self.inputs.planning_horizon - 1

    def _get_year(self, year: int) -> Optional[YearlyResult]:
        return next((r for r in self.summary.yearly_results if r.calendar_year == year), None)

    def get_scenario_overview(self) -> dict:
        """Get an overview of the scenario's inputs."""
        inputs = self.inputs
        overview = {
            "scenario_name": self.scenario_name,
            "province": inputs.province,
            "planning_horizon": {
                "first_year": self.first_year,
                "last_year": self.last_year,
                "years": inputs.planning_horizon
            },
            "required_income": inputs.required_income,
            "inflation": {
                "rate": inputs.expected_inflation_rate,
                "inflate_spending_needs": inputs.inflate_spending_needs
            },
            "salary_strategy": inputs.salary_strategy,
            "fixed_salary_amount": inputs.fixed_salary_amount,
            "starting_balances": {
                "corporate_investments": inputs.corporate_investment_balance,
                "cda": inputs.cda_balance,
                "erdtoh": inputs.erdtoh_balance,
                "nrdtoh": inputs.nrdtoh_balance,
                "grip": inputs.grip_balance,
                "rrsp_room": inputs.rrsp_room,
                "tfsa_room": inputs.tfsa_room
            },
            "portfolio": {
                "return_rate": inputs.investment_return_rate,
                "canadian_equity_percent": inputs.canadian_equity_percent,
                "us_equity_percent": inputs.us_equity_percent,
                "international_equity_percent": inputs.international_equity_percent,
                "fixed_income_percent": inputs.fixed_income_percent
            },
            "annual_corporate_retained_earnings": inputs.annual_corporate_retained_earnings,
            "contributions": {
                "maximize_tfsa": inputs.maximize_tfsa,
                "contribute_to_rrsp": inputs.contribute_to_rrsp,
                "resp": inputs.resp_contribution_amount if inputs.contribute_to_resp else 0,
                "debt_paydown": inputs.debt_paydown_amount if inputs.pay_down_debt else 0
            },
            "has_spouse": inputs.spouse is not None
        }
        if inputs.spouse is not None:
            overview["spouse"] = {
                "required_income": inputs.spouse.required_income,
                "salary_strategy": inputs.spouse.salary_strategy,
                "fixed_salary_amount": inputs.spouse.fixed_salary_amount
            }
        return overview

    def get_year_details(self, year: int) -> dict:
        """Get compensation, taxes and accounts for one calendar year."""
        yr = self._get_year(year)
        if yr is None:
            return {"error": f"Year {year} is not in the planning horizon ({self.first_year}-{self.last_year})"}

        result = {
            "year": yr.calendar_year,
            "display_year": yr.year,
            "required_income": round(yr.required_income, 2),
            "primary": _shareholder_details(yr.primary),
            "corporate_tax": {
                "taxable_business_income": round(yr.corporate_tax.taxable_business_income, 2),
                "tax_on_active": round(yr.corporate_tax.tax_on_active, 2),
                "tax_on_passive": round(yr.corporate_tax.tax_on_passive, 2),
                "after_tax_business_income": round(yr.corporate_tax.after_tax_business_income, 2),
                "reduced_sbd_limit": round(yr.corporate_tax.grind.reduced_sbd_limit, 2),
                "additional_tax_from_grind": round(yr.corporate_tax.grind.additional_tax_from_grind, 2)
            },
            "employer_health_tax": round(yr.employer_health_tax, 2),
            "investment_return": round(yr.investment_returns.total_return, 2),
            "resp_contribution": round(yr.resp_contribution, 2),
            "debt_paydown": round(yr.debt_paydown, 2),
            "total_tax": round(yr.total_tax, 2),
            "effective_integrated_rate": round(yr.effective_integrated_rate * 100, 2)
        }
        if yr.spouse is not None:
            result["spouse"] = _shareholder_details(yr.spouse)
        return result

    def get_projection_summary(self) -> dict:
        """Get totals and effective rates for the whole projection."""
        summary = self.summary
        result = {
            "years": f"{self.first_year}-{self.last_year}",
            "totals": _summary_totals(summary),
            "average_annual_income": round(summary.average_annual_income, 2),
            "effective_tax_rate": round(summary.effective_tax_rate * 100, 2),
            "effective_compensation_rate": round(summary.effective_compensation_rate * 100, 2),
            "effective_passive_rate": round(summary.effective_passive_rate * 100, 2),
            "total_rrsp_contributions": round(summary.total_rrsp_contributions, 2),
            "total_tfsa_contributions": round(summary.total_tfsa_contributions, 2),
            "yearly": [
                {
                    "year": r.calendar_year,
                    "salary": round(r.salary, 2),
                    "dividends": round(r.dividends.gross_dividends, 2),
                    "total_tax": round(r.total_tax, 2),
                    "corporate_investments": round(r.notional_accounts.corporate_investments, 2)
                }
                for r in summary.yearly_results
            ]
        }
        if summary.spouse is not None:
            result["spouse"] = {
                "total_salary": round(summary.spouse.total_salary, 2),
                "total_dividends": round(summary.spouse.total_dividends, 2),
                "total_personal_tax": round(summary.spouse.total_personal_tax, 2),
                "total_after_tax_income": round(summary.spouse.total_after_tax_income, 2)
            }
        return result

    def get_notional_accounts(self, year: Optional[int] = None) -> dict:
        """Get end-of-year notional account balances for one year or all years."""
        def balances(yr: YearlyResult) -> dict:
            a = yr.notional_accounts
            return {
                "year": yr.calendar_year,
                "cda": round(a.cda, 2),
                "erdtoh": round(a.erdtoh, 2),
                "nrdtoh": round(a.nrdtoh, 2),
                "grip": round(a.grip, 2),
                "corporate_investments": round(a.corporate_investments, 2),
                "rdtoh_refund": round(yr.rdtoh_refund, 2)
            }

        if year is not None:
            yr = self._get_year(year)
            if yr is None:
                return {"error": f"Year {year} is not in the planning horizon ({self.first_year}-{self.last_year})"}
            refund_rate = self.provider.get_tax_year_data(year, self.inputs.province).rdtoh_refund_rate
            capacity = dividend_capacity(yr.notional_accounts, refund_rate)
            return {
                **balances(yr),
                "dividend_capacity": {k: round(v, 2) for k, v in capacity.items()}
            }

        return {
            "starting": {
                "cda": self.inputs.cda_balance,
                "erdtoh": self.inputs.erdtoh_balance,
                "nrdtoh": self.inputs.nrdtoh_balance,
                "grip": self.inputs.grip_balance,
                "corporate_investments": self.inputs.corporate_investment_balance
            },
            "yearly": [balances(r) for r in self.summary.yearly_results]
        }

    def compare_strategies(self) -> dict:
        """Project the preset strategies for this scenario and rank them."""
        comparison = run_strategy_comparison(self.inputs, self.provider)
        strategies = []
        for s in comparison.strategies:
            entry = {
                "id": s.id,
                "label": s.label,
                "description": s.description,
                "is_current_setup": s.is_current_setup,
                **_summary_totals(s.summary),
                "tax_savings_vs_best": round(s.tax_savings, 2),
                "balance_difference_vs_best": round(s.balance_difference, 2),
                "rrsp_room_difference_vs_best": round(s.rrsp_room_difference, 2)
            }
            if s.after_tax_wealth is not None:
                entry["after_tax_wealth"] = {
                    "at_current_rate": round(s.after_tax_wealth.at_current_rate, 2),
                    "at_lower_rate": round(s.after_tax_wealth.at_lower_rate, 2),
                    "at_top_rate": round(s.after_tax_wealth.at_top_rate, 2)
                }
            strategies.append(entry)
        return {
            "strategies": strategies,
            "lowest_tax": comparison.lowest_tax,
            "highest_balance": comparison.highest_balance,
            "best_overall": comparison.best_overall
        }


class MultiScenarioTools:
    """Manager for multiple planning scenarios.

    Discovers all available scenarios and caches their projections,
    allowing queries to specify which scenario to use.
    """

    def __init__(self, base_path: str, default_scenario: Optional[str] = None):
        """Initialize and discover all available scenarios.

        Args:
            base_path: Path to the project root directory
            default_scenario: Default scenario to use when none specified
        """
        self.base_path = base_path
        self.scenarios: Dict[str, CorporatePlannerTools] = {}
        self.default_scenario = default_scenario
        self.default_configured = default_scenario is not None
        self._discover_scenarios()

    def _discover_scenarios(self):
        """Discover and load all available scenarios."""
        input_params_path = os.path.join(self.base_path, 'input-parameters')

        if not os.path.exists(input_params_path):
            return

        for name in sorted(os.listdir(input_params_path)):
            scenario_dir = os.path.join(input_params_path, name)
            spec_path = os.path.join(scenario_dir, 'spec.json')

            if os.path.isdir(scenario_dir) and os.path.exists(spec_path):
                try:
                    self.scenarios[name] = CorporatePlannerTools(self.base_path, name)
                except (OSError, ValueError) as e:
                    # One broken scenario must not take the others down
                    logger.warning("Failed to load scenario '%s': %s", name, e)

        logger.info("Loaded %d scenarios", len(self.scenarios))

        if self.default_scenario is None and self.scenarios:
            self.default_scenario = list(self.scenarios.keys())[0]

    def _get_scenario(self, scenario: Optional[str] = None, require_explicit: bool = False) -> CorporatePlannerTools:
        """Get the specified scenario or default.

        Args:
            scenario: Scenario name to use, or None for default
            require_explicit: If True, raise error when scenario not specified,
                no default is configured and multiple exist
        """
        if scenario is None and not self.default_configured and len(self.scenarios) > 1 and require_explicit:
            available = list(self.scenarios.keys())
            raise ValueError(
                f"Multiple scenarios available: {available}. Please specify which scenario to query."
            )

        scenario_name = scenario or self.default_scenario

        if scenario_name not in self.scenarios:
            available = list(self.scenarios.keys())
            raise ValueError(
                f"Scenario '{scenario_name}' not found. Available scenarios: {available}"
            )

        return self.scenarios[scenario_name]

    def list_scenarios(self) -> dict:
        """List all available scenarios."""
        scenarios_info = {}
        for name, tools in self.scenarios.items():
            scenarios_info[name] = {
                "province": tools.inputs.province,
                "first_year": tools.first_year,
                "last_year": tools.last_year,
                "salary_strategy": tools.inputs.salary_strategy,
                "required_income": tools.inputs.required_income
            }

        return {
            "available_scenarios": list(self.scenarios.keys()),
            "default_scenario": self.default_scenario,
            "scenarios_info": scenarios_info
        }

    def reload_scenarios(self) -> dict:
        """Reload all scenarios from disk, refreshing the cache."""
        old_scenarios = set(self.scenarios.keys())
        requested_default = os.environ.get('CORP_PLANNER_SCENARIO')

        self.scenarios.clear()
        self.default_scenario = requested_default
        self.default_configured = requested_default is not None
        self._discover_scenarios()

        new_scenarios = set(self.scenarios.keys())

        return {
            "status": "success",
            "message": f"Reloaded {len(self.scenarios)} scenarios",
            "scenarios_loaded": list(self.scenarios.keys()),
            "default_scenario": self.default_scenario,
            "changes": {
                "added": sorted(new_scenarios - old_scenarios),
                "removed": sorted(old_scenarios - new_scenarios),
                "reloaded": sorted(old_scenarios & new_scenarios)
            }
        }

    def get_scenario_overview(self, scenario: Optional[str] = None) -> dict:
        """Get an overview of the specified scenario."""
        result = self._get_scenario(scenario, require_explicit=True).get_scenario_overview()
        result["scenario"] = scenario or self.default_scenario
        return result

    def get_year_details(self, year: int, scenario: Optional[str] = None) -> dict:
        """Get the detailed results for one year."""
        result = self._get_scenario(scenario, require_explicit=True).get_year_details(year)
        result["scenario"] = scenario or self.default_scenario
        return result

    def get_projection_summary(self, scenario: Optional[str] = None) -> dict:
        """Get totals for the whole projection."""
        result = self._get_scenario(scenario, require_explicit=True).get_projection_summary()
        result["scenario"] = scenario or self.default_scenario
        return result

    def get_notional_accounts(self, year: Optional[int] = None, scenario: Optional[str] = None) -> dict:
        """Get notional account balances."""
        result = self._get_scenario(scenario, require_explicit=True).get_notional_accounts(year)
        result["scenario"] = scenario or self.default_scenario
        return result

    def compare_strategies(self, scenario: Optional[str] = None) -> dict:
        """Compare the preset compensation strategies for a scenario."""
        result = self._get_scenario(scenario, require_explicit=True).compare_strategies()
        result["scenario"] = scenario or self.default_scenario
        return result

    def compare_scenarios(self, scenario1: str, scenario2: str, metrics: Optional[List[str]] = None) -> dict:
        """Compare two scenarios and report which one comes out ahead.

        Args:
            scenario1: First scenario name to compare
            scenario2: Second scenario name to compare
            metrics: Optional list of metrics to focus on. If None, compares all.
                     Options: 'total_tax', 'total_compensation', 'after_tax_income',
                              'final_corporate_balance', 'rrsp_room', 'effective_tax_rate'
        """
        if scenario1 not in self.scenarios:
            return {"error": f"Scenario '{scenario1}' not found. Available: {list(self.scenarios.keys())}"}
        if scenario2 not in self.scenarios:
            return {"error": f"Scenario '{scenario2}' not found. Available: {list(self.scenarios.keys())}"}

        tools1 = self.scenarios[scenario1]
        tools2 = self.scenarios[scenario2]
        summary1 = tools1.summary
        summary2 = tools2.summary
        diff = summary_differences(summary1, summary2)

        def after_tax(summary: ProjectionSummary) -> float:
            return sum(s.after_tax_income for r in summary.yearly_results for s in r.shareholders)

        def compare_metric(val1: float, val2: float, higher_is_better: bool = True) -> dict:
            """Compare a metric and determine winner."""
            delta = val2 - val1
            if val1 != 0:
                pct_diff = (delta / abs(val1)) * 100
            else:
                pct_diff = 100 if val2 > 0 else (-100 if val2 < 0 else 0)

            if higher_is_better:
                winner = scenario1 if val1 > val2 else (scenario2 if val2 > val1 else "tie")
            else:
                winner = scenario1 if val1 < val2 else (scenario2 if val2 < val1 else "tie")

            return {
                scenario1: round(val1, 2),
                scenario2: round(val2, 2),
                "difference": round(delta, 2),
                "percent_difference": round(pct_diff, 1),
                "better": winner,
                "higher_is_better": higher_is_better
            }

        all_metrics = {
            "total_tax": ("Total Tax", summary1.total_tax, summary2.total_tax, False),
            "total_compensation": ("Total Compensation", summary1.total_compensation,
                                   summary2.total_compensation, True),
            "after_tax_income": ("After-Tax Income", after_tax(summary1), after_tax(summary2), True),
            "final_corporate_balance": ("Final Corporate Balance", summary1.final_corporate_balance,
                                        summary2.final_corporate_balance, True),
            "rrsp_room": ("RRSP Room Generated", summary1.total_rrsp_room_generated,
                          summary2.total_rrsp_room_generated, True),
            "effective_tax_rate": ("Effective Tax Rate (%)", summary1.effective_tax_rate * 100,
                                   summary2.effective_tax_rate * 100, False)
        }

        if metrics:
            metrics_to_compare = {k: v for k, v in all_metrics.items() if k in metrics}
            if not metrics_to_compare:
                return {
                    "error": f"No valid metrics specified. Available metrics: {list(all_metrics.keys())}"
                }
        else:
            metrics_to_compare = all_metrics

        comparison = {
            "scenarios": {
                scenario1: {"province": tools1.inputs.province, "years": f"{tools1.first_year}-{tools1.last_year}"},
                scenario2: {"province": tools2.inputs.province, "years": f"{tools2.first_year}-{tools2.last_year}"}
            },
            "metrics": {},
            "tax_savings": round(diff["tax_savings"], 2),
            "final_balance_difference": round(diff["final_balance_difference"], 2),
            "rrsp_room_difference": round(diff["rrsp_room_difference"], 2)
        }

        wins = {scenario1: 0, scenario2: 0, "tie": 0}
        for key, (description, val1, val2, higher_is_better) in metrics_to_compare.items():
            result = compare_metric(val1, val2, higher_is_better)
            comparison["metrics"][key] = {"description": description, **result}
            wins[result["better"]] += 1

        if wins[scenario1] > wins[scenario2]:
            overall_winner = scenario1
        elif wins[scenario2] > wins[scenario1]:
            overall_winner = scenario2
        else:
            overall_winner = "tie"

        comparison["summary"] = {
            "metrics_compared": len(metrics_to_compare),
            "wins": {
                scenario1: wins[scenario1],
                scenario2: wins[scenario2],
                "tied": wins["tie"]
            },
            "overall_better": overall_winner
        }

        if overall_winner == "tie":
            recommendation = f"Both scenarios are roughly equivalent, each winning {wins[scenario1]} metrics."
        else:
            loser = scenario2 if overall_winner == scenario1 else scenario1
            recommendation = (f"'{overall_winner}' appears better overall, winning {wins[overall_winner]} of "
                              f"{len(metrics_to_compare)} metrics compared to {wins[loser]} for '{loser}'.")
            tax_better = comparison["metrics"].get("total_tax", {}).get("better")
            if tax_better and tax_better != "tie":
                recommendation += f" '{tax_better}' pays ${abs(diff['tax_savings']):,.0f} less tax over the horizon."
        comparison["recommendation"] = recommendation

        return comparison

"""Renderer classes for displaying projection results on the console.

Each renderer takes a ProjectionSummary (or, for the comparison view, a
ComparisonResult) and prints the part of it that it is responsible for.
"""

from abc import ABC, abstractmethod
from typing import List

from calc.notional_accounts import dividend_capacity
from calc.strategy_comparison import ComparisonResult
from model.ProjectionData import ProjectionSummary


def format_headers(columns: List[tuple], year_width: int = 6) -> tuple:
    """Build a header line and separator for right-aligned columns.

    Args:
        columns: List of (header_text, width) tuples for each column
        year_width: Width of the Year column (default 6)

    Returns:
        Tuple of (header line, separator line)
    """
    header = f"  {'Year':<{year_width}}"
    sep = f"  {'-' * year_width}"
    for text, width in columns:
        header += f" {text:>{width}}"
        sep += f" {'-' * width}"
    return header, sep


class BaseRenderer(ABC):
    """Abstract base class for all renderers."""

    @abstractmethod
    def render(self, data) -> None:
        """Render the data to output."""
        pass


class SummaryRenderer(BaseRenderer):
    """Renderer for projection totals and effective rates."""

    def render(self, data: ProjectionSummary) -> None:
        first = data.yearly_results[0]
        last = data.yearly_results[-1]
        print()
        print("=" * 60)
        print(f"{'PROJECTION SUMMARY ' + str(first.calendar_year) + '-' + str(last.calendar_year):^60}")
        print("=" * 60)

        print()
        print("-" * 60)
        print("COMPENSATION")
        print("-" * 60)
        print(f"  {'Total Salary:':<40} ${data.total_salary:>14,.2f}")
        print(f"  {'Total Dividends:':<40} ${data.total_dividends:>14,.2f}")
        print(f"  {'-' * 40}")
        print(f"  {'Total Compensation:':<40} ${data.total_compensation:>14,.2f}")
        print(f"  {'Average Annual Compensation:':<40} ${data.average_annual_income:>14,.2f}")

        print()
        print("-" * 60)
        print("TAXES")
        print("-" * 60)
        print(f"  {'Personal Tax:':<40} ${data.total_personal_tax:>14,.2f}")
        print(f"  {'Corporate Tax (active):':<40} ${data.total_corporate_tax_on_active:>14,.2f}")
        print(f"  {'Corporate Tax (passive):':<40} ${data.total_corporate_tax_on_passive:>14,.2f}")
        print(f"  {'Payroll (employee):':<40} ${data.total_payroll:>14,.2f}")
        print(f"  {'RDTOH Refunds:':<40} ${data.total_rdtoh_refund:>14,.2f}")
        print(f"  {'-' * 40}")
        print(f"  {'Total Tax:':<40} ${data.total_tax:>14,.2f}")
        print(f"  {'Effective Tax Rate:':<40} {data.effective_tax_rate:>15.2%}")
        print(f"  {'Effective Compensation Rate:':<40} {data.effective_compensation_rate:>15.2%}")
        print(f"  {'Effective Passive Rate:':<40} {data.effective_passive_rate:>15.2%}")

        print()
        print("-" * 60)
        print("SAVINGS")
        print("-" * 60)
        print(f"  {'RRSP Room Generated:':<40} ${data.total_rrsp_room_generated:>14,.2f}")
        print(f"  {'RRSP Contributions:':<40} ${data.total_rrsp_contributions:>14,.2f}")
        print(f"  {'TFSA Contributions:':<40} ${data.total_tfsa_contributions:>14,.2f}")
        print(f"  {'Final Corporate Balance:':<40} ${data.final_corporate_balance:>14,.2f}")

        if data.spouse is not None:
            print()
            print("-" * 60)
            print("SPOUSE")
            print("-" * 60)
            print(f"  {'Salary:':<40} ${data.spouse.total_salary:>14,.2f}")
            print(f"  {'Dividends:':<40} ${data.spouse.total_dividends:>14,.2f}")
            print(f"  {'Personal Tax:':<40} ${data.spouse.total_personal_tax:>14,.2f}")
            print(f"  {'After-Tax Income:':<40} ${data.spouse.total_after_tax_income:>14,.2f}")
        print()
        print("=" * 60)
        print()


class YearlyRenderer(BaseRenderer):
    """Renderer for the year-by-year compensation and tax table."""

    def render(self, data: ProjectionSummary) -> None:
        print()
        print("=" * 100)
        print(f"{'YEARLY COMPENSATION AND TAX':^100}")
        print("=" * 100)
        print()

        columns = [
            ("Salary", 12),
            ("Dividends", 12),
            ("Personal", 12),
            ("Corporate", 12),
            ("Payroll", 10),
            ("Total Tax", 12),
            ("After-Tax", 12),
            ("Corp Cash", 14),
        ]
        header, sep = format_headers(columns)
        print(header)
        print(sep)
        for yr in data.yearly_results:
            print(f"  {yr.calendar_year:<6} ${yr.salary:>11,.0f} ${yr.dividends.gross_dividends:>11,.0f}"
                  f" ${yr.total_personal_tax:>11,.0f} ${yr.corporate_tax.total_tax:>11,.0f}"
                  f" ${yr.total_payroll:>9,.0f} ${yr.total_tax:>11,.0f} ${yr.after_tax_income:>11,.0f}"
                  f" ${yr.notional_accounts.corporate_investments:>13,.0f}")
        print(sep)
        print(f"  {'TOTAL':<6} ${data.total_salary:>11,.0f} ${data.total_dividends:>11,.0f}"
              f" ${data.total_personal_tax:>11,.0f} ${data.total_corporate_tax:>11,.0f}"
              f" ${data.total_payroll:>9,.0f} ${data.total_tax:>11,.0f}")
        print()
        print("=" * 100)
        print()


class AccountsRenderer(BaseRenderer):
    """Renderer for end-of-year notional account balances."""

    def __init__(self, refund_rate: float):
        """Initialize with the RDTOH refund rate used to report remaining dividend capacity."""
        self.refund_rate = refund_rate

    def render(self, data: ProjectionSummary) -> None:
        print()
        print("=" * 84)
        print(f"{'NOTIONAL ACCOUNTS (END OF YEAR)':^84}")
        print("=" * 84)
        print()

        columns = [("CDA", 12), ("eRDTOH", 12), ("nRDTOH", 12), ("GRIP", 12), ("Corp Cash", 14), ("Refund", 10)]
        header, sep = format_headers(columns)
        print(header)
        print(sep)
        for yr in data.yearly_results:
            a = yr.notional_accounts
            print(f"  {yr.calendar_year:<6} ${a.cda:>11,.0f} ${a.erdtoh:>11,.0f} ${a.nrdtoh:>11,.0f}"
                  f" ${a.grip:>11,.0f} ${a.corporate_investments:>13,.0f} ${yr.rdtoh_refund:>9,.0f}")
        print(sep)

        last = data.yearly_results[-1]
        capacity = dividend_capacity(last.notional_accounts, self.refund_rate)
        print(f"  Remaining capacity: capital ${capacity['capital']:,.0f}, eligible ${capacity['eligible']:,.0f},"
              f" non-eligible ${capacity['non_eligible']:,.0f}")
        print()
        print("=" * 84)
        print()


class CompareRenderer(BaseRenderer):
    """Renderer for the side-by-side strategy comparison."""

    def render(self, data: ComparisonResult) -> None:
        print()
        print("=" * 100)
        print(f"{'STRATEGY COMPARISON':^100}")
        print("=" * 100)
        print()
        print(f"  {'Strategy':<22} {'Total Tax':>14} {'Corp Balance':>14} {'RRSP Room':>12}"
              f" {'Tax vs Best':>12} {'Wealth':>14}")
        print(f"  {'-' * 22} {'-' * 14} {'-' * 14} {'-' * 12} {'-' * 12} {'-' * 14}")
        for s in data.strategies:
            marker = '*' if s.id == data.best_overall else ' '
            wealth = s.after_tax_wealth.at_current_rate if s.after_tax_wealth else 0.0
            print(f" {marker}{s.label:<22} ${s.summary.total_tax:>13,.0f} ${s.summary.final_corporate_balance:>13,.0f}"
                  f" ${s.summary.total_rrsp_room_generated:>11,.0f} ${s.tax_savings:>11,.0f} ${wealth:>13,.0f}")
        print()
        print(f"  {'Lowest tax:':<20} {data.lowest_tax}")
        print(f"  {'Highest balance:':<20} {data.highest_balance}")
        print(f"  {'Best overall:':<20} {data.best_overall}")
        print()
        print("=" * 100)
        print()


RENDERER_REGISTRY = {
    'Summary': SummaryRenderer,
    'Yearly': YearlyRenderer,
    'Accounts': AccountsRenderer,
    'Compare': CompareRenderer,
}

import json
import os

DEFAULT_REFERENCE_DIR = os.path.join(os.path.dirname(__file__), '../../reference')


class EmployerHealthTax:
    """Holds provincial employer health tax schedules and computes the levy.

    Applies to BC (Employer Health Tax) and MB (Health and Post-Secondary
    Education Tax Levy). Thresholds change only by legislation, so they are
    never indexed: a year after the last listed one reuses the last entry.
    """

    def __init__(self, reference_dir: str = DEFAULT_REFERENCE_DIR):
        ref_path = os.path.join(reference_dir, 'employer-health-tax.json')
        with open(ref_path, 'r') as f:
            self.schedules = json.load(f).get("provinces", {})

    def _thresholds(self, province: str, year: int) -> dict:
        tax_years = sorted(self.schedules[province]["taxYears"], key=lambda x: x["year"])
        applicable = tax_years[0]
        for entry in tax_years:
            if entry["year"] <= year:
                applicable = entry
        return applicable

    def total_contribution(self, province: str, total_payroll: float, year: int) -> float:
        """Calculate the employer health tax on total remuneration.

        Args:
            province: Province code.
            total_payroll: Total salaries paid by the corporation in the year.
            year: The calendar year.

        Returns:
            The levy, 0 for provinces without one or payroll under the exemption.
        """
        if total_payroll <= 0 or province not in self.schedules:
            return 0.0

        schedule = self.schedules[province]
        thresholds = self._thresholds(province, year)
        if total_payroll <= thresholds["exemption"]:
            return 0.0
        if total_payroll <= thresholds["upperThreshold"]:
            return schedule["notchRate"] * (total_payroll - thresholds["exemption"])
        return schedule["fullRate"] * total_payroll

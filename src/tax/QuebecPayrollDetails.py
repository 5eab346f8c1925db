import json
import os

from tax.indexation import indexation_factor, round_to_cents, round_to_dollar

DEFAULT_REFERENCE_DIR = os.path.join(os.path.dirname(__file__), '../../reference')


class QuebecPayrollDetails:
    """Holds Quebec payroll parameters (QPP, QPP2, QPIP and reduced EI).

    Loads statutory values from quebec-payroll.json and builds year-by-year
    data. Years beyond those in the JSON have their earnings ceilings
    projected with the inflation rate; rates stay the same.
    """

    def __init__(self, inflation_rate: float, final_year: int, reference_dir: str = DEFAULT_REFERENCE_DIR):
        self.inflation_rate = inflation_rate
        self.final_year = final_year
        self.reference_dir = reference_dir
        self.data_by_year = {}
        self._load_and_build_data()

    def _load_and_build_data(self):
        """Load data from JSON and build projections for future years."""
        ref_path = os.path.join(self.reference_dir, 'quebec-payroll.json')
        with open(ref_path, 'r') as f:
            data = json.load(f)

        tax_years = data.get("taxYears", [])
        if not tax_years:
            raise ValueError("quebec-payroll.json must contain a 'taxYears' array with at least one entry")

        tax_years = sorted(tax_years, key=lambda x: x["year"])
        for i in range(1, len(tax_years)):
            if tax_years[i]["year"] != tax_years[i-1]["year"] + 1:
                raise ValueError(f"Tax years must be sequential. Gap found between {tax_years[i-1]['year']} and {tax_years[i]['year']}")

        for year_data in tax_years:
            self.data_by_year[year_data["year"]] = year_data

        self.first_year = tax_years[0]["year"]
        last = tax_years[-1]
        for year in range(last["year"] + 1, self.final_year + 1):
            factor = indexation_factor(self.inflation_rate, year - last["year"])
            qpp, qpp2, qpip, ei = last["qpp"], last["qpp2"], last["qpip"], last["ei"]
            ympe = qpp["ympe"] * factor
            ympe2 = qpp2["firstCeiling"] * factor
            max_insurable = ei["maxInsurableEarnings"] * factor
            self.data_by_year[year] = {
                "year": year,
                "qpp": {
                    "rate": qpp["rate"],
                    "ympe": round_to_dollar(ympe),
                    "basicExemption": qpp["basicExemption"],
                    "maxContribution": round_to_cents((ympe - qpp["basicExemption"]) * qpp["rate"]),
                },
                "qpp2": {
                    "rate": qpp2["rate"],
                    "firstCeiling": round_to_dollar(ympe2),
                    "secondCeiling": round_to_dollar(ympe2 * 1.14),
                    "maxContribution": round_to_cents(ympe2 * 0.14 * qpp2["rate"]),
                },
                "qpip": {
                    "employeeRate": qpip["employeeRate"],
                    "employerRate": qpip["employerRate"],
                    "maxInsurableEarnings": round_to_dollar(qpip["maxInsurableEarnings"] * factor),
                },
                "ei": {
                    "rate": ei["rate"],
                    "maxInsurableEarnings": round_to_dollar(max_insurable),
                    "maxContribution": round_to_cents(max_insurable * ei["rate"]),
                    "employerMultiplier": ei["employerMultiplier"],
                },
            }

    def get_data_for_year(self, year: int) -> dict:
        """Get the Quebec payroll data for a specific year.

        Args:
            year: The tax year to get data for.

        Returns:
            Dictionary with qpp, qpp2, qpip and ei sections.
        """
        if year < self.first_year:
            return self.data_by_year[self.first_year]
        if year not in self.data_by_year:
            raise ValueError(f"No Quebec payroll data available for year {year}")
        return self.data_by_year[year]

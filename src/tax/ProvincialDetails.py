import json
import logging
import os
from typing import Dict, Tuple

from tax.indexation import indexation_factor, project_threshold, round_to_dollar

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE_DIR = os.path.join(os.path.dirname(__file__), '../../reference')


class ProvincialDetails:
    """Holds provincial and territorial personal/corporate rates for every year.

    Loads curated values from provincial-details.json. Years after a
    province's last curated year are projected with that province's own
    indexation rate when it publishes one (zero for a frozen-bracket budget),
    otherwise with the caller's inflation rate. Thresholds listed under
    ``frozenThresholds`` and the health premium schedule are never indexed.
    """

    def __init__(self, inflation_rate: float, final_year: int, reference_dir: str = DEFAULT_REFERENCE_DIR):
        """Initialize by loading from reference file and building year data.

        Args:
            inflation_rate: Default annual indexation for provincial thresholds.
            final_year: Last year to generate data for (inclusive).
            reference_dir: Directory holding provincial-details.json.
        """
        self.inflation_rate = inflation_rate
        self.final_year = final_year
        self.reference_dir = reference_dir
        self.provinces: Dict[str, dict] = {}
        self.data_by_year: Dict[Tuple[str, int], dict] = {}
        self._load_and_build_data()

    def _load_and_build_data(self):
        ref_path = os.path.join(self.reference_dir, 'provincial-details.json')
        with open(ref_path, 'r') as f:
            data = json.load(f)

        provinces = data.get("provinces", {})
        if not provinces:
            raise ValueError("provincial-details.json must contain a 'provinces' object")

        for code, province in provinces.items():
            tax_years = sorted(province.get("taxYears", []), key=lambda x: x["year"])
            if not tax_years:
                raise ValueError(f"Province {code} must have a 'taxYears' array with at least one entry")
            for i in range(1, len(tax_years)):
                if tax_years[i]["year"] != tax_years[i-1]["year"] + 1:
                    raise ValueError(f"Tax years for {code} must be sequential. Gap found between {tax_years[i-1]['year']} and {tax_years[i]['year']}")

            self.provinces[code] = province
            for year_data in tax_years:
                self.data_by_year[(code, year_data["year"])] = year_data

            last = tax_years[-1]
            rate = self.indexation_rate(code)
            frozen = set(province.get("frozenThresholds", []))
            add_ons = {int(y): amount for y, amount in province.get("basicPersonalAmountAddOns", {}).items()}
            for year in range(last["year"] + 1, self.final_year + 1):
                factor = indexation_factor(rate, year - last["year"])
                self.data_by_year[(code, year)] = self._project_year(last, year, factor, frozen, add_ons.get(year, 0))

    @staticmethod
    def _project_year(base: dict, year: int, factor: float, frozen: set, bpa_add_on: float) -> dict:
        projected = {
            "year": year,
            "brackets": [
                {
                    "threshold": b["threshold"] if b["threshold"] in frozen else project_threshold(b["threshold"], factor),
                    "rate": b["rate"],
                }
                for b in base["brackets"]
            ],
            "basicPersonalAmount": round_to_dollar(base["basicPersonalAmount"] * factor) + bpa_add_on,
            "dividendTaxCredits": base["dividendTaxCredits"],
            "corporate": base["corporate"],
        }
        if "surtax" in base:
            surtax = base["surtax"]
            projected["surtax"] = {
                "firstThreshold": round_to_dollar(surtax["firstThreshold"] * factor),
                "firstRate": surtax["firstRate"],
                "secondThreshold": round_to_dollar(surtax["secondThreshold"] * factor),
                "secondRate": surtax["secondRate"],
            }
        if "healthPremium" in base:
            # Health premium thresholds are legislatively fixed
            projected["healthPremium"] = base["healthPremium"]
        return projected

    def is_known(self, province: str) -> bool:
        return province in self.provinces

    def indexation_rate(self, province: str) -> float:
        """Province-specific indexation rate, falling back to the default rate."""
        override = self.provinces[province].get("indexationRate")
        return self.inflation_rate if override is None else override

    def get_data_for_year(self, province: str, year: int) -> dict:
        """Get the provincial table for a province and year.

        Years before the province's first curated year reuse that first year.
        """
        if province not in self.provinces:
            raise ValueError(f"No tax data available for province: {province}")
        if (province, year) not in self.data_by_year:
            first_year = min(y for (code, y) in self.data_by_year if code == province)
            if year < first_year:
                return self.data_by_year[(province, first_year)]
            raise ValueError(f"No provincial tax data available for {province} in {year}")
        return self.data_by_year[(province, year)]

    def passive_investment_rate(self, province: str) -> float:
        return self.provinces[province]["passiveInvestmentRate"]

    def top_combined_rate(self, province: str) -> float:
        return self.provinces[province].get("topCombinedRate", 0.0)

    def uses_quebec_payroll(self, province: str) -> bool:
        return self.provinces[province].get("usesQuebecPayroll", False)

    def name(self, province: str) -> str:
        return self.provinces[province].get("name", province)

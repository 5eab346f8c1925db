import json
import logging
import os

from tax.indexation import (indexation_factor, project_threshold, round_to_cents,
							round_to_dollar, round_tfsa_limit)

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE_DIR = os.path.join(os.path.dirname(__file__), '../../reference')


class FederalDetails:
	def __init__(self, inflation_rate: float, final_year: int, reference_dir: str = DEFAULT_REFERENCE_DIR):
		"""
		inflation_rate: e.g., 0.02 for 2% indexation of federal thresholds
		final_year: last year to generate data for (inclusive)
		reference_dir: directory holding federal-details.json
		"""
		self.inflation_rate = inflation_rate
		self.final_year = final_year
		self.reference_dir = reference_dir
		self.data_by_year = {}
		self._load_and_build_data()

	def _load_and_build_data(self):
		ref_path = os.path.join(self.reference_dir, 'federal-details.json')
		with open(ref_path, 'r') as f:
			data = json.load(f)

		tax_years = data.get("taxYears", [])
		if not tax_years:
			raise ValueError("federal-details.json must contain a 'taxYears' array with at least one entry")

		self.indexation_factors = {int(y): r for y, r in data.get("craIndexationFactors", {}).items()}
		self.quebec_abatement = data.get("quebecAbatement", 0.0)
		self.small_business_limit = data.get("smallBusinessLimit", {})
		self.corporate_investment = data.get("corporateInvestment", {})

		# Sort tax years to ensure they're in order
		tax_years = sorted(tax_years, key=lambda x: x["year"])

		# Validate that years are sequential
		for i in range(1, len(tax_years)):
			if tax_years[i]["year"] != tax_years[i-1]["year"] + 1:
				raise ValueError(f"Tax years must be sequential. Gap found between {tax_years[i-1]['year']} and {tax_years[i]['year']}")

		for year_data in tax_years:
			self.data_by_year[year_data["year"]] = year_data

		self.first_year = tax_years[0]["year"]
		self.last_curated_year = tax_years[-1]["year"]
		base = self.data_by_year[self.last_curated_year]

		# Project every later year from the last curated one; rates stay fixed
		for year in range(self.last_curated_year + 1, self.final_year + 1):
			factor = indexation_factor(self.inflation_rate, year - self.last_curated_year)
			self.data_by_year[year] = self._project_year(base, year, factor)
			logger.debug("Projected federal data for %d (factor %.4f)", year, factor)

	@staticmethod
	def _project_year(base: dict, year: int, factor: float) -> dict:
		cpp, cpp2, ei = base["cpp"], base["cpp2"], base["ei"]
		ympe = cpp["ympe"] * factor
		ympe2 = cpp2["firstCeiling"] * factor
		max_insurable = ei["maxInsurableEarnings"] * factor
		return {
			"year": year,
			"brackets": [
				{"threshold": project_threshold(b["threshold"], factor), "rate": b["rate"]}
				for b in base["brackets"]
			],
			"basicPersonalAmount": round_to_dollar(base["basicPersonalAmount"] * factor),
			"cpp": {
				"rate": cpp["rate"],
				"ympe": round_to_dollar(ympe),
				# The basic exemption is frozen by statute
				"basicExemption": cpp["basicExemption"],
				"maxContribution": round_to_cents((ympe - cpp["basicExemption"]) * cpp["rate"]),
			},
			"cpp2": {
				"rate": cpp2["rate"],
				"firstCeiling": round_to_dollar(ympe2),
				# YAMPE sits 14% above YMPE
				"secondCeiling": round_to_dollar(ympe2 * 1.14),
				"maxContribution": round_to_cents(ympe2 * 0.14 * cpp2["rate"]),
			},
			"ei": {
				"rate": ei["rate"],
				"maxInsurableEarnings": round_to_dollar(max_insurable),
				"maxContribution": round_to_cents(max_insurable * ei["rate"]),
				"employerMultiplier": ei["employerMultiplier"],
			},
			"dividend": base["dividend"],
			"corporate": base["corporate"],
			"rrsp": {
				"contributionRate": base["rrsp"]["contributionRate"],
				"dollarLimit": round_to_dollar(base["rrsp"]["dollarLimit"] * factor),
			},
			"tfsa": {"annualLimit": round_tfsa_limit(base["tfsa"]["annualLimit"] * factor)},
			"rdtoh": base["rdtoh"],
		}

	def get_data_for_year(self, year: int) -> dict:
		"""Return the federal table for a year.

		Years before the first curated year reuse the first curated year.
		"""
		if year < self.first_year:
			return self.data_by_year[self.first_year]
		if year not in self.data_by_year:
			raise ValueError(f"No federal tax data available for year {year}")
		return self.data_by_year[year]

	def default_inflation_rate(self) -> float:
		"""Most recent CRA indexation factor, or 2% when none is published."""
		if not self.indexation_factors:
			return 0.02
		return self.indexation_factors[max(self.indexation_factors)]

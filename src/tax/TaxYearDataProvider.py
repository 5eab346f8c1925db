import logging
import os
from typing import Dict, Optional, Tuple

from model.TaxYearData import (CorporateRates, DividendClassRates, DividendRates, EmploymentInsurance,
                               HealthPremium, HealthPremiumBracket, ParentalInsurance, PensionPlan,
                               QuebecPayroll, SecondPensionTier, Surtax, TaxBracket, TaxYearData)
from model.UserInputs import ConfigurationError
from tax.EmployerHealthTax import EmployerHealthTax
from tax.FederalDetails import FederalDetails
from tax.ProvincialDetails import ProvincialDetails
from tax.QuebecPayrollDetails import QuebecPayrollDetails

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE_DIR = os.path.join(os.path.dirname(__file__), '../../reference')


class TaxYearDataProvider:
    """Resolves a (calendar year, province) pair to a complete TaxYearData.

    Curated years come straight from the reference files; later years are
    projected by the federal, provincial and Quebec payroll loaders. Built
    tables are cached per provider instance, so one provider should be
    created per projection run and passed to the calculators explicitly.
    """

    def __init__(self, inflation_rate: Optional[float] = None, final_year: int = 2036,
                 reference_dir: str = DEFAULT_REFERENCE_DIR):
        """Load all reference tables.

        Args:
            inflation_rate: Indexation for projected years; None uses the most
                recent CRA indexation factor.
            final_year: Last calendar year that may be requested.
            reference_dir: Directory holding the reference JSON files.
        """
        self.federal = FederalDetails(0.0 if inflation_rate is None else inflation_rate, final_year, reference_dir)
        if inflation_rate is None:
            inflation_rate = self.federal.default_inflation_rate()
            self.federal = FederalDetails(inflation_rate, final_year, reference_dir)
        self.inflation_rate = inflation_rate
        self.final_year = final_year
        self.provincial = ProvincialDetails(inflation_rate, final_year, reference_dir)
        self.quebec_payroll = QuebecPayrollDetails(inflation_rate, final_year, reference_dir)
        self.employer_health_tax = EmployerHealthTax(reference_dir)
        self._cache: Dict[Tuple[int, str], TaxYearData] = {}

    @property
    def corporate_investment(self) -> dict:
        return self.federal.corporate_investment

    @property
    def small_business_limit(self) -> dict:
        return self.federal.small_business_limit

    def get_tax_year_data(self, year: int, province: str = 'ON') -> TaxYearData:
        """Get the rate table for a calendar year and province.

        Raises:
            ConfigurationError: If the province code is not recognized.
        """
        if not self.provincial.is_known(province):
            raise ConfigurationError([f"Unknown province code '{province}'"])

        key = (year, province)
        if key not in self._cache:
            self._cache[key] = self._build(year, province)
            logger.debug("Built tax year data for %s %d", province, year)
        return self._cache[key]

    def _build(self, year: int, province: str) -> TaxYearData:
        fed = self.federal.get_data_for_year(year)
        prov = self.provincial.get_data_for_year(province, year)

        surtax = Surtax()
        if "surtax" in prov:
            s = prov["surtax"]
            surtax = Surtax(s["firstThreshold"], s["firstRate"], s["secondThreshold"], s["secondRate"])

        health_premium = HealthPremium()
        if "healthPremium" in prov:
            hp = prov["healthPremium"]
            health_premium = HealthPremium(
                minimum_income=hp.get("minimumIncome", 0),
                brackets=tuple(HealthPremiumBracket(b["threshold"], b["base"], b["rate"], b["maxPremium"])
                               for b in hp["brackets"]),
            )

        quebec_payroll = None
        if self.provincial.uses_quebec_payroll(province):
            qc = self.quebec_payroll.get_data_for_year(year)
            quebec_payroll = QuebecPayroll(
                qpp=_pension_plan(qc["qpp"]),
                qpp2=_second_tier(qc["qpp2"]),
                qpip=ParentalInsurance(qc["qpip"]["employeeRate"], qc["qpip"]["employerRate"],
                                       qc["qpip"]["maxInsurableEarnings"]),
                ei=_employment_insurance(qc["ei"]),
            )

        dividend = fed["dividend"]
        credits = prov["dividendTaxCredits"]
        return TaxYearData(
            year=year,
            province=province,
            federal_brackets=_brackets(fed["brackets"]),
            federal_basic_personal_amount=fed["basicPersonalAmount"],
            provincial_brackets=_brackets(prov["brackets"]),
            provincial_basic_personal_amount=prov["basicPersonalAmount"],
            cpp=_pension_plan(fed["cpp"]),
            cpp2=_second_tier(fed["cpp2"]),
            ei=_employment_insurance(fed["ei"]),
            dividend=DividendRates(
                eligible=DividendClassRates(dividend["eligible"]["grossUp"],
                                            dividend["eligible"]["federalCredit"], credits["eligible"]),
                non_eligible=DividendClassRates(dividend["nonEligible"]["grossUp"],
                                                dividend["nonEligible"]["federalCredit"], credits["nonEligible"]),
            ),
            corporate=CorporateRates(
                small_business=fed["corporate"]["smallBusiness"] + prov["corporate"]["smallBusiness"],
                general=fed["corporate"]["general"] + prov["corporate"]["general"],
                passive_investment=self.provincial.passive_investment_rate(province),
            ),
            rrsp_contribution_rate=fed["rrsp"]["contributionRate"],
            rrsp_dollar_limit=fed["rrsp"]["dollarLimit"],
            tfsa_annual_limit=fed["tfsa"]["annualLimit"],
            rdtoh_refund_rate=fed["rdtoh"]["refundRate"],
            surtax=surtax,
            health_premium=health_premium,
            federal_abatement=self.federal.quebec_abatement if quebec_payroll is not None else 0.0,
            quebec_payroll=quebec_payroll,
            top_combined_rate=self.provincial.top_combined_rate(province),
        )


def _brackets(raw) -> Tuple[TaxBracket, ...]:
    return tuple(sorted((TaxBracket(b["threshold"], b["rate"]) for b in raw), key=lambda b: b.threshold))


def _pension_plan(raw: dict) -> PensionPlan:
    return PensionPlan(raw["rate"], raw["ympe"], raw["basicExemption"], raw["maxContribution"])


def _second_tier(raw: dict) -> SecondPensionTier:
    return SecondPensionTier(raw["rate"], raw["firstCeiling"], raw["secondCeiling"], raw["maxContribution"])


def _employment_insurance(raw: dict) -> EmploymentInsurance:
    return EmploymentInsurance(raw["rate"], raw["maxInsurableEarnings"], raw["maxContribution"],
                               raw["employerMultiplier"])

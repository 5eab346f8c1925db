"""Immutable rate and threshold tables for one tax year and province.

A TaxYearData is built once per (calendar year, province) by the
TaxYearDataProvider, either straight from the curated reference files or
projected forward from the last curated year. Calculators only read it.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class TaxBracket:
    threshold: float
    rate: float


@dataclass(frozen=True)
class Surtax:
    """Two-tier provincial surtax applied to provincial tax after credits."""
    first_threshold: float = float('inf')
    first_rate: float = 0.0
    second_threshold: float = float('inf')
    second_rate: float = 0.0


@dataclass(frozen=True)
class HealthPremiumBracket:
    threshold: float
    base: float
    rate: float
    max_premium: float


@dataclass(frozen=True)
class HealthPremium:
    minimum_income: float = 0.0
    brackets: Tuple[HealthPremiumBracket, ...] = ()


@dataclass(frozen=True)
class PensionPlan:
    """Base pension plan (CPP or QPP) parameters."""
    rate: float
    ympe: float
    basic_exemption: float
    max_contribution: float


@dataclass(frozen=True)
class SecondPensionTier:
    """Second additional pension tier (CPP2 or QPP2)."""
    rate: float
    first_ceiling: float
    second_ceiling: float
    max_contribution: float


@dataclass(frozen=True)
class EmploymentInsurance:
    rate: float
    max_insurable_earnings: float
    max_contribution: float
    employer_multiplier: float


@dataclass(frozen=True)
class ParentalInsurance:
    """Quebec Parental Insurance Plan premiums."""
    employee_rate: float
    employer_rate: float
    max_insurable_earnings: float


@dataclass(frozen=True)
class QuebecPayroll:
    qpp: PensionPlan
    qpp2: SecondPensionTier
    qpip: ParentalInsurance
    ei: EmploymentInsurance


@dataclass(frozen=True)
class DividendClassRates:
    gross_up: float
    federal_credit: float
    provincial_credit: float


@dataclass(frozen=True)
class DividendRates:
    eligible: DividendClassRates
    non_eligible: DividendClassRates


@dataclass(frozen=True)
class CorporateRates:
    """Combined federal + provincial corporate rates."""
    small_business: float
    general: float
    passive_investment: float


@dataclass(frozen=True)
class TaxYearData:
    year: int
    province: str

    federal_brackets: Tuple[TaxBracket, ...]
    federal_basic_personal_amount: float
    provincial_brackets: Tuple[TaxBracket, ...]
    provincial_basic_personal_amount: float

    cpp: PensionPlan
    cpp2: SecondPensionTier
    ei: EmploymentInsurance
    dividend: DividendRates
    corporate: CorporateRates

    rrsp_contribution_rate: float
    rrsp_dollar_limit: float
    tfsa_annual_limit: float
    rdtoh_refund_rate: float

    surtax: Surtax = field(default_factory=Surtax)
    health_premium: HealthPremium = field(default_factory=HealthPremium)
    # Fraction of federal tax abated for provinces that collect their own (QC)
    federal_abatement: float = 0.0
    quebec_payroll: Optional[QuebecPayroll] = None
    top_combined_rate: float = 0.0

    @property
    def uses_quebec_payroll(self) -> bool:
        return self.quebec_payroll is not None

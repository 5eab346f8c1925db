from model.ProjectionData import PayrollResult
from model.TaxYearData import EmploymentInsurance, PensionPlan, SecondPensionTier, TaxYearData


def pension_contribution(salary: float, plan: PensionPlan) -> float:
    """Base CPP/QPP employee contribution."""
    if salary <= plan.basic_exemption:
        return 0.0
    pensionable = min(salary - plan.basic_exemption, plan.ympe - plan.basic_exemption)
    return min(pensionable * plan.rate, plan.max_contribution)


def second_tier_contribution(salary: float, tier: SecondPensionTier) -> float:
    """CPP2/QPP2 employee contribution on earnings between the two ceilings."""
    if salary <= tier.first_ceiling:
        return 0.0
    earnings = min(salary - tier.first_ceiling, tier.second_ceiling - tier.first_ceiling)
    return min(earnings * tier.rate, tier.max_contribution)


def ei_premium(salary: float, ei: EmploymentInsurance) -> float:
    if salary <= 0:
        return 0.0
    return min(min(salary, ei.max_insurable_earnings) * ei.rate, ei.max_contribution)


def payroll_deductions(salary: float, tax_data: TaxYearData) -> PayrollResult:
    """Calculate employee payroll deductions and the employer's matching cost.

    Quebec uses QPP, QPP2, the reduced EI rate and QPIP; every other province
    uses CPP, CPP2 and EI. The employer matches pension contributions, pays
    EI at the employer multiplier and, in Quebec, its own QPIP premium.

    Args:
        salary: Gross salary for the year.
        tax_data: Rates for the year and province.

    Returns:
        PayrollResult with employee amounts and the total employer cost.
    """
    if tax_data.quebec_payroll is not None:
        qc = tax_data.quebec_payroll
        cpp = pension_contribution(salary, qc.qpp)
        cpp2 = second_tier_contribution(salary, qc.qpp2)
        ei = ei_premium(salary, qc.ei)
        insurable = min(salary, qc.qpip.max_insurable_earnings) if salary > 0 else 0.0
        qpip = insurable * qc.qpip.employee_rate
        employer_cost = cpp + cpp2 + ei * qc.ei.employer_multiplier + insurable * qc.qpip.employer_rate
        return PayrollResult(cpp=cpp, cpp2=cpp2, ei=ei, qpip=qpip, employer_cost=employer_cost)

    cpp = pension_contribution(salary, tax_data.cpp)
    cpp2 = second_tier_contribution(salary, tax_data.cpp2)
    ei = ei_premium(salary, tax_data.ei)
    return PayrollResult(cpp=cpp, cpp2=cpp2, ei=ei, employer_cost=cpp + cpp2 + ei * tax_data.ei.employer_multiplier)

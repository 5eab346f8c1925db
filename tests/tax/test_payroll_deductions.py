import unittest
import os
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))
from tax.PayrollDeductions import ei_premium, payroll_deductions, pension_contribution, second_tier_contribution
from tax.TaxYearDataProvider import TaxYearDataProvider


PROVIDER = TaxYearDataProvider(0.02, 2028)


class TestPayrollDeductions(unittest.TestCase):
    def setUp(self):
        self.on = PROVIDER.get_tax_year_data(2026, 'ON')
        self.qc = PROVIDER.get_tax_year_data(2026, 'QC')

    def test_ontario_salary_75000(self):
        result = payroll_deductions(75000, self.on)
        self.assertAlmostEqual(result.cpp, 4230.45, places=2)
        self.assertAlmostEqual(result.cpp2, 16.0, places=2)
        self.assertAlmostEqual(result.ei, 1123.07, places=2)
        self.assertEqual(result.qpip, 0.0)
        self.assertAlmostEqual(result.total_employee, 4230.45 + 16.0 + 1123.07, places=2)

    def test_employer_cost_matches_pension_and_multiplies_ei(self):
        result = payroll_deductions(75000, self.on)
        self.assertAlmostEqual(result.employer_cost, 4230.45 + 16.0 + 1123.07 * 1.4, places=2)

    def test_zero_salary(self):
        result = payroll_deductions(0, self.on)
        self.assertEqual(result.total_employee, 0.0)
        self.assertEqual(result.employer_cost, 0.0)

    def test_salary_under_basic_exemption_pays_only_ei(self):
        result = payroll_deductions(3000, self.on)
        self.assertEqual(result.cpp, 0.0)
        self.assertAlmostEqual(result.ei, 3000 * 0.0163)

    def test_contributions_capped_above_ceilings(self):
        result = payroll_deductions(250000, self.on)
        self.assertAlmostEqual(result.cpp, 4230.45, places=2)
        self.assertAlmostEqual(result.cpp2, 416.0, places=2)
        self.assertAlmostEqual(result.ei, 1123.07, places=2)

    def test_quebec_uses_qpp_qpip_and_reduced_ei(self):
        result = payroll_deductions(75000, self.qc)
        self.assertAlmostEqual(result.cpp, 4550.40, places=2)
        self.assertAlmostEqual(result.cpp2, 16.0, places=2)
        self.assertAlmostEqual(result.ei, 68900 * 0.01264, places=2)
        self.assertAlmostEqual(result.qpip, 75000 * 0.00494, places=2)
        expected_employer = 4550.40 + 16.0 + 68900 * 0.01264 * 1.4 + 75000 * 0.00692
        self.assertAlmostEqual(result.employer_cost, expected_employer, places=2)

    def test_qpip_insurable_earnings_capped(self):
        result = payroll_deductions(150000, self.qc)
        self.assertAlmostEqual(result.qpip, 100000 * 0.00494, places=2)


class TestContributionHelpers(unittest.TestCase):
    def setUp(self):
        self.on = PROVIDER.get_tax_year_data(2026, 'ON')

    def test_pension_contribution_between_exemption_and_ympe(self):
        self.assertAlmostEqual(pension_contribution(50000, self.on.cpp), 46500 * 0.0595)

    def test_second_tier_only_above_first_ceiling(self):
        self.assertEqual(second_tier_contribution(74600, self.on.cpp2), 0.0)
        self.assertAlmostEqual(second_tier_contribution(80000, self.on.cpp2), 5400 * 0.04)

    def test_ei_premium_negative_salary(self):
        self.assertEqual(ei_premium(-100, self.on.ei), 0.0)

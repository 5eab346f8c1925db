import unittest
import os
import sys
import json
import tempfile
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))
from tax.FederalDetails import FederalDetails


class TestFederalDetails(unittest.TestCase):
    def setUp(self):
        # 2% indexation, projected out to 2028
        self.fed = FederalDetails(0.02, 2028)

    def test_curated_years_loaded_verbatim(self):
        data = self.fed.get_data_for_year(2026)
        self.assertEqual(data['basicPersonalAmount'], 16452)
        self.assertEqual(data['brackets'][1]['threshold'], 58523)
        self.assertAlmostEqual(data['cpp']['maxContribution'], 4230.45, places=2)
        self.assertAlmostEqual(data['ei']['maxContribution'], 1123.07, places=2)

    def test_projected_year_indexes_thresholds(self):
        data = self.fed.get_data_for_year(2027)
        # 58523 * 1.02 = 59693.46, rounded to the dollar
        self.assertEqual(data['brackets'][1]['threshold'], 59693)
        self.assertEqual(data['brackets'][0]['threshold'], 0)
        self.assertEqual(data['basicPersonalAmount'], 16781)
        # Rates are not indexed
        self.assertEqual(data['brackets'][1]['rate'], 0.205)

    def test_projected_cpp(self):
        cpp = self.fed.get_data_for_year(2027)['cpp']
        self.assertEqual(cpp['ympe'], 76092)
        self.assertEqual(cpp['basicExemption'], 3500)
        self.assertAlmostEqual(cpp['maxContribution'], 4319.22, places=2)

    def test_tfsa_limit_rounds_down_to_500(self):
        # 7000 * 1.02 and 7000 * 1.0404 both stay under 7500
        self.assertEqual(self.fed.get_data_for_year(2027)['tfsa']['annualLimit'], 7000)
        self.assertEqual(self.fed.get_data_for_year(2028)['tfsa']['annualLimit'], 7000)

    def test_year_before_first_curated_year_reuses_first(self):
        self.assertIs(self.fed.get_data_for_year(2020), self.fed.get_data_for_year(2025))

    def test_year_after_final_year_raises(self):
        with self.assertRaises(ValueError):
            self.fed.get_data_for_year(2029)

    def test_default_inflation_rate_is_latest_cra_factor(self):
        self.assertAlmostEqual(self.fed.default_inflation_rate(), 0.02)

    def test_reference_constants(self):
        self.assertAlmostEqual(self.fed.quebec_abatement, 0.165)
        self.assertEqual(self.fed.small_business_limit['businessLimit'], 500000)
        self.assertAlmostEqual(self.fed.corporate_investment['nonRefundableRate'], 0.265)


def test_gap_in_tax_years_raises():
    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
    with open(os.path.join(repo_root, 'reference', 'federal-details.json'), 'r') as f:
        data = json.load(f)
    later = dict(data['taxYears'][-1], year=2028)
    data['taxYears'].append(later)

    with tempfile.TemporaryDirectory() as tmp:
        with open(os.path.join(tmp, 'federal-details.json'), 'w') as f:
            json.dump(data, f)
        try:
            FederalDetails(0.02, 2030, reference_dir=tmp)
        except ValueError as e:
            assert 'Gap found between 2026 and 2028' in str(e)
        else:
            raise AssertionError("expected a ValueError for the missing 2027 entry")


def test_missing_tax_years_raises():
    with tempfile.TemporaryDirectory() as tmp:
        with open(os.path.join(tmp, 'federal-details.json'), 'w') as f:
            json.dump({"taxYears": []}, f)
        try:
            FederalDetails(0.02, 2030, reference_dir=tmp)
        except ValueError as e:
            assert 'taxYears' in str(e)
        else:
            raise AssertionError("expected a ValueError for an empty taxYears array")

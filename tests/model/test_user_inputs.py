import unittest
import os
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))
from model.NotionalAccounts import NotionalAccounts
from model.UserInputs import ConfigurationError, SpouseInputs, UserInputs


class TestFromSpec(unittest.TestCase):
    def test_reads_camel_case_keys(self):
        inputs = UserInputs.from_spec({
            "province": "QC",
            "requiredIncome": 90000,
            "planningHorizon": 6,
            "eRDTOHBalance": 1000,
            "nRDTOHBalance": 2000,
            "salaryStrategy": "fixed",
            "fixedSalaryAmount": 50000,
            "maximizeTFSA": True,
            "spouse": {"requiredIncome": 25000, "salaryStrategy": "dividends-only"},
        })
        self.assertEqual(inputs.province, 'QC')
        self.assertEqual(inputs.required_income, 90000)
        self.assertEqual(inputs.planning_horizon, 6)
        self.assertEqual(inputs.erdtoh_balance, 1000)
        self.assertEqual(inputs.nrdtoh_balance, 2000)
        self.assertEqual(inputs.fixed_salary_amount, 50000)
        self.assertTrue(inputs.maximize_tfsa)
        self.assertEqual(inputs.spouse.required_income, 25000)
        self.assertEqual(inputs.spouse.salary_strategy, 'dividends-only')

    def test_defaults(self):
        inputs = UserInputs.from_spec({"requiredIncome": 60000})
        self.assertEqual(inputs.province, 'ON')
        self.assertEqual(inputs.starting_year, 2026)
        self.assertEqual(inputs.salary_strategy, 'dynamic')
        self.assertIsNone(inputs.spouse)
        inputs.validate()

    def test_with_strategy_keeps_everything_else(self):
        inputs = UserInputs(required_income=70000, cda_balance=500, salary_strategy='fixed', fixed_salary_amount=40000)
        changed = inputs.with_strategy('dividends-only')
        self.assertEqual(changed.salary_strategy, 'dividends-only')
        self.assertEqual(changed.cda_balance, 500)
        self.assertEqual(changed.fixed_salary_amount, 40000)
        self.assertEqual(inputs.salary_strategy, 'fixed')


class TestValidate(unittest.TestCase):
    def assertInvalid(self, fragment, **fields):
        values = dict(required_income=80000)
        values.update(fields)
        with self.assertRaises(ConfigurationError) as ctx:
            UserInputs(**values).validate()
        self.assertTrue(any(fragment in e for e in ctx.exception.errors), ctx.exception.errors)

    def test_unknown_province(self):
        self.assertInvalid("Unknown province code 'ZZ'", province='ZZ')

    def test_horizon_bounds(self):
        self.assertInvalid("between 3 and 10", planning_horizon=2)
        self.assertInvalid("between 3 and 10", planning_horizon=11)
        UserInputs(required_income=80000, planning_horizon=3).validate()
        UserInputs(required_income=80000, planning_horizon=10).validate()

    def test_required_income_bounds(self):
        self.assertInvalid("cannot be negative", required_income=-1)
        self.assertInvalid("cannot exceed", required_income=10_000_001)
        UserInputs(required_income=0).validate()

    def test_rates(self):
        self.assertInvalid("Inflation rate", expected_inflation_rate=0.11)
        self.assertInvalid("Investment return rate", investment_return_rate=-0.01)

    def test_allocation_must_sum_to_100(self):
        self.assertInvalid("must sum to 100%", canadian_equity_percent=50, us_equity_percent=20,
                           international_equity_percent=20, fixed_income_percent=0)
        UserInputs(required_income=1, canadian_equity_percent=25, us_equity_percent=25,
                   international_equity_percent=25, fixed_income_percent=25.01).validate()

    def test_negative_balances(self):
        self.assertInvalid("GRIP balance cannot be negative", grip_balance=-5)

    def test_fixed_strategy_needs_amount(self):
        self.assertInvalid("Fixed salary amount must be greater than $0", salary_strategy='fixed')

    def test_unknown_strategy(self):
        self.assertInvalid("Salary strategy 'bonus'", salary_strategy='bonus')

    def test_spouse_errors_are_prefixed(self):
        self.assertInvalid("Spouse: Fixed salary amount",
                           spouse=SpouseInputs(required_income=10000, salary_strategy='fixed'))

    def test_all_errors_reported_together(self):
        with self.assertRaises(ConfigurationError) as ctx:
            UserInputs(required_income=-5, province='ZZ', planning_horizon=1).validate()
        self.assertEqual(len(ctx.exception.errors), 3)
        self.assertIsInstance(ctx.exception, ValueError)


class TestNotionalAccounts(unittest.TestCase):
    def test_with_changes_returns_new_value(self):
        accounts = NotionalAccounts(cda=100, grip=50)
        changed = accounts.with_changes(cda=0)
        self.assertEqual(changed.cda, 0)
        self.assertEqual(changed.grip, 50)
        self.assertEqual(accounts.cda, 100)

    def test_pools_non_negative_ignores_cash(self):
        self.assertTrue(NotionalAccounts(corporate_investments=-10).pools_non_negative())
        self.assertTrue(NotionalAccounts(erdtoh=-1e-9).pools_non_negative())
        self.assertFalse(NotionalAccounts(nrdtoh=-0.01).pools_non_negative())

    def test_to_dict(self):
        self.assertEqual(NotionalAccounts(cda=1, erdtoh=2, nrdtoh=3, grip=4, corporate_investments=5).to_dict(),
                         {"cda": 1, "erdtoh": 2, "nrdtoh": 3, "grip": 4, "corporate_investments": 5})

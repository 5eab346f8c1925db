import os
import sys
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))
from tax.EmployerHealthTax import EmployerHealthTax


@pytest.fixture(scope="module")
def eht():
    return EmployerHealthTax()


def test_bc_under_exemption_is_zero(eht):
    assert eht.total_contribution('BC', 900000, 2026) == 0.0


def test_bc_notch_rate_between_thresholds(eht):
    assert eht.total_contribution('BC', 1200000, 2026) == pytest.approx(0.0585 * 200000)


def test_bc_full_rate_on_total_above_upper_threshold(eht):
    assert eht.total_contribution('BC', 2000000, 2026) == pytest.approx(0.0195 * 2000000)


def test_manitoba_thresholds_change_by_year(eht):
    assert eht.total_contribution('MB', 3000000, 2026) == pytest.approx(0.043 * 500000)
    assert eht.total_contribution('MB', 3000000, 2025) == pytest.approx(0.043 * 750000)


def test_years_after_last_entry_reuse_it(eht):
    assert eht.total_contribution('MB', 3000000, 2031) == eht.total_contribution('MB', 3000000, 2026)


def test_provinces_without_levy(eht):
    assert eht.total_contribution('ON', 5000000, 2026) == 0.0
    assert eht.total_contribution('BC', 0, 2026) == 0.0

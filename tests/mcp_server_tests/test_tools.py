"""Tests for the MCP server tools module."""

import os
import sys
import json
import shutil
import tempfile
import pytest
from unittest.mock import patch

# Add src and mcp-server to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../mcp-server')))

from tools import CorporatePlannerTools, MultiScenarioTools


FIXTURES_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), 'fixtures'))

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '../..'))


@pytest.fixture(scope="module")
def test_base_path():
    """Create a temporary directory structure for testing.

    This creates a temp directory with the required structure:
    - input-parameters/testscenario/spec.json (from fixtures)
    - reference/*.json (symlinked from project)
    """
    temp_dir = tempfile.mkdtemp()

    input_params_dir = os.path.join(temp_dir, 'input-parameters')
    os.makedirs(input_params_dir)
    shutil.copytree(
        os.path.join(FIXTURES_PATH, 'testscenario'),
        os.path.join(input_params_dir, 'testscenario')
    )

    os.symlink(
        os.path.join(PROJECT_ROOT, 'reference'),
        os.path.join(temp_dir, 'reference')
    )

    yield temp_dir

    shutil.rmtree(temp_dir, ignore_errors=True)


def _add_scenario(base_path: str, name: str, spec: dict):
    scenario_dir = os.path.join(base_path, 'input-parameters', name)
    os.makedirs(scenario_dir, exist_ok=True)
    with open(os.path.join(scenario_dir, 'spec.json'), 'w') as f:
        json.dump(spec, f)


class TestCorporatePlannerTools:
    """Tests for CorporatePlannerTools class."""

    @pytest.fixture
    def tools(self, test_base_path):
        return CorporatePlannerTools(test_base_path, 'testscenario')

    def test_init_loads_spec(self, tools):
        assert tools.spec['province'] == 'ON'
        assert tools.inputs.salary_strategy == 'fixed'

    def test_init_projects_every_year(self, tools):
        assert tools.first_year == 2026
        assert tools.last_year == 2028
        assert [r.calendar_year for r in tools.summary.yearly_results] == [2026, 2027, 2028]

    def test_get_scenario_overview(self, tools):
        overview = tools.get_scenario_overview()

        assert overview['scenario_name'] == 'testscenario'
        assert overview['planning_horizon'] == {"first_year": 2026, "last_year": 2028, "years": 3}
        assert overview['starting_balances']['cda'] == 10000
        assert overview['has_spouse'] is False
        assert 'spouse' not in overview

    def test_get_year_details(self, tools):
        details = tools.get_year_details(2026)

        assert details['display_year'] == 1
        # Fixed salary of 60000 in the first year is not inflated
        assert details['primary']['salary'] == 60000
        assert details['primary']['payroll']['cpp'] > 0
        assert details['corporate_tax']['tax_on_active'] > 0

    def test_get_year_details_values_are_rounded(self, tools):
        details = tools.get_year_details(2027)

        for value in details['primary']['personal_tax'].values():
            assert round(value, 2) == value

    def test_get_year_details_invalid_year(self, tools):
        details = tools.get_year_details(2040)

        assert 'error' in details
        assert '2026-2028' in details['error']

    def test_get_projection_summary(self, tools):
        summary = tools.get_projection_summary()

        assert summary['years'] == '2026-2028'
        assert len(summary['yearly']) == 3
        yearly_tax = sum(y['total_tax'] for y in summary['yearly'])
        assert summary['totals']['total_tax'] == pytest.approx(yearly_tax, abs=0.05)

    def test_get_notional_accounts_all_years(self, tools):
        accounts = tools.get_notional_accounts()

        assert accounts['starting']['nrdtoh'] == 8000
        assert [a['year'] for a in accounts['yearly']] == [2026, 2027, 2028]
        for a in accounts['yearly']:
            for pool in ('cda', 'erdtoh', 'nrdtoh', 'grip'):
                assert a[pool] >= 0

    def test_get_notional_accounts_single_year(self, tools):
        accounts = tools.get_notional_accounts(2028)

        assert accounts['year'] == 2028
        capacity = accounts['dividend_capacity']
        assert capacity['total'] == pytest.approx(
            capacity['capital'] + capacity['eligible'] + capacity['non_eligible'], abs=0.05)

    def test_get_notional_accounts_invalid_year(self, tools):
        assert 'error' in tools.get_notional_accounts(2025)

    def test_compare_strategies_includes_current_setup(self, tools):
        result = tools.compare_strategies()

        ids = [s['id'] for s in result['strategies']]
        assert ids == ['current-setup', 'salary-at-ympe', 'dividends-only', 'dynamic']
        assert result['best_overall'] in ids
        best = next(s for s in result['strategies'] if s['id'] == result['best_overall'])
        assert best['tax_savings_vs_best'] == 0


class TestMultiScenarioTools:
    """Tests for MultiScenarioTools class."""

    @pytest.fixture
    def multi_tools(self, test_base_path):
        return MultiScenarioTools(test_base_path)

    def test_init_discovers_scenarios(self, multi_tools):
        assert 'testscenario' in multi_tools.scenarios

    def test_init_sets_default_scenario(self, multi_tools):
        assert multi_tools.default_scenario == 'testscenario'

    def test_init_with_explicit_default(self, test_base_path):
        multi = MultiScenarioTools(test_base_path, default_scenario='testscenario')
        assert multi.default_scenario == 'testscenario'

    def test_list_scenarios(self, multi_tools):
        result = multi_tools.list_scenarios()

        assert result['available_scenarios'] == ['testscenario']
        info = result['scenarios_info']['testscenario']
        assert info['province'] == 'ON'
        assert info['first_year'] == 2026
        assert info['last_year'] == 2028

    def test_get_year_details_adds_scenario(self, multi_tools):
        result = multi_tools.get_year_details(2026, 'testscenario')

        assert result['scenario'] == 'testscenario'

    def test_get_scenario_invalid_scenario(self, multi_tools):
        with pytest.raises(ValueError, match="not found"):
            multi_tools.get_scenario_overview('nonexistent')

    def test_compare_scenarios_unknown(self, multi_tools):
        result = multi_tools.compare_scenarios('testscenario', 'nonexistent')

        assert 'error' in result

    def test_compare_scenarios_invalid_metrics(self, multi_tools):
        result = multi_tools.compare_scenarios('testscenario', 'testscenario', ['bogus'])

        assert 'No valid metrics' in result['error']

    def test_compare_scenario_with_itself_ties(self, multi_tools):
        result = multi_tools.compare_scenarios('testscenario', 'testscenario')

        assert result['summary']['overall_better'] == 'tie'
        assert result['tax_savings'] == 0

    def test_compare_scenarios_uses_loaded_projections(self, multi_tools):
        summary = multi_tools.scenarios['testscenario'].summary

        with patch('tools.calculate_projection') as calculate:
            result = multi_tools.compare_scenarios('testscenario', 'testscenario', ['total_tax'])

        calculate.assert_not_called()
        assert result['metrics']['total_tax']['testscenario'] == round(summary.total_tax, 2)


class TestScenarioDiscovery:
    """Discovery and reload against a scratch directory."""

    @pytest.fixture
    def scratch_path(self, test_base_path):
        temp_dir = tempfile.mkdtemp()
        shutil.copytree(os.path.join(test_base_path, 'input-parameters'),
                        os.path.join(temp_dir, 'input-parameters'))
        yield temp_dir
        shutil.rmtree(temp_dir, ignore_errors=True)

    def test_invalid_scenario_is_skipped(self, scratch_path):
        _add_scenario(scratch_path, 'broken', {"province": "XX", "requiredIncome": 50000})

        multi = MultiScenarioTools(scratch_path)

        assert 'broken' not in multi.scenarios
        assert 'testscenario' in multi.scenarios

    def test_multiple_scenarios_require_explicit_choice(self, scratch_path):
        with open(os.path.join(FIXTURES_PATH, 'testscenario', 'spec.json')) as f:
            spec = json.load(f)
        _add_scenario(scratch_path, 'another', dict(spec, province='AB'))

        multi = MultiScenarioTools(scratch_path)

        with pytest.raises(ValueError, match="Multiple scenarios"):
            multi.get_projection_summary()
        assert multi.get_projection_summary('another')['scenario'] == 'another'

    def test_reload_picks_up_new_scenario(self, scratch_path, monkeypatch):
        monkeypatch.delenv('CORP_PLANNER_SCENARIO', raising=False)
        multi = MultiScenarioTools(scratch_path)
        with open(os.path.join(FIXTURES_PATH, 'testscenario', 'spec.json')) as f:
            spec = json.load(f)
        _add_scenario(scratch_path, 'added', dict(spec, requiredIncome=60000))

        result = multi.reload_scenarios()

        assert result['status'] == 'success'
        assert result['changes']['added'] == ['added']
        assert result['changes']['reloaded'] == ['testscenario']
        assert 'added' in multi.scenarios

import os
import sys
import pytest
from unittest.mock import patch
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))
import Program
from Program import load_scenario


def test_load_scenario_reads_spec():
    inputs = load_scenario('quebec-fixed')

    assert inputs.province == 'QC'
    assert inputs.salary_strategy == 'fixed'
    assert inputs.fixed_salary_amount == 74600


def test_load_scenario_missing_raises():
    with pytest.raises(FileNotFoundError):
        load_scenario('does-not-exist')


@pytest.mark.parametrize("mode,expected", [
    ('Summary', 'PROJECTION SUMMARY'),
    ('Yearly', 'YEARLY COMPENSATION AND TAX'),
    ('Accounts', 'NOTIONAL ACCOUNTS'),
    ('Compare', 'STRATEGY COMPARISON'),
])
def test_main_modes(mode, expected, capsys):
    with patch.object(sys, 'argv', ['Program.py', 'ontario-dynamic', '--mode', mode]):
        Program.main()

    assert expected in capsys.readouterr().out


def test_main_reports_missing_scenario(capsys):
    with patch.object(sys, 'argv', ['Program.py', 'does-not-exist']):
        with pytest.raises(SystemExit) as excinfo:
            Program.main()

    assert excinfo.value.code == 1
    assert 'Spec file not found' in capsys.readouterr().out


def test_main_reports_invalid_scenario(tmp_path, capsys):
    scenario_dir = tmp_path / 'input-parameters' / 'broken'
    scenario_dir.mkdir(parents=True)
    (scenario_dir / 'spec.json').write_text('{"requiredIncome": 50000, "planningHorizon": 20}')

    with patch.object(Program, 'load_scenario', lambda name: load_scenario(name, str(tmp_path))), \
            patch.object(sys, 'argv', ['Program.py', 'broken']):
        with pytest.raises(SystemExit) as excinfo:
            Program.main()

    assert excinfo.value.code == 1
    out = capsys.readouterr().out
    assert 'Invalid scenario:' in out
    assert 'Planning horizon must be between 3 and 10 years' in out

import sys
import os
import json
import argparse
import logging

from calc.projection_calculator import calculate_projection, provider_for
from calc.strategy_comparison import run_strategy_comparison
from model.UserInputs import ConfigurationError, UserInputs
from render.renderers import AccountsRenderer, CompareRenderer, RENDERER_REGISTRY, SummaryRenderer, YearlyRenderer

logger = logging.getLogger(__name__)


def load_scenario(scenario_name: str, base_path: str = None) -> UserInputs:
    """Load input-parameters/<scenario_name>/spec.json into UserInputs.

    Raises:
        FileNotFoundError: If the scenario has no spec.json.
    """
    if base_path is None:
        base_path = os.path.join(os.path.dirname(__file__), '..')
    spec_path = os.path.join(base_path, 'input-parameters', scenario_name, 'spec.json')
    if not os.path.exists(spec_path):
        raise FileNotFoundError(f"Spec file not found: {spec_path}")
    with open(spec_path, 'r') as f:
        spec = json.load(f)
    return UserInputs.from_spec(spec)


def main():
    parser = argparse.ArgumentParser(
        description='Owner-manager salary and dividend planner',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  Summary    Print projection totals and effective rates (default)
  Yearly     Print a year-by-year compensation and tax table
  Accounts   Print end-of-year notional account balances
  Compare    Compare salary at YMPE, dividends only and the dynamic strategy

Examples:
  python src/Program.py ontario-dynamic
  python src/Program.py ontario-dynamic --mode Yearly
  python src/Program.py quebec-fixed --mode Compare --log-level DEBUG
        """
    )
    parser.add_argument('scenario_name', help='Name of the scenario (folder in input-parameters)')
    parser.add_argument('--mode', '-m',
                        choices=list(RENDERER_REGISTRY.keys()),
                        default='Summary',
                        help='Output mode (default: Summary)')
    parser.add_argument('--log-level',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default='WARNING',
                        help='Logging level (default: WARNING)')

    args = parser.parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        inputs = load_scenario(args.scenario_name)
        inputs.validate()
        provider = provider_for(inputs)
        if args.mode == 'Compare':
            CompareRenderer().render(run_strategy_comparison(inputs, provider))
            return

        summary = calculate_projection(inputs, provider)
        if args.mode == 'Yearly':
            YearlyRenderer().render(summary)
        elif args.mode == 'Accounts':
            refund_rate = provider.get_tax_year_data(inputs.starting_year, inputs.province).rdtoh_refund_rate
            AccountsRenderer(refund_rate).render(summary)
        else:
            SummaryRenderer().render(summary)
    except FileNotFoundError as e:
        print(e)
        sys.exit(1)
    except ConfigurationError as e:
        print("Invalid scenario:")
        for error in e.errors:
            print(f"  - {error}")
        sys.exit(1)


if __name__ == "__main__":
    main()

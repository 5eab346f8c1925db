#!/usr/bin/env python3
"""MCP Server for the Corporate Planner.

This server exposes owner-manager compensation projections as MCP tools,
allowing AI assistants to answer questions about a scenario's salary and
dividend mix, taxes and corporate accounts.
"""

import os
import sys
import json
import asyncio
import logging
from typing import Any

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from tools import MultiScenarioTools

logger = logging.getLogger(__name__)

# Create the MCP server
server = Server("corp-planner")

# Global tools instance (initialized on first call)
tools: MultiScenarioTools | None = None


def get_tools() -> MultiScenarioTools:
    """Get or initialize the tools instance."""
    global tools
    if tools is None:
        # Default scenario can be set via CORP_PLANNER_SCENARIO env var
        default_scenario = os.environ.get('CORP_PLANNER_SCENARIO')
        base_path = os.path.join(os.path.dirname(__file__), '..')
        tools = MultiScenarioTools(base_path, default_scenario)
    return tools


# Common scenario parameter schema
SCENARIO_PARAM = {
    "type": "string",
    "description": "The scenario name (folder in input-parameters). If not specified, uses the default scenario. Use list_scenarios to see available scenarios."
}


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available planning tools."""
    return [
        Tool(
            name="list_scenarios",
            description="List all available scenarios with their province, years and salary strategy.",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        ),
        Tool(
            name="reload_scenarios",
            description="Reload all scenarios from disk. Use this after adding, modifying, or removing scenario spec.json files to refresh the cache without restarting the server.",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": []
            }
        ),
        Tool(
            name="get_scenario_overview",
            description="Get an overview of a scenario: province, planning horizon, required income, salary strategy, starting notional account balances and portfolio. Use this first to understand the scenario.",
            inputSchema={
                "type": "object",
                "properties": {
                    "scenario": SCENARIO_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="get_year_details",
            description="Get the detailed results for one calendar year: salary, capital/eligible/non-eligible dividends, personal tax, CPP/EI, corporate tax, RDTOH refund and contributions.",
            inputSchema={
                "type": "object",
                "properties": {
                    "year": {
                        "type": "integer",
                        "description": "The calendar year to get details for"
                    },
                    "scenario": SCENARIO_PARAM
                },
                "required": ["year"]
            }
        ),
        Tool(
            name="get_projection_summary",
            description="Get totals and effective tax rates across the whole projection, with a short per-year table.",
            inputSchema={
                "type": "object",
                "properties": {
                    "scenario": SCENARIO_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="get_notional_accounts",
            description="Get end-of-year CDA, eRDTOH, nRDTOH, GRIP and corporate investment balances for one year (with remaining dividend capacity) or all years.",
            inputSchema={
                "type": "object",
                "properties": {
                    "year": {
                        "type": "integer",
                        "description": "Optional: specific year. If omitted, returns every year."
                    },
                    "scenario": SCENARIO_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="compare_strategies",
            description="Compare salary at YMPE, dividends only and the dynamic strategy (plus the current setup when it is fixed or dividends only) for a scenario. Reports the lowest-tax, highest-balance and best overall strategies.",
            inputSchema={
                "type": "object",
                "properties": {
                    "scenario": SCENARIO_PARAM
                },
                "required": []
            }
        ),
        Tool(
            name="compare_scenarios",
            description="Compare two scenarios on total tax, compensation, after-tax income, final corporate balance, RRSP room and effective tax rate, and recommend the better one.",
            inputSchema={
                "type": "object",
                "properties": {
                    "scenario1": {
                        "type": "string",
                        "description": "First scenario name to compare"
                    },
                    "scenario2": {
                        "type": "string",
                        "description": "Second scenario name to compare"
                    },
                    "metrics": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Optional: specific metrics to compare. Options: 'total_tax', 'total_compensation', 'after_tax_income', 'final_corporate_balance', 'rrsp_room', 'effective_tax_rate'. If not specified, compares all metrics."
                    }
                },
                "required": ["scenario1", "scenario2"]
            }
        )
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        cp_tools = get_tools()
        scenario = arguments.get("scenario")

        if name == "list_scenarios":
            result = cp_tools.list_scenarios()
        elif name == "reload_scenarios":
            result = cp_tools.reload_scenarios()
        elif name == "get_scenario_overview":
            result = cp_tools.get_scenario_overview(scenario)
        elif name == "get_year_details":
            result = cp_tools.get_year_details(arguments["year"], scenario)
        elif name == "get_projection_summary":
            result = cp_tools.get_projection_summary(scenario)
        elif name == "get_notional_accounts":
            result = cp_tools.get_notional_accounts(arguments.get("year"), scenario)
        elif name == "compare_strategies":
            result = cp_tools.compare_strategies(scenario)
        elif name == "compare_scenarios":
            result = cp_tools.compare_scenarios(
                arguments["scenario1"],
                arguments["scenario2"],
                arguments.get("metrics")
            )
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(
            type="text",
            text=json.dumps(result, indent=2, default=str)
        )]
    except Exception as e:
        logger.exception("Tool %s failed", name)
        return [TextContent(
            type="text",
            text=json.dumps({"error": str(e)}, indent=2)
        )]


async def main():
    """Run the MCP server."""
    # stdout carries the protocol, so logs go to stderr
    logging.basicConfig(level=logging.INFO, stream=sys.stderr,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


if __name__ == "__main__":
    asyncio.run(main())

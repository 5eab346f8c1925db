"""Pytest configuration for the corp-planner test suite."""

# Async MCP handler tests run under pytest-asyncio
pytest_plugins = ('pytest_asyncio',)


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test"
    )

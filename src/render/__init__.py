"""Render module for projection output display."""

from render.renderers import (
    BaseRenderer,
    SummaryRenderer,
    YearlyRenderer,
    AccountsRenderer,
    CompareRenderer,
    RENDERER_REGISTRY,
)

__all__ = [
    'BaseRenderer',
    'SummaryRenderer',
    'YearlyRenderer',
    'AccountsRenderer',
    'CompareRenderer',
    'RENDERER_REGISTRY',
]

"""
Reporting: the unified transaction feed and aggregations over it.
"""

from .summary import (
    ChartBucket,
    DailyInsight,
    FinancialSummary,
    category_breakdown,
    daily_insight,
    filter_unified,
    financial_summary,
    sales_chart_buckets,
    totals_by_type,
)
from .unified import balance_at_row, build_unified_view

__all__ = [
    "ChartBucket",
    "DailyInsight",
    "FinancialSummary",
    "balance_at_row",
    "build_unified_view",
    "category_breakdown",
    "daily_insight",
    "filter_unified",
    "financial_summary",
    "sales_chart_buckets",
    "totals_by_type",
]

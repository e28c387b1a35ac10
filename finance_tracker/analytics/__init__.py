"""Cross-entity analytics."""

from finance_tracker.analytics.aggregator import FinancialAggregator

__all__ = ["FinancialAggregator"]

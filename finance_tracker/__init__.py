"""
Finance Tracker

Personal bookkeeping service: a transaction ledger, budget/goal/bill
trackers, an analytics aggregator and a conversational assistant.
"""

__version__ = "0.1.0"

"""
Fasting & Water Tracker - intermittent fasting and hydration tracking engine.

Records fasting sessions and water intake as events, keeps a per-day log
reconciled from them, and rolls over at local midnight.
"""

__version__ = "0.1.0"

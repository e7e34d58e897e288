"""
Palace - market-driven execution and risk analytics engine.

Evaluates simulated positions, trade ideas and price alerts against incoming
market quotes, and computes portfolio risk and performance analytics.
"""

__version__ = "0.1.0"

"""
Weekly feedback reporting.

Deterministically turns the feedback records of a window into:
  - aggregate statistics (counts, average rating, urgency, per-day volume)
  - a plain-text report named weekly-report-<date>.txt

and delivers the stored report to subscribers.
"""

__version__ = "0.1.0"

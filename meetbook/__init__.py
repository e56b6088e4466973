"""
meetbook - book time with a single host from a calendar-backed schedule.
"""

__version__ = "0.1.0"

"""
testhistory - historical test result trends for CI jobs.

This package provides tools to:
- Summarize a test entity's results across the builds of its job
- Read history from a pluggable storage backend when one is attached
- Build pass/fail/skip and duration trend series
"""

__version__ = "0.1.0"
__author__ = "testhistory Team"

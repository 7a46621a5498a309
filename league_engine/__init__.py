"""
league_engine
Tournament bracket and roster-change approval engine for the league portal.
"""

__version__ = "0.1.0"

"""
driverbench measures and compares the query latency of database client
drivers against a common backend.
"""

__version__ = "0.1.0"

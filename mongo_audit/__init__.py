"""
mongo-audit: duplicate-key and index-count audits for MongoDB databases.
"""

__version__ = "0.1.0"

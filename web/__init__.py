"""
Web Fetching Module

Retrieves pages and reduces HTML to visible text for analysis.
"""

__version__ = "0.0.1"

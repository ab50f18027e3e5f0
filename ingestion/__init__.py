"""
Data Ingestion Module

Validates uploads and turns stored files into datasets:
- Upload type and size checks
- CSV parsing via pandas (all cells kept as text)
- JSON parsing (arrays and single objects)
"""

__version__ = "0.0.1"

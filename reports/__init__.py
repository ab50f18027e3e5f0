"""
Reports Module

Exports produced from the workbench:
- Analytics report JSON
- Chart PNG rendering
- Memory snapshots
"""

__version__ = "0.0.1"

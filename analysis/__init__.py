"""
Analysis Engine Module

Statistics and correlation for tabular datasets:
- Numeric coercion and column detection
- Descriptive statistics (mean, median, variance, std dev)
- Pearson correlation matrix
- Filtering, sorting and chart series
"""

__version__ = "0.0.1"

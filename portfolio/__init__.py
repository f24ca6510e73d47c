"""
Property portfolio tracker: loan, equity and cashflow projections.
"""

__version__ = "0.1.0"

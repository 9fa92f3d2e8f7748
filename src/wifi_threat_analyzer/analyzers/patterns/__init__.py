"""
Scan-wide attack pattern analysis.
"""

from .threat_patterns import HistoricalPatternAnalyzer

__all__ = ['HistoricalPatternAnalyzer']

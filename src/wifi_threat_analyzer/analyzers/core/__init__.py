"""
Shared analysis components: vendor lookups, SSID pattern analysis and
evidence fusion.
"""

from .vendor_directory import VendorDirectory
from .ssid_analyzer import SSIDAnalyzer
from .confidence_calculator import ConfidenceCalculator, DetectionMethodStats

__all__ = [
    'VendorDirectory',
    'SSIDAnalyzer',
    'ConfidenceCalculator',
    'DetectionMethodStats'
]

"""
Per-network threat detectors.
"""


from .ssid_spoofing import SSIDSpoofingDetector
from .government_impersonation import GovernmentImpersonationDetector
from .evil_twin import EvilTwinDetector
from .mac_analysis import MACAnalysisDetector
from .signal_anomaly import SignalAnomalyDetector
from .security_config import SecurityConfigDetector
from .historical import HistoricalComparisonDetector

__all__ = [
    'SSIDSpoofingDetector',
    'GovernmentImpersonationDetector',
    'EvilTwinDetector',
    'MACAnalysisDetector',
    'SignalAnomalyDetector',
    'SecurityConfigDetector',
    'HistoricalComparisonDetector'
]

"""Host discovery: platform family and installed tool versions."""
from devsetup.discovery.platform import detect_platform
from devsetup.discovery.probe import CapabilityProbe

__all__ = ['CapabilityProbe', 'detect_platform']

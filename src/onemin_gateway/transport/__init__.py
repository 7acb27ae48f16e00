"""
Transport layer - HTTP communication with the upstream provider.
"""

from onemin_gateway.transport.http import UpstreamTransport

__all__ = ["UpstreamTransport"]

"""
HTTP surface: FastAPI app and request mapping.
"""

from onemin_gateway.gateway.app import create_app, main

__all__ = ["create_app", "main"]

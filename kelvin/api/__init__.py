"""JSON status API."""

from .server import APIServer, create_api

__all__ = ["APIServer", "create_api"]

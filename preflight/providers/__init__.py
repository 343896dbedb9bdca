from .base import Provider
from .rpc import JsonRpcProvider

__all__ = ["Provider", "JsonRpcProvider"]

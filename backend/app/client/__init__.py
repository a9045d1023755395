"""
Python client for the DocVault API
"""
from .session import SessionContext
from .api import DocVaultClient, DocVaultError

__all__ = ["SessionContext", "DocVaultClient", "DocVaultError"]

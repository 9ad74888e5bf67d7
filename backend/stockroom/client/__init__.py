# Overview: Async client for the Stockroom API (session context and table hooks).

from .api import ApiClient, ApiError
from .backup import BackupRestoreHook
from .hooks import (
    CategoriesHook,
    CompaniesHook,
    ProductsHook,
    ProfilesHook,
    PurchaseReturnsHook,
    PurchasesHook,
    PurchaseVouchersHook,
    SalesHook,
    SalesReturnsHook,
    SalesVouchersHook,
    TableHook,
    UnitsHook,
)
from .results import ErrorKind, MutationResult
from .session import AUTH_STORAGE_KEY, AuthEvent, SessionContext
from .storage import LocalStorage

__all__ = [
    "ApiClient",
    "ApiError",
    "AUTH_STORAGE_KEY",
    "AuthEvent",
    "BackupRestoreHook",
    "CategoriesHook",
    "CompaniesHook",
    "ErrorKind",
    "LocalStorage",
    "MutationResult",
    "ProductsHook",
    "ProfilesHook",
    "PurchaseReturnsHook",
    "PurchasesHook",
    "PurchaseVouchersHook",
    "SalesHook",
    "SalesReturnsHook",
    "SalesVouchersHook",
    "SessionContext",
    "TableHook",
    "UnitsHook",
]

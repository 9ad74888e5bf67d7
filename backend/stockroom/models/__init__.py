from .tenancy import Company
from .auth import AuthIdentity, SessionToken, UserProfile
from .security import SecurityEvent
from .catalog import Category, Unit, Product
from .sales import Sale, SalesReturn, SalesVoucher, SalesVoucherItem
from .purchasing import Purchase, PurchaseReturn, PurchaseVoucher, PurchaseVoucherItem

__all__ = [
    'Company',
    'AuthIdentity', 'SessionToken', 'UserProfile',
    'SecurityEvent',
    'Category', 'Unit', 'Product',
    'Sale', 'SalesReturn', 'SalesVoucher', 'SalesVoucherItem',
    'Purchase', 'PurchaseReturn', 'PurchaseVoucher', 'PurchaseVoucherItem',
]

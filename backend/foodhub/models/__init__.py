from .tenancy import Association, Branch, BranchOccurrence, Producer, producer_branches
from .catalog import Product
from .auth import User
from .sales import SalesOrder, SalesOrderRow, RowSnapshot
from .activity import Activity

__all__ = [
    'Association', 'Branch', 'BranchOccurrence', 'Producer', 'producer_branches',
    'Product',
    'User',
    'SalesOrder', 'SalesOrderRow', 'RowSnapshot',
    'Activity',
]

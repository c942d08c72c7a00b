"""
Enumerations shared by models, schemas and authorization logic.
"""

import enum


class Role(str, enum.Enum):
    """
    User role enumeration (closed set).

    Roles:
        ADMIN: full access, including privileged order transitions
        MANAGER: catalog, reports and privileged order transitions
        EMPLOYEE: staff member, may view all orders and enter orders for customers
        CUSTOMER: places and follows their own orders (default for self-registration)
    """
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"
    CUSTOMER = "customer"


PRIVILEGED_ROLES = frozenset({Role.ADMIN, Role.MANAGER})
STAFF_ROLES = frozenset({Role.ADMIN, Role.MANAGER, Role.EMPLOYEE})
ALL_ROLES = frozenset(Role)


class OrderStatus(str, enum.Enum):
    """
    Order status enumeration.

    Status flow:
        PENDING → APPROVED → SHIPPED → DELIVERED
        PENDING / APPROVED / SHIPPED → CANCELLED
        DELIVERED and CANCELLED are terminal
    """
    PENDING = "Pending"
    APPROVED = "Approved"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class PaymentStatus(str, enum.Enum):
    UNPAID = "Unpaid"
    PAID = "Paid"


class PaymentMethod(str, enum.Enum):
    CREDIT_CARD = "Credit Card"
    CASH = "Cash"
    BANK_TRANSFER = "Bank Transfer"
    OTHER = "Other"


class ProductChangeType(str, enum.Enum):
    CREATED = "created"
    PRICE = "price"
    QUANTITY = "quantity"
    INFORMATION = "information"
    STATUS = "status"
    DELETED = "deleted"


class Theme(str, enum.Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class DefaultView(str, enum.Enum):
    LIST = "list"
    GRID = "grid"

"""
Report and dashboard schemas.
"""

import enum
from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from inventory_backend.app.schemas.order import OrderResponse


class ReportPeriod(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ReportType(str, enum.Enum):
    SALES = "sales"
    INVENTORY = "inventory"
    ORDERS = "orders"
    PRODUCTS = "products"


# --- Sales ---

class SalesPeriod(BaseModel):
    label: str
    total_sales: float
    order_count: int
    average_order_value: float
    product_count: int


class SalesSummary(BaseModel):
    total_sales: float = 0.0
    order_count: int = 0
    average_order_value: float = 0.0
    min_order_value: float = 0.0
    max_order_value: float = 0.0


class TopProduct(BaseModel):
    product_id: int
    name: str
    category: Optional[str]
    total_quantity: int
    total_revenue: float


class SalesReport(BaseModel):
    sales_data: List[SalesPeriod]
    summary: SalesSummary
    top_products: List[TopProduct]
    period: ReportPeriod
    filters: Dict[str, Any]


# --- Inventory ---

class InventoryItem(BaseModel):
    id: int
    name: str
    category: str
    quantity: int
    price: float
    sku: Optional[str]

    class Config:
        from_attributes = True


class CategoryInventory(BaseModel):
    category: str
    total_products: int
    total_value: float
    average_price: float
    low_stock_count: int


class InventoryStats(BaseModel):
    total_products: int = 0
    total_value: float = 0.0
    average_price: float = 0.0
    total_quantity: int = 0
    low_stock_count: int = 0


class InventoryReport(BaseModel):
    inventory_data: List[InventoryItem]
    low_stock_products: List[InventoryItem]
    inventory_summary: List[CategoryInventory]
    inventory_stats: InventoryStats
    filters: Dict[str, Any]


# --- Order fulfilment ---

class FulfillmentTimeStats(BaseModel):
    """Averages in hours, computed from status history timestamps."""
    avg_approval_time: float = 0.0
    avg_shipping_time: float = 0.0
    avg_delivery_time: float = 0.0
    avg_total_fulfillment_time: float = 0.0
    min_total_fulfillment_time: float = 0.0
    max_total_fulfillment_time: float = 0.0


class OrderTrendPoint(BaseModel):
    label: str
    total_orders: int = 0
    pending_orders: int = 0
    approved_orders: int = 0
    shipped_orders: int = 0
    delivered_orders: int = 0
    cancelled_orders: int = 0


class OrdersReport(BaseModel):
    status_counts: Dict[str, int]
    fulfillment_time_stats: FulfillmentTimeStats
    order_trend: List[OrderTrendPoint]
    period: ReportPeriod
    filters: Dict[str, Any]


# --- Product performance ---

class ProductPerformance(BaseModel):
    product_id: int
    name: str
    category: Optional[str]
    sku: Optional[str]
    price: Optional[float]
    total_quantity: int
    total_revenue: float
    order_count: int
    average_order_quantity: float


class CategoryPerformance(BaseModel):
    category: Optional[str]
    total_quantity: int
    total_revenue: float
    product_count: int
    order_count: int
    average_revenue_per_product: float


class ProductsReport(BaseModel):
    product_performance: List[ProductPerformance]
    category_performance: List[CategoryPerformance]
    filters: Dict[str, Any]


# --- Dashboard ---

class SalesWindow(BaseModel):
    total: float = 0.0
    count: int = 0


class DashboardStats(BaseModel):
    """Admin/manager overview."""
    sales_today: SalesWindow
    sales_yesterday: SalesWindow
    sales_this_week: SalesWindow
    sales_this_month: SalesWindow
    order_counts: Dict[str, int]
    low_stock_products: List[InventoryItem]
    user_counts: Dict[str, int]
    recent_orders: List[OrderResponse]


class CustomerStats(BaseModel):
    """The actor's own orders."""
    order_counts: Dict[str, int]
    total_orders: int
    total_spent: float
    recent_orders: List[OrderResponse]

from pydantic import BaseModel

from app.modules.orders.schemas import OrderStatsOut


class AdminStatsOut(BaseModel):
    total_users: int
    total_products: int
    active_products: int
    orders: OrderStatsOut

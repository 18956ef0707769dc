from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.core.dependencies import get_db, get_current_admin
from app.modules.digital_products import crud as dp_crud
from app.modules.digital_products.schemas import (
    DigitalProductCreate,
    DigitalProductUpdate,
    DigitalProductAdminOut,
    DownloadStatsOut,
)
from app.modules.orders import crud as orders_crud
from app.modules.orders.schemas import (
    OrderOut,
    OrderStatus,
    OrderStatusUpdateIn,
    OrderStatsOut,
    OrdersRangeOut,
    TopProductOut,
)
from app.modules.products import crud as products_crud
from app.modules.products.models import Product
from app.modules.products.schemas import ProductCreate, ProductUpdate, ProductOut
from app.modules.newsletter import crud as newsletter_crud
from app.modules.newsletter.schemas import (
    SubscriptionCreate,
    SubscriptionOut,
    SubscriptionStatus,
    SubscriptionUpdate,
)
from app.modules.users import crud as users_crud
from app.modules.users.models import User
from app.modules.users.schemas import UserOut, RoleUpdateIn
from .schemas import AdminStatsOut

# todas as rotas exigem role ADMIN
router = APIRouter(dependencies=[Depends(get_current_admin)])


# ---------- produtos ----------
@router.get("/products", response_model=List[ProductOut])
async def list_products_admin(
    db: AsyncSession = Depends(get_db),
    type: Optional[str] = Query(None),
    limit: int = Query(500, le=5000),
    offset: int = 0,
):
    return await products_crud.list_products(db, type=type, include_inactive=True, limit=limit, offset=offset)

@router.post("/products", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
async def create_product(payload: ProductCreate, db: AsyncSession = Depends(get_db)):
    return await products_crud.create_product(db, payload)

@router.put("/products/{product_id}", response_model=ProductOut)
async def update_product(product_id: int, payload: ProductUpdate, db: AsyncSession = Depends(get_db)):
    return await products_crud.update_product(db, product_id, payload)

@router.post("/products/{product_id}/toggle", response_model=ProductOut)
async def toggle_product(product_id: int, db: AsyncSession = Depends(get_db)):
    return await products_crud.toggle_product(db, product_id)

@router.delete("/products/{product_id}", status_code=204)
async def delete_product(product_id: int, db: AsyncSession = Depends(get_db)):
    await products_crud.delete_product(db, product_id)
    return Response(status_code=204)


# ---------- produtos digitais ----------
@router.get("/digital-products", response_model=List[DigitalProductAdminOut])
async def list_digital_products(
    product_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    if product_id is not None:
        return await dp_crud.get_digital_products_by_product(db, product_id)
    return await dp_crud.get_all_digital_products(db)

@router.post("/digital-products", response_model=DigitalProductAdminOut, status_code=status.HTTP_201_CREATED)
async def create_digital_product(payload: DigitalProductCreate, db: AsyncSession = Depends(get_db)):
    return await dp_crud.add_digital_product(db, payload)

@router.put("/digital-products/{digital_product_id}", response_model=DigitalProductAdminOut)
async def update_digital_product(
    digital_product_id: int,
    payload: DigitalProductUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await dp_crud.update_digital_product(db, digital_product_id, payload)

@router.delete("/digital-products/{digital_product_id}", status_code=204)
async def delete_digital_product(digital_product_id: int, db: AsyncSession = Depends(get_db)):
    await dp_crud.delete_digital_product(db, digital_product_id)
    return Response(status_code=204)

@router.get("/digital-products/{digital_product_id}/stats", response_model=DownloadStatsOut)
async def digital_product_stats(digital_product_id: int, db: AsyncSession = Depends(get_db)):
    return await dp_crud.get_download_stats(db, digital_product_id)


# ---------- pedidos ----------
@router.get("/orders", response_model=List[OrderOut])
async def list_orders(
    status: Optional[OrderStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await orders_crud.get_all_orders(db, status=status)

# antes de /orders/{order_id} para não colidir
@router.get("/orders/range", response_model=OrdersRangeOut)
async def orders_in_range(
    start: datetime = Query(...),
    end: datetime = Query(...),
    db: AsyncSession = Depends(get_db),
):
    orders = await orders_crud.get_orders_by_date_range(db, start, end)
    return OrdersRangeOut(
        orders=[OrderOut.model_validate(o) for o in orders],
        total_revenue=sum(o.total_amount for o in orders),
    )

@router.put("/orders/{order_id}", response_model=OrderOut)
async def set_order_status(
    order_id: int,
    payload: OrderStatusUpdateIn,
    db: AsyncSession = Depends(get_db),
):
    return await orders_crud.update_order_status(db, order_id, payload.status, payment_id=payload.payment_id)

@router.delete("/orders/{order_id}", status_code=204)
async def delete_order(order_id: int, db: AsyncSession = Depends(get_db)):
    await orders_crud.delete_order(db, order_id)
    return Response(status_code=204)


# ---------- estatísticas ----------
@router.get("/stats", response_model=AdminStatsOut)
async def stats(db: AsyncSession = Depends(get_db)):
    total_products = await db.scalar(select(func.count(Product.id)))
    active_products = await db.scalar(select(func.count(Product.id)).where(Product.is_active == True))
    return AdminStatsOut(
        total_users=await users_crud.count_users(db),
        total_products=int(total_products or 0),
        active_products=int(active_products or 0),
        orders=OrderStatsOut(**await orders_crud.get_order_stats(db)),
    )

@router.get("/stats/top-products", response_model=List[TopProductOut])
async def top_products(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    return await orders_crud.get_top_products(db, limit=limit)


# ---------- usuários ----------
@router.get("/users", response_model=List[UserOut])
async def list_users(
    limit: int = Query(100, le=1000),
    offset: int = 0,
    db: AsyncSession = Depends(get_db),
):
    return await users_crud.list_users(db, limit=limit, offset=offset)

@router.patch("/users/{user_id}/role", response_model=UserOut)
async def set_user_role(user_id: int, payload: RoleUpdateIn, db: AsyncSession = Depends(get_db)):
    return await users_crud.set_role(db, user_id, payload.role)

@router.delete("/users/{user_id}", status_code=204)
async def delete_user(
    user_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    await users_crud.delete_user(db, user_id, acting_user_id=admin.id)
    return Response(status_code=204)


# ---------- newsletter ----------
@router.get("/newsletter", response_model=List[SubscriptionOut])
async def list_newsletter(
    status: Optional[SubscriptionStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await newsletter_crud.list_subscriptions(db, status=status)

@router.post("/newsletter", response_model=SubscriptionOut, status_code=status.HTTP_201_CREATED)
async def create_newsletter_subscription(payload: SubscriptionCreate, db: AsyncSession = Depends(get_db)):
    return await newsletter_crud.admin_create(db, payload)

@router.put("/newsletter/{subscription_id}", response_model=SubscriptionOut)
async def update_newsletter_subscription(
    subscription_id: int,
    payload: SubscriptionUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await newsletter_crud.update_subscription(db, subscription_id, payload)

@router.delete("/newsletter/{subscription_id}", status_code=204)
async def delete_newsletter_subscription(subscription_id: int, db: AsyncSession = Depends(get_db)):
    await newsletter_crud.delete_subscription(db, subscription_id)
    return Response(status_code=204)

# app/api/v1/router.py
from fastapi import APIRouter
from app.modules.auth.router import router as auth_router
from app.modules.users.router import router as users_router
from app.modules.products.router import router as products_router
from app.modules.cart.router import router as cart_router
from app.modules.checkout.router import router as checkout_router
from app.modules.orders.router import router as orders_router
from app.modules.digital_products.router import router as digital_products_router
from app.modules.downloads.router import router as downloads_router
from app.modules.webhooks.router import router as webhooks_router
from app.modules.newsletter.router import router as newsletter_router
from app.modules.admin.router import router as admin_router

api_router = APIRouter()

api_router.include_router(auth_router,     prefix="/auth",     tags=["auth"])
api_router.include_router(users_router,    prefix="/users",    tags=["users"])
api_router.include_router(products_router, prefix="/products", tags=["products"])
api_router.include_router(cart_router,     prefix="/cart",     tags=["cart"])
api_router.include_router(checkout_router, prefix="/checkout", tags=["checkout"])
api_router.include_router(orders_router,   prefix="/orders",   tags=["orders"])
api_router.include_router(digital_products_router, prefix="/digital-products", tags=["digital-products"])
api_router.include_router(downloads_router, prefix="/download", tags=["downloads"])
api_router.include_router(webhooks_router, prefix="/webhooks", tags=["webhooks"])
api_router.include_router(newsletter_router, prefix="/newsletter", tags=["newsletter"])
api_router.include_router(admin_router,    prefix="/admin",    tags=["admin"])

"""
main.py

Application entrypoint for the Sazze API.
- Initializes structured logging
- Sets up FastAPI application and middlewares
- Registers all API routers
- Integrates rate limiting via SlowAPI
- Adds common security headers
- Configures CORS
"""

from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.admin.routes import router as admin_router
from app.auth.routes import router as auth_router
from app.cart.routes import router as cart_router
from app.conversation.routes import router as conversation_router
from app.core.config import settings
from app.core.limiter import limiter
from app.core.logging import init_logging
from app.notification.routes import router as notification_router
from app.notification.websocket import router as notification_ws_router
from app.order.routes import router as order_router
from app.payment.routes import router as payment_router
from app.rider.routes import router as rider_router
from app.user.routes import router as user_router
from app.vendor.routes import router as vendor_router

# -----------------------------
# FastAPI App Initialization
# -----------------------------
app = FastAPI(title=f"{settings.APP_NAME} API")

# -----------------------------
# Middleware Configuration
# -----------------------------
init_logging()
app.state.limiter = limiter


async def rate_limit_exceeded_handler(request: Request, exc: Exception) -> Response:
    return _rate_limit_exceeded_handler(request, exc)  # type: ignore[arg-type]


app.add_exception_handler(429, rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)


# -----------------------------
# Security Headers Middleware
# -----------------------------
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add common security headers to responses.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response


app.add_middleware(SecurityHeadersMiddleware)

# -----------------------------
# CORSMiddleware Configuration
# -----------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------
# API Router Registration
# -----------------------------
app.include_router(auth_router)
app.include_router(user_router)
app.include_router(vendor_router)
app.include_router(rider_router)
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(payment_router)
app.include_router(notification_router)
app.include_router(notification_ws_router)
app.include_router(conversation_router)
app.include_router(admin_router)


# -----------------------------
# Root Endpoint
# -----------------------------
@app.get("/")
async def home() -> Any:
    return {"name": f"{settings.APP_NAME} API", "status": "ok"}

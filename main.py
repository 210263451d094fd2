import logging
import os
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError
import jwt

import auth_service
import order_service
import product_service
import record_client
import store
import user_service
from errors import (
    AuthDelegatedError,
    ClientUnavailableError,
    NotAuthenticatedError,
    NotFoundError,
    ServiceError,
)
from schemas import (
    Address,
    CurrentUser,
    LoginRequest,
    Order,
    OrderCreate,
    Product,
    ProfileUpdate,
    RegisterRequest,
    UserProfile,
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
)

# App setup
app = FastAPI(title="Storefront Data API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Tokens are issued by the external auth UI; we only verify them.
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me-before-deploying")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
security = HTTPBearer()

_ERROR_STATUS = [
    (NotAuthenticatedError, 401),
    (NotFoundError, 404),
    (AuthDelegatedError, 400),
    (ClientUnavailableError, 503),
]


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    status = next((code for kind, code in _ERROR_STATUS if isinstance(exc, kind)), 502)
    return JSONResponse(status_code=status, content={"detail": str(exc)})


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> CurrentUser:
    payload = decode_token(credentials.credentials)
    try:
        user = CurrentUser(
            email_address=payload.get("email"),
            first_name=payload.get("first_name"),
            last_name=payload.get("last_name"),
            user_id=payload.get("sub"),
        )
    except ValidationError:
        raise HTTPException(status_code=401, detail="Token has no valid email")
    # Sync routes run in the threadpool on a copy of this context.
    store.set_user(user)
    return user


# Health
@app.get("/")
def root():
    return {"message": "Storefront data API running"}


@app.get("/test")
def test_record_backend():
    response = {
        "backend": "✅ Running",
        "record_backend": record_client.RECORD_BACKEND,
        "record_client": "❌ Not Available",
    }
    if record_client.get_apper_client() is not None:
        response["record_client"] = "✅ Available"
    return response


# Auth
@app.post("/auth/login")
def login(payload: LoginRequest):
    auth_service.login(payload.email, payload.password)


@app.post("/auth/register")
def register(payload: RegisterRequest):
    auth_service.register(payload.model_dump())


@app.post("/auth/logout")
def logout():
    auth_service.logout()
    return {"logged_out": True}


# Products
@app.get("/products", response_model=List[Product])
def list_products(q: Optional[str] = None, category: Optional[str] = None,
                  featured: bool = False, trending: bool = False):
    if q:
        return product_service.search(q)
    if category:
        return product_service.get_by_category(category)
    if featured:
        return product_service.get_featured()
    if trending:
        return product_service.get_trending()
    return product_service.get_all()


@app.get("/products/{product_id}", response_model=Product)
def get_product(product_id: int):
    product = product_service.get_by_id(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


# Profile
@app.get("/me", response_model=UserProfile)
def me(current_user: CurrentUser = Depends(get_current_user)):
    return user_service.get_profile()


@app.put("/me", response_model=UserProfile)
def update_profile(update: ProfileUpdate, current_user: CurrentUser = Depends(get_current_user)):
    return user_service.update_profile(update)


@app.get("/me/addresses", response_model=List[Address])
def list_addresses(current_user: CurrentUser = Depends(get_current_user)):
    return user_service.get_addresses()


@app.post("/me/addresses", response_model=Address, status_code=201)
def add_address(address: Address, current_user: CurrentUser = Depends(get_current_user)):
    return user_service.add_address(address)


@app.delete("/me/addresses/{address_id}", response_model=List[Address])
def remove_address(address_id: int, current_user: CurrentUser = Depends(get_current_user)):
    return user_service.remove_address(address_id)


@app.put("/me/addresses/{address_id}/default", response_model=List[Address])
def set_default_address(address_id: int, current_user: CurrentUser = Depends(get_current_user)):
    return user_service.set_default_address(address_id)


# Orders
@app.post("/orders", response_model=Order, status_code=201)
def create_order(payload: OrderCreate, current_user: CurrentUser = Depends(get_current_user)):
    return order_service.create_order(payload)


@app.get("/orders", response_model=List[Order])
def list_orders(current_user: CurrentUser = Depends(get_current_user)):
    return order_service.get_user_orders()


@app.get("/orders/{order_id}", response_model=Order)
def get_order(order_id: int, current_user: CurrentUser = Depends(get_current_user)):
    return order_service.get_order_by_id(order_id)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)

"""
Schemas for the storefront data-access layer

The DTOs here are the UI-facing shapes. Each service maps them to and from the
hosted backend's records (tables `product_c`, `order_c`, `user_profile_c`).
"""
from typing import List, Optional, Dict, Any
from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field

# Session

class CurrentUser(BaseModel):
    email_address: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    user_id: Optional[str] = None

# Core domain models

class Address(BaseModel):
    """Entry of the address book stored as JSON on the profile record."""
    model_config = ConfigDict(extra="allow")

    # The stored form uses the storefront UI's `Id` and `isDefault` keys.
    id: Optional[int] = Field(None, validation_alias=AliasChoices("id", "Id"))
    full_name: Optional[str] = None
    line1: Optional[str] = None
    line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    is_default: bool = Field(False, validation_alias=AliasChoices("is_default", "isDefault"))

    def to_stored(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_none=True)
        stored = {"Id": data.pop("id")} if "id" in data else {}
        stored.update(data)
        stored["isDefault"] = stored.pop("is_default")
        return stored

class Product(BaseModel):
    id: int
    name: Optional[str] = None
    description: Optional[str] = None
    price: float = 0.0
    category: Optional[str] = None
    subcategory: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    sizes: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    in_stock: bool = False
    stock_count: int = 0
    featured: bool = False
    trending: bool = False

class Order(BaseModel):
    id: int
    user_id: Optional[Any] = None
    order_number: Optional[str] = None
    items: List[Dict[str, Any]] = Field(default_factory=list)
    subtotal: float = 0.0
    shipping: float = 0.0
    tax: float = 0.0
    total: float = 0.0
    shipping_address: Dict[str, Any] = Field(default_factory=dict)
    status: Optional[str] = Field(None, description="Processing|Shipped|Delivered|Cancelled")
    created_at: Optional[str] = None

class UserProfile(BaseModel):
    id: int
    name: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    addresses: List[Address] = Field(default_factory=list)
    created_at: Optional[str] = None

# Request bodies

class OrderCreate(BaseModel):
    items: List[Dict[str, Any]]
    subtotal: float
    shipping: float = 0.0
    tax: float = 0.0
    total: float
    shipping_address: Address

class ProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None

class LoginRequest(BaseModel):
    email: str
    password: str

class RegisterRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: Optional[str] = None
    password: Optional[str] = None

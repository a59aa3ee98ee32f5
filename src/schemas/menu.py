"""Menu and cart Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MenuItemCreate(BaseModel):
    """Schema for creating a menu item (admin)."""

    name: str = Field(min_length=1, max_length=255)
    description: str = Field(default="")
    price: int = Field(ge=0, description="Price in rupiah")
    image: str | None = Field(default=None, description="Image URL")
    category: str = Field(min_length=1)
    is_available: bool = Field(default=True)
    stock: int | None = Field(default=None, ge=0)


class MenuItemUpdate(BaseModel):
    """Schema for updating a menu item (admin). All fields optional."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    price: int | None = Field(default=None, ge=0)
    image: str | None = None
    category: str | None = Field(default=None, min_length=1)
    is_available: bool | None = None
    stock: int | None = Field(default=None, ge=0)


class MenuItemResponse(BaseModel):
    """Schema for menu item responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str = ""
    price: int
    image: str | None = None
    category: str
    is_available: bool = True
    stock: int | None = None
    created_at: datetime | None = None


class MenuListResponse(BaseModel):
    items: list[MenuItemResponse]


class CartItemAdd(BaseModel):
    """Schema for POST /cart/items."""

    menu_item_id: UUID
    quantity: int = Field(default=1, ge=1)


class CartItemUpdate(BaseModel):
    """Schema for PATCH /cart/items/{menu_item_id}. Zero or less removes the item."""

    quantity: int


class CartLineResponse(BaseModel):
    menu_item: MenuItemResponse
    quantity: int
    subtotal: int


class CartResponse(BaseModel):
    """The caller's cart priced at current menu prices."""

    items: list[CartLineResponse]
    total: int

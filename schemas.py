"""
Database Schemas for the Boutique back-office API

Each Pydantic model represents a MongoDB collection. The collection name is the
lowercase of the class name (e.g., RetrievedInventory -> "retrievedinventory").
Field names follow the storefront client (ItemName, Quantity, ...) so documents
can be handed to it unchanged.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from stock import normalize_image_path, split_list, stock_status

GenderType = Literal["Men", "Women", "Unisex"]
StyleType = Literal["Casual", "Formal", "Athletic"]
StockStatusType = Literal["in-stock", "low-stock", "out-of-stock"]
Size = Literal["XS", "S", "M", "L", "XL", "XXL"]
OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]
PromotionType = Literal["Discount Code", "Loyalty", "Flash Sale", "Bundle"]
DiscountType = Literal["flat", "percentage"]
Role = Literal["admin", "customer"]

ORDER_STATUSES = ["pending", "processing", "shipped", "delivered", "cancelled"]

EMAIL_PATTERN = r"^\S+@\S+\.\S+$"
MOBILE_PATTERN = r"^\d{10}$"


# -----------------------------
# Inventory
# -----------------------------
class Inventory(BaseModel):
    """
    Warehouse stock
    Collection: "inventory"
    """
    inventoryID: Optional[int] = Field(None, description="Sequential id from the counter collection")
    ItemName: str = Field(..., min_length=1)
    Category: str
    Quantity: int = Field(..., ge=0, description="Units in the warehouse")
    reorderThreshold: int = Field(..., ge=0, description="Stock level at or below which the item is low-stock")
    Location: str = Field(..., description='e.g. "Warehouse A", "Aisle 5"')
    StockStatus: Optional[StockStatusType] = Field(None, description="Derived from Quantity and reorderThreshold")
    Brand: str
    Sizes: List[str] = []
    Colors: List[str] = []
    Gender: GenderType
    Style: StyleType
    SupplierName: str
    SupplierContact: str
    image: str = Field(..., description="Path under uploads/inventory")
    unitPrice: Optional[float] = Field(None, ge=0)

    @field_validator("Sizes", "Colors", mode="before")
    @classmethod
    def parse_list(cls, v):
        return split_list(v)

    @field_validator("image")
    @classmethod
    def relative_image(cls, v):
        if not v.strip():
            raise ValueError("Image is required")
        return normalize_image_path(v.strip())

    @model_validator(mode="after")
    def derive_status(self):
        self.StockStatus = stock_status(self.Quantity, self.reorderThreshold)
        return self


class InventoryUpdate(BaseModel):
    ItemName: Optional[str] = Field(None, min_length=1)
    Category: Optional[str] = None
    Quantity: Optional[int] = Field(None, ge=0)
    reorderThreshold: Optional[int] = Field(None, ge=0)
    Location: Optional[str] = None
    Brand: Optional[str] = None
    Sizes: Optional[List[str]] = None
    Colors: Optional[List[str]] = None
    Gender: Optional[GenderType] = None
    Style: Optional[StyleType] = None
    SupplierName: Optional[str] = None
    SupplierContact: Optional[str] = None
    image: Optional[str] = None
    unitPrice: Optional[float] = Field(None, ge=0)

    @field_validator("Sizes", "Colors", mode="before")
    @classmethod
    def parse_list(cls, v):
        if v is None:
            return v
        return split_list(v)

    @field_validator("image")
    @classmethod
    def relative_image(cls, v):
        if v is None or not v.strip():
            return None
        return normalize_image_path(v.strip())


class RetrievedInventory(BaseModel):
    """
    Stock moved out of the warehouse and staged for sale
    Collection: "retrievedinventory"
    """
    inventoryID: int
    ItemName: str
    Category: str
    retrievedQuantity: int = Field(..., ge=0)
    Brand: str
    Sizes: List[str] = []
    Colors: List[str] = []
    Gender: GenderType = "Unisex"
    Style: str
    image: str
    unitPrice: Optional[float] = Field(None, ge=0)
    finalPrice: Optional[float] = Field(None, ge=0, description="unitPrice after any promotion")
    retrievedDate: datetime


# -----------------------------
# Orders
# -----------------------------
class OrderItem(BaseModel):
    itemId: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0)
    title: str = Field(..., min_length=1)
    color: Optional[str] = None
    size: Size
    img: str = Field(..., min_length=1)

    @field_validator("title", "img", "color")
    @classmethod
    def strip(cls, v):
        return v.strip() if v else v


class CustomerInfo(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    mobile: str = Field(..., pattern=MOBILE_PATTERN)

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("mobile", mode="before")
    @classmethod
    def mobile_str(cls, v):
        return str(v).strip() if v is not None else v


class DeliveryInfo(BaseModel):
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    postalCode: str = Field(..., pattern=r"^\d{5}$")

    @field_validator("postalCode", mode="before")
    @classmethod
    def postal_str(cls, v):
        return str(v).strip() if v is not None else v


class CardInfo(BaseModel):
    cardNumber: str = Field(..., min_length=1)
    expiryDate: str = Field(..., pattern=r"^(0[1-9]|1[0-2])/\d{2}$", description="MM/YY")
    cvv: str = Field(..., pattern=r"^\d{3,4}$")


class Order(BaseModel):
    """
    Orders collection schema
    Collection: "order"
    """
    orderId: Optional[str] = Field(None, description="ORD-XXXXXX, generated on create")
    userId: str = Field(..., min_length=1)
    items: List[OrderItem] = Field(..., min_length=1)
    total: float = Field(0, ge=0, description="Recomputed from items")
    customerInfo: CustomerInfo
    deliveryInfo: DeliveryInfo
    paymentMethod: Literal["Cash", "Card"]
    cardInfo: Optional[CardInfo] = None
    status: OrderStatus = "pending"

    @field_validator("userId", mode="before")
    @classmethod
    def user_str(cls, v):
        return str(v) if v is not None else v

    @model_validator(mode="after")
    def card_for_card_payments(self):
        if self.paymentMethod == "Card" and self.cardInfo is None:
            raise ValueError("Card information is required")
        if self.paymentMethod == "Cash":
            self.cardInfo = None
        return self


class OrderUpdate(BaseModel):
    items: Optional[List[OrderItem]] = Field(None, min_length=1)
    customerInfo: Optional[CustomerInfo] = None
    deliveryInfo: Optional[DeliveryInfo] = None
    paymentMethod: Optional[Literal["Cash", "Card"]] = None
    cardInfo: Optional[CardInfo] = None
    status: Optional[OrderStatus] = None


# -----------------------------
# Promotions
# -----------------------------
class Promotion(BaseModel):
    """
    Promotions collection schema
    Collection: "promotion"

    discountType picks which of discountValue / discountPercentage is used;
    exactly that one must be set.
    """
    promotionID: int
    type: PromotionType
    discountType: DiscountType
    discountValue: Optional[float] = Field(None, gt=0)
    discountPercentage: Optional[float] = Field(None, gt=0, le=100)
    validUntil: datetime
    promoCreatedDate: Optional[datetime] = None
    promoCode: str = Field(..., min_length=1)
    applicableProducts: List[str] = Field([], description="RetrievedInventory ids")
    applicableCategories: List[GenderType] = Field([], description="Matched against the product Gender")
    minimumPurchase: float = Field(0, ge=0)
    isActive: bool = True
    usageLimit: Optional[int] = Field(None, ge=0)
    usageCount: int = Field(0, ge=0)

    @model_validator(mode="after")
    def one_discount(self):
        if self.discountValue is not None and self.discountPercentage is not None:
            raise ValueError("Only one of discountValue or discountPercentage should be provided")
        if self.discountType == "flat" and self.discountValue is None:
            raise ValueError("discountValue is required for flat discounts, not discountPercentage")
        if self.discountType == "percentage" and self.discountPercentage is None:
            raise ValueError("discountPercentage is required for percentage discounts, not discountValue")
        return self


class PromotionUpdate(BaseModel):
    type: Optional[PromotionType] = None
    discountType: Optional[DiscountType] = None
    discountValue: Optional[float] = Field(None, gt=0)
    discountPercentage: Optional[float] = Field(None, gt=0, le=100)
    validUntil: Optional[datetime] = None
    promoCode: Optional[str] = Field(None, min_length=1)
    applicableProducts: Optional[List[str]] = None
    applicableCategories: Optional[List[GenderType]] = None
    minimumPurchase: Optional[float] = Field(None, ge=0)
    isActive: Optional[bool] = None
    usageLimit: Optional[int] = Field(None, ge=0)
    usageCount: Optional[int] = Field(None, ge=0)


# -----------------------------
# Users
# -----------------------------
class User(BaseModel):
    """
    Users collection schema
    Collection: "user"
    """
    userID: Optional[int] = None
    UserName: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., description="bcrypt hash")
    address: Optional[str] = None
    mobile: str = Field(..., pattern=MOBILE_PATTERN)
    role: Role = "customer"

    @field_validator("mobile", mode="before")
    @classmethod
    def mobile_str(cls, v):
        return str(v).strip() if v is not None else v

    @field_validator("role", mode="before")
    @classmethod
    def default_role(cls, v):
        return v if v in ("admin", "customer") else "customer"


# -----------------------------
# Feedback
# -----------------------------
class Feedback(BaseModel):
    """
    Product feedback
    Collection: "feedback"
    """
    feedbackID: Optional[int] = None
    userID: int
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    productID: Optional[str] = None
    orderID: Optional[str] = None


class FeedbackUpdate(BaseModel):
    userID: Optional[int] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = None
    productID: Optional[str] = None
    orderID: Optional[str] = None

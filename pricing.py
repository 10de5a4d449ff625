"""
Price calculations: promotion discounts and order totals.
"""
from typing import Iterable, Optional


def discounted_price(unit_price: Optional[float], discount_type: str,
                     discount_value: Optional[float] = None,
                     discount_percentage: Optional[float] = None) -> float:
    """Apply a flat or percentage discount, never going below zero."""
    price = float(unit_price or 0)
    if discount_type == "flat" and discount_value:
        price = price - float(discount_value)
    elif discount_type == "percentage" and discount_percentage:
        price = price * (1 - float(discount_percentage) / 100)
    return round(max(0.0, price), 2)


def promotion_applies(promotion: dict, product: dict) -> bool:
    # applicableCategories holds Gender values (Men/Women/Unisex), not Category
    product_id = str(product.get("_id", product.get("id", "")))
    if product_id in [str(p) for p in promotion.get("applicableProducts") or []]:
        return True
    return product.get("Gender") in (promotion.get("applicableCategories") or [])


def order_total(items: Iterable[dict]) -> float:
    return round(sum(float(item["price"]) * int(item["quantity"]) for item in items), 2)

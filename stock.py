"""
Stock rules shared by the inventory routes.
"""
from typing import List, Optional, Union

IN_STOCK = "in-stock"
LOW_STOCK = "low-stock"
OUT_OF_STOCK = "out-of-stock"

INVENTORY_UPLOADS = "uploads/inventory"


def stock_status(quantity: int, reorder_threshold: int) -> str:
    if quantity <= 0:
        return OUT_OF_STOCK
    if quantity <= reorder_threshold:
        return LOW_STOCK
    return IN_STOCK


def normalize_image_path(path: str) -> str:
    """Store images relative to the uploads folder, e.g. ``uploads/inventory/shirt.png``."""
    path = path.replace("\\", "/")
    if INVENTORY_UPLOADS in path:
        return path
    filename = path.rsplit("/", 1)[-1]
    return f"{INVENTORY_UPLOADS}/{filename}"


def split_list(value: Optional[Union[str, List[str]]]) -> List[str]:
    # forms send "S, M, L"; JSON clients send a list
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(part).strip() for part in value if str(part).strip()]


def retrieved_copy(item: dict, quantity: int) -> dict:
    """Build the staged RetrievedInventory record for ``quantity`` units of ``item``."""
    unit_price = item.get("unitPrice") or None
    return {
        "inventoryID": item["inventoryID"],
        "ItemName": item["ItemName"],
        "Category": item["Category"],
        "retrievedQuantity": quantity,
        "Brand": item["Brand"],
        "Sizes": item.get("Sizes") or [],
        "Colors": item.get("Colors") or [],
        "Gender": item.get("Gender") or "Unisex",
        "Style": item["Style"],
        "image": item["image"],
        "unitPrice": unit_price,
        "finalPrice": unit_price,
    }

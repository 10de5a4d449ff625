import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from pymongo import ReturnDocument

from database import create_document, get_db, maybe_object_id, next_sequence, object_id, to_public, utcnow
from schemas import Inventory, InventoryUpdate, RetrievedInventory
from stock import LOW_STOCK, retrieved_copy, stock_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


class StockUpdate(BaseModel):
    action: str
    Quantity: int
    unitPrice: Optional[float] = None


class SendToStore(BaseModel):
    unitPrice: float


class FinalPriceUpdate(BaseModel):
    finalPrice: Optional[float] = None


def find_inventory(db, inventory_id: int) -> dict:
    item = db["inventory"].find_one({"inventoryID": inventory_id})
    if not item:
        raise HTTPException(status_code=404, detail=f"No inventory found with ID: {inventory_id}")
    return item


def set_stock_status(db, item: dict) -> dict:
    """Write StockStatus for the item's current Quantity and return the fresh document."""
    while True:
        status = stock_status(item["Quantity"], item["reorderThreshold"])
        # only write if Quantity has not moved since it was read
        doc = db["inventory"].find_one_and_update(
            {"_id": item["_id"], "Quantity": item["Quantity"]},
            {"$set": {"StockStatus": status, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is not None:
            return doc
        item = db["inventory"].find_one({"_id": item["_id"]})
        if item is None:
            raise HTTPException(status_code=404, detail="Inventory item no longer exists")


# -----------------
# Inventory CRUD
# -----------------
@router.post("", status_code=201)
def create_inventory(item: Inventory, db=Depends(get_db)):
    item.inventoryID = next_sequence(db, "inventoryID")
    new_id = create_document(db, "inventory", item)
    logger.info("Created inventory %s (%s)", item.inventoryID, item.ItemName)
    doc = db["inventory"].find_one({"_id": object_id(new_id)})
    return {"success": True, "data": to_public(doc), "message": "Inventory item created"}


@router.get("")
def list_inventory(page: int = 1, limit: int = 10, db=Depends(get_db)):
    if page < 1 or limit < 1:
        raise HTTPException(status_code=400, detail="page and limit must be positive")
    total = db["inventory"].count_documents({})
    skip = (page - 1) * limit
    cursor = db["inventory"].find().sort("inventoryID", 1).skip(skip).limit(limit)
    items = [to_public(d) for d in cursor]
    return {
        "success": True,
        "data": {"items": items, "total": total, "page": page, "pages": math.ceil(total / limit)},
        "message": "Inventory retrieved",
    }


@router.get("/category/{category}")
def list_by_category(category: str, db=Depends(get_db)):
    items = [to_public(d) for d in db["inventory"].find({"Category": category}).sort("inventoryID", 1)]
    if not items:
        raise HTTPException(status_code=404, detail=f"No items found in category: {category}")
    return {"success": True, "data": items, "message": "Category items retrieved"}


@router.get("/status/low-stock")
def list_low_stock(db=Depends(get_db)):
    items = [to_public(d) for d in db["inventory"].find({"StockStatus": LOW_STOCK}).sort("inventoryID", 1)]
    return {"success": True, "data": items, "message": "Low stock items retrieved"}


@router.get("/retrieved/all")
def list_retrieved(db=Depends(get_db)):
    items = [to_public(d) for d in db["retrievedinventory"].find().sort("retrievedDate", -1)]
    return {"success": True, "data": items, "message": "Retrieved inventory fetched"}


@router.get("/{item_id}")
def get_inventory(item_id: str, db=Depends(get_db)):
    # ObjectId first, then the numeric inventoryID, then staged stock
    oid = maybe_object_id(item_id)
    doc = None
    if oid is not None:
        doc = db["inventory"].find_one({"_id": oid})
    if doc is None and item_id.isdigit():
        doc = db["inventory"].find_one({"inventoryID": int(item_id)})
    if doc is None and oid is not None:
        doc = db["retrievedinventory"].find_one({"_id": oid})
    if doc is None:
        raise HTTPException(status_code=404, detail=f"No inventory found with ID: {item_id}")
    return {"success": True, "data": to_public(doc), "message": "Inventory item retrieved"}


@router.put("/{inventory_id}")
def update_inventory(inventory_id: int, payload: InventoryUpdate, db=Depends(get_db)):
    item = find_inventory(db, inventory_id)
    # null means "leave as is"; required fields must never be cleared
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        return {"success": True, "data": to_public(item), "message": "Nothing to update"}
    if "Quantity" in updates or "reorderThreshold" in updates:
        updates["StockStatus"] = stock_status(
            updates.get("Quantity", item["Quantity"]),
            updates.get("reorderThreshold", item["reorderThreshold"]),
        )
    updates["updated_at"] = utcnow()
    doc = db["inventory"].find_one_and_update(
        {"_id": item["_id"]}, {"$set": updates}, return_document=ReturnDocument.AFTER
    )
    return {"success": True, "data": to_public(doc), "message": "Inventory item updated"}


@router.delete("/{inventory_id}")
def delete_inventory(inventory_id: int, db=Depends(get_db)):
    doc = db["inventory"].find_one_and_delete({"inventoryID": inventory_id})
    if not doc:
        raise HTTPException(status_code=404, detail=f"No inventory found with ID: {inventory_id}")
    logger.info("Deleted inventory %s", inventory_id)
    return {"success": True, "data": {"inventoryID": doc["inventoryID"]}, "message": "Inventory item deleted successfully"}


# -----------------
# Stock movements
# -----------------
def retrieve_stock(db, item: dict, amount: int) -> dict:
    """Move ``amount`` units out of the warehouse into retrievedinventory."""
    if amount <= 0:
        raise HTTPException(status_code=400, detail="Retrieve quantity must be greater than zero")
    # validated before any stock is taken out
    staged = RetrievedInventory(**retrieved_copy(item, amount), retrievedDate=utcnow())
    # the Quantity guard keeps two concurrent retrieves from overdrawing the item
    updated = db["inventory"].find_one_and_update(
        {"_id": item["_id"], "Quantity": {"$gte": amount}},
        {"$inc": {"Quantity": -amount}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        logger.warning("Retrieve of %s from inventory %s rejected: only %s in stock",
                       amount, item["inventoryID"], item["Quantity"])
        raise HTTPException(status_code=400, detail=f"Insufficient stock: only {item['Quantity']} available")
    try:
        create_document(db, "retrievedinventory", staged)
    except Exception:
        db["inventory"].update_one({"_id": item["_id"]}, {"$inc": {"Quantity": amount}})
        raise
    logger.info("Retrieved %s of inventory %s", amount, item["inventoryID"])
    return set_stock_status(db, updated)


@router.put("/{inventory_id}/stock-status")
def update_stock_status(inventory_id: int, payload: StockUpdate, db=Depends(get_db)):
    item = find_inventory(db, inventory_id)
    if payload.Quantity < 0:
        raise HTTPException(status_code=400, detail=f"Invalid quantity: {payload.Quantity}")

    if payload.action == "retrieve":
        doc = retrieve_stock(db, item, payload.Quantity)
    elif payload.action == "add":
        updates = {"$inc": {"Quantity": payload.Quantity}}
        if payload.unitPrice:
            if payload.unitPrice < 0:
                raise HTTPException(status_code=400, detail=f"Invalid unit price: {payload.unitPrice}")
            updates["$set"] = {"unitPrice": payload.unitPrice}
        added = db["inventory"].find_one_and_update(
            {"_id": item["_id"]}, updates, return_document=ReturnDocument.AFTER
        )
        doc = set_stock_status(db, added)
    elif payload.action == "update":
        db["inventory"].update_one({"_id": item["_id"]}, {"$set": {"Quantity": payload.Quantity}})
        doc = set_stock_status(db, dict(item, Quantity=payload.Quantity))
    else:
        raise HTTPException(status_code=400, detail=f"Unknown action: {payload.action}")
    return {"success": True, "data": to_public(doc), "message": "Stock status updated"}


# -----------------
# Retrieved (staged) stock
# -----------------
def find_retrieved(db, retrieved_id: str) -> dict:
    doc = db["retrievedinventory"].find_one({"_id": object_id(retrieved_id)})
    if not doc:
        raise HTTPException(status_code=404, detail=f"No retrieved inventory found with ID: {retrieved_id}")
    return doc


@router.post("/send-to-store/{retrieved_id}")
def send_to_store(retrieved_id: str, payload: SendToStore, db=Depends(get_db)):
    if payload.unitPrice <= 0:
        raise HTTPException(status_code=400, detail=f"Invalid unit price: {payload.unitPrice}")
    doc = db["retrievedinventory"].find_one_and_update(
        {"_id": object_id(retrieved_id)},
        {"$set": {"unitPrice": payload.unitPrice, "finalPrice": payload.unitPrice, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not doc:
        raise HTTPException(status_code=404, detail=f"No item found with ID: {retrieved_id}")
    return {"success": True, "data": to_public(doc), "message": "Item sent to store"}


@router.put("/retrieved/{retrieved_id}")
def update_final_price(retrieved_id: str, payload: FinalPriceUpdate, db=Depends(get_db)):
    if payload.finalPrice is None:
        raise HTTPException(status_code=400, detail="Final price is required")
    doc = db["retrievedinventory"].find_one_and_update(
        {"_id": object_id(retrieved_id)},
        {"$set": {"finalPrice": max(0.0, payload.finalPrice), "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not doc:
        raise HTTPException(status_code=404, detail=f"No retrieved inventory found with ID: {retrieved_id}")
    return {"success": True, "data": to_public(doc), "message": "Final price updated"}


@router.delete("/retrieved/{retrieved_id}")
def delete_retrieved(retrieved_id: str, db=Depends(get_db)):
    doc = db["retrievedinventory"].find_one_and_delete({"_id": object_id(retrieved_id)})
    if not doc:
        raise HTTPException(status_code=404, detail=f"No retrieved inventory found with ID: {retrieved_id}")
    return {"success": True, "data": None, "message": "Retrieved inventory item deleted successfully"}


@router.post("/retrieved/{retrieved_id}/revert")
def revert_retrieved(retrieved_id: str, db=Depends(get_db)):
    staged = find_retrieved(db, retrieved_id)
    amount = staged["retrievedQuantity"]
    restored = db["inventory"].find_one_and_update(
        {"inventoryID": staged["inventoryID"]},
        {"$inc": {"Quantity": amount}},
        return_document=ReturnDocument.AFTER,
    )
    if restored is None:
        raise HTTPException(status_code=409, detail=f"Inventory item {staged['inventoryID']} no longer exists")
    db["retrievedinventory"].delete_one({"_id": staged["_id"]})
    doc = set_stock_status(db, restored)
    logger.info("Reverted %s units to inventory %s", amount, staged["inventoryID"])
    return {"success": True, "data": to_public(doc), "message": f"Reverted {amount} items back to inventory"}

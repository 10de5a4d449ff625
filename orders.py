import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from pymongo import ReturnDocument

from database import create_document, get_db, get_documents, maybe_object_id, to_public, utcnow
from pricing import order_total
from schemas import ORDER_STATUSES, Order, OrderUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])


class StatusUpdate(BaseModel):
    status: str


def new_order_id() -> str:
    return f"ORD-{uuid.uuid4().hex[:6].upper()}"


def order_filter(order_ref: str) -> dict:
    """Orders are addressed by orderId; the Mongo _id is accepted as well."""
    oid = maybe_object_id(order_ref)
    if oid is not None:
        return {"$or": [{"orderId": order_ref}, {"_id": oid}]}
    return {"orderId": order_ref}


def find_order(db, order_ref: str) -> dict:
    doc = db["order"].find_one(order_filter(order_ref))
    if not doc:
        raise HTTPException(status_code=404, detail="Order not found")
    return doc


def place_order(db, order: Order) -> Order:
    """Single entry point for order creation; stock is not touched."""
    order.orderId = new_order_id()
    order.total = order_total(i.model_dump() for i in order.items)
    order.status = "pending"
    create_document(db, "order", order.model_dump(exclude_none=True))
    logger.info("Order %s placed by user %s, total %.2f", order.orderId, order.userId, order.total)
    return order


@router.post("", status_code=201)
def create_order(order: Order, db=Depends(get_db)):
    placed = place_order(db, order)
    return {
        "success": True,
        "data": {"orderId": placed.orderId, "total": placed.total},
        "message": "Order placed successfully",
    }


@router.get("")
def list_orders(db=Depends(get_db)):
    orders = [to_public(o) for o in get_documents(db, "order", sort=[("created_at", -1)])]
    return {"success": True, "data": orders, "message": "Orders retrieved"}


@router.get("/user/{user_id}")
def list_user_orders(user_id: str, db=Depends(get_db)):
    orders = [to_public(o) for o in get_documents(db, "order", {"userId": user_id}, sort=[("created_at", -1)])]
    return {"success": True, "data": orders, "message": "Orders retrieved"}


@router.get("/{order_ref}")
def get_order(order_ref: str, db=Depends(get_db)):
    return {"success": True, "data": to_public(find_order(db, order_ref)), "message": "Order retrieved"}


@router.put("/{order_ref}/status")
def update_status(order_ref: str, payload: StatusUpdate, db=Depends(get_db)):
    if payload.status not in ORDER_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid status value. Status must be one of: {', '.join(ORDER_STATUSES)}",
        )
    doc = db["order"].find_one_and_update(
        order_filter(order_ref),
        {"$set": {"status": payload.status, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not doc:
        raise HTTPException(status_code=404, detail="Order not found")
    logger.info("Order %s moved to %s", doc["orderId"], payload.status)
    return {"success": True, "data": to_public(doc), "message": "Order status updated successfully"}


@router.put("/{order_ref}")
def update_order(order_ref: str, payload: OrderUpdate, db=Depends(get_db)):
    existing = find_order(db, order_ref)
    updates = payload.model_dump(exclude_unset=True)
    merged = {k: v for k, v in existing.items() if k not in ("_id", "created_at", "updated_at")}
    merged.update(updates)
    # re-validate the whole order so a Card payment can't lose its card details
    order = Order.model_validate(merged)
    changes = order.model_dump(exclude={"orderId"})
    if "items" in updates:
        changes["total"] = order_total(changes["items"])
    changes["updated_at"] = utcnow()
    unset = {"cardInfo": ""} if changes.get("cardInfo") is None else {}
    changes = {k: v for k, v in changes.items() if v is not None}
    operation = {"$set": changes}
    if unset:
        operation["$unset"] = unset
    doc = db["order"].find_one_and_update(
        {"_id": existing["_id"]}, operation, return_document=ReturnDocument.AFTER
    )
    return {"success": True, "data": to_public(doc), "message": "Order updated successfully"}


@router.delete("/{order_ref}")
def delete_order(order_ref: str, db=Depends(get_db)):
    doc = db["order"].find_one_and_delete(order_filter(order_ref))
    if not doc:
        raise HTTPException(status_code=404, detail="Order not found")
    return {"success": True, "data": None, "message": "Order deleted successfully"}

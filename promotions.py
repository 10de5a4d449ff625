import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pymongo import ReturnDocument

from database import create_document, get_db, maybe_object_id, object_id, to_public, utcnow
from pricing import discounted_price, promotion_applies
from schemas import Promotion, PromotionUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/promotions", tags=["promotions"])


def check_products_exist(db, product_ids: List[str]):
    if not product_ids:
        return
    oids = [maybe_object_id(p) for p in product_ids]
    found = 0
    if None not in oids:
        found = db["retrievedinventory"].count_documents({"_id": {"$in": oids}})
    if found != len(set(product_ids)):
        raise HTTPException(status_code=400, detail="Some applicableProducts do not exist in RetrievedInventory")


def check_unique(db, promotion_id: int, promo_code: str):
    clash = db["promotion"].find_one({
        "promotionID": {"$ne": promotion_id},
        "promoCode": promo_code,
    })
    if clash:
        raise HTTPException(status_code=400, detail=f"promoCode {promo_code} is already in use")


def populate(db, promotion: dict) -> dict:
    """Replace applicableProducts ids with the staged items they point at."""
    oids = [o for o in (maybe_object_id(p) for p in promotion.get("applicableProducts") or []) if o]
    products = db["retrievedinventory"].find({"_id": {"$in": oids}}) if oids else []
    promotion["applicableProducts"] = [to_public(p) for p in products]
    return to_public(promotion)


def find_promotion(db, promotion_id: int) -> dict:
    doc = db["promotion"].find_one({"promotionID": promotion_id})
    if not doc:
        raise HTTPException(status_code=404, detail="Promotion not found")
    return doc


@router.post("", status_code=201)
def create_promotion(promotion: Promotion, db=Depends(get_db)):
    check_products_exist(db, promotion.applicableProducts)
    if db["promotion"].find_one({"promotionID": promotion.promotionID}):
        raise HTTPException(status_code=400, detail=f"promotionID {promotion.promotionID} already exists")
    check_unique(db, promotion.promotionID, promotion.promoCode)
    promotion.promoCreatedDate = promotion.promoCreatedDate or utcnow()
    create_document(db, "promotion", promotion)
    logger.info("Promotion %s (%s) created", promotion.promotionID, promotion.promoCode)
    doc = find_promotion(db, promotion.promotionID)
    return {"success": True, "data": to_public(doc), "message": "Promotion created successfully"}


@router.get("")
def list_promotions(db=Depends(get_db)):
    promotions = [populate(db, p) for p in db["promotion"].find().sort("promotionID", 1)]
    return {"success": True, "data": promotions, "message": "Promotions retrieved successfully"}


@router.get("/{promotion_id}")
def get_promotion(promotion_id: int, db=Depends(get_db)):
    doc = find_promotion(db, promotion_id)
    return {"success": True, "data": populate(db, doc), "message": "Promotion retrieved successfully"}


@router.put("/{promotion_id}")
def update_promotion(promotion_id: int, payload: PromotionUpdate, db=Depends(get_db)):
    existing = find_promotion(db, promotion_id)
    updates = payload.model_dump(exclude_unset=True)
    if updates.get("applicableProducts"):
        check_products_exist(db, updates["applicableProducts"])
    merged = {k: v for k, v in existing.items() if k not in ("_id", "created_at", "updated_at")}
    merged.update(updates)
    # switching discountType drops the amount that belonged to the old type
    if "discountType" in updates:
        stale = "discountPercentage" if updates["discountType"] == "flat" else "discountValue"
        if stale not in updates:
            merged[stale] = None
    promotion = Promotion.model_validate(merged)
    if "promoCode" in updates:
        check_unique(db, promotion_id, promotion.promoCode)
    changes = promotion.model_dump(exclude={"promotionID"})
    changes["updated_at"] = utcnow()
    doc = db["promotion"].find_one_and_update(
        {"_id": existing["_id"]}, {"$set": changes}, return_document=ReturnDocument.AFTER
    )
    return {"success": True, "data": to_public(doc), "message": "Promotion updated successfully"}


@router.delete("/{promotion_id}")
def delete_promotion(promotion_id: int, db=Depends(get_db)):
    doc = db["promotion"].find_one_and_delete({"promotionID": promotion_id})
    if not doc:
        raise HTTPException(status_code=404, detail="Promotion not found")
    logger.info("Promotion %s deleted", promotion_id)
    return {"success": True, "data": to_public(doc), "message": "Promotion deleted successfully"}


def price_for(db, promotion_id: int, product_id: str):
    promotion = find_promotion(db, promotion_id)
    product = db["retrievedinventory"].find_one({"_id": object_id(product_id)})
    if not product:
        raise HTTPException(status_code=404, detail="Product not found in RetrievedInventory")
    if not promotion_applies(promotion, product):
        raise HTTPException(status_code=400, detail="This promotion does not apply to the specified product")
    price = discounted_price(
        product.get("unitPrice"),
        promotion["discountType"],
        promotion.get("discountValue"),
        promotion.get("discountPercentage"),
    )
    return promotion, product, price


@router.get("/check/{promotion_id}/{product_id}")
def check_promotion_discount(promotion_id: int, product_id: str, db=Depends(get_db)):
    promotion, product, price = price_for(db, promotion_id, product_id)
    return {
        "success": True,
        "data": {
            "originalPrice": product.get("unitPrice"),
            "discountedPrice": price,
            "promotion": promotion["promoCode"],
            "product": product["ItemName"],
        },
        "message": "Discount calculated successfully",
    }


@router.post("/apply/{promotion_id}/{product_id}")
def apply_promotion(promotion_id: int, product_id: str, db=Depends(get_db)):
    promotion, product, price = price_for(db, promotion_id, product_id)
    doc = db["retrievedinventory"].find_one_and_update(
        {"_id": product["_id"]},
        {"$set": {"finalPrice": price, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    logger.info("Promotion %s applied to %s: final price %.2f", promotion["promoCode"], product_id, price)
    return {"success": True, "data": to_public(doc), "message": "Promotion applied"}

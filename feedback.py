import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pymongo import ReturnDocument

from database import create_document, get_db, get_documents, next_sequence, object_id, to_public, utcnow
from schemas import Feedback, FeedbackUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/feedback", tags=["feedback"])


def average_rating(db, product_id: Optional[str] = None) -> dict:
    flt = {"productID": product_id} if product_id else {}
    ratings = [int(f["rating"]) for f in db["feedback"].find(flt, {"rating": 1})]
    if not ratings:
        raise HTTPException(status_code=404, detail="No feedback found")
    return {"average": round(sum(ratings) / len(ratings), 2), "count": len(ratings)}


@router.post("", status_code=201)
def create_feedback(feedback: Feedback, db=Depends(get_db)):
    feedback.feedbackID = next_sequence(db, "feedbackID")
    create_document(db, "feedback", feedback)
    doc = db["feedback"].find_one({"feedbackID": feedback.feedbackID})
    return {"success": True, "data": to_public(doc), "message": "Feedback created successfully"}


@router.get("")
def list_feedback(db=Depends(get_db)):
    items = [to_public(f) for f in get_documents(db, "feedback", sort=[("feedbackID", 1)])]
    return {"success": True, "data": items, "message": "Feedback retrieved"}


@router.get("/average")
def get_average(db=Depends(get_db)):
    return {"success": True, "data": average_rating(db), "message": "Average rating calculated successfully"}


@router.get("/user/{user_id}")
def list_user_feedback(user_id: int, db=Depends(get_db)):
    items = [to_public(f) for f in get_documents(db, "feedback", {"userID": user_id}, sort=[("feedbackID", 1)])]
    return {"success": True, "data": items, "message": "Feedback retrieved"}


@router.get("/product/{product_id}")
def list_product_feedback(product_id: str, db=Depends(get_db)):
    items = [to_public(f) for f in get_documents(db, "feedback", {"productID": product_id}, sort=[("feedbackID", 1)])]
    return {"success": True, "data": items, "message": "Feedback retrieved"}


@router.get("/product/{product_id}/average")
def get_product_average(product_id: str, db=Depends(get_db)):
    return {
        "success": True,
        "data": average_rating(db, product_id),
        "message": "Average rating calculated successfully",
    }


@router.put("/{feedback_id}")
def update_feedback(feedback_id: str, payload: FeedbackUpdate, db=Depends(get_db)):
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    updates["updated_at"] = utcnow()
    doc = db["feedback"].find_one_and_update(
        {"_id": object_id(feedback_id)}, {"$set": updates}, return_document=ReturnDocument.AFTER
    )
    if not doc:
        raise HTTPException(status_code=404, detail="Feedback not found")
    return {"success": True, "data": to_public(doc), "message": "Feedback updated successfully"}


@router.delete("/{feedback_id}")
def delete_feedback(feedback_id: str, db=Depends(get_db)):
    doc = db["feedback"].find_one_and_delete({"_id": object_id(feedback_id)})
    if not doc:
        raise HTTPException(status_code=404, detail="Feedback not found")
    logger.info("Feedback %s deleted", doc.get("feedbackID"))
    return {"success": True, "data": None, "message": "Feedback deleted successfully"}

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from passlib.context import CryptContext
from pydantic import BaseModel, EmailStr, Field
from pymongo import ReturnDocument

from database import create_document, get_db, maybe_object_id, next_sequence, to_public, utcnow
from schemas import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

router = APIRouter(prefix="/api/users", tags=["users"])

# the hash never leaves the database
HIDDEN = {"password": 0}


class UserCreate(BaseModel):
    UserName: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    address: Optional[str] = None
    mobile: str
    role: Optional[str] = None


class UserUpdate(BaseModel):
    UserName: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    mobile: Optional[str] = None
    role: Optional[str] = None


def get_password_hash(password):
    return pwd_context.hash(password)


def user_filter(user_ref: str) -> dict:
    oid = maybe_object_id(user_ref)
    if oid is not None:
        return {"_id": oid}
    if user_ref.isdigit():
        return {"userID": int(user_ref)}
    raise HTTPException(status_code=400, detail="Invalid id format")


@router.post("", status_code=201)
def create_user(payload: UserCreate, db=Depends(get_db)):
    email = payload.email.lower()
    if db["user"].find_one({"email": email}):
        raise HTTPException(status_code=400, detail="Email already registered")
    user = User(
        UserName=payload.UserName,
        email=email,
        password=get_password_hash(payload.password),
        address=payload.address,
        mobile=payload.mobile,
        role=payload.role,
    )
    user.userID = next_sequence(db, "userID")
    create_document(db, "user", user)
    logger.info("User %s created with role %s", user.userID, user.role)
    doc = db["user"].find_one({"userID": user.userID}, HIDDEN)
    return {"success": True, "data": to_public(doc), "message": "User created successfully"}


@router.get("")
def list_users(db=Depends(get_db)):
    users = [to_public(u) for u in db["user"].find({}, HIDDEN).sort("userID", 1)]
    return {"success": True, "data": users, "message": "Users retrieved"}


@router.get("/{user_ref}")
def get_user(user_ref: str, db=Depends(get_db)):
    doc = db["user"].find_one(user_filter(user_ref), HIDDEN)
    if not doc:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "data": to_public(doc), "message": "User retrieved"}


@router.put("/{user_ref}")
def update_user(user_ref: str, payload: UserUpdate, db=Depends(get_db)):
    if not payload.UserName:
        raise HTTPException(status_code=400, detail="UserName is required")
    existing = db["user"].find_one(user_filter(user_ref))
    if not existing:
        raise HTTPException(status_code=404, detail="User not found")
    merged = {k: v for k, v in existing.items() if k not in ("_id", "created_at", "updated_at")}
    merged.update(payload.model_dump(exclude_unset=True, exclude_none=True))
    if not merged.get("email"):
        merged["email"] = existing["email"]
    merged["email"] = merged["email"].lower()
    # the mobile number must be resent on every edit
    if not payload.mobile:
        raise HTTPException(status_code=400, detail="Mobile number must be exactly 10 digits")
    user = User.model_validate(merged)
    if user.email != existing["email"] and db["user"].find_one({"email": user.email}):
        raise HTTPException(status_code=400, detail="Email already registered")
    changes = user.model_dump(exclude={"userID", "password"})
    changes["updated_at"] = utcnow()
    doc = db["user"].find_one_and_update(
        {"_id": existing["_id"]},
        {"$set": changes},
        projection=HIDDEN,
        return_document=ReturnDocument.AFTER,
    )
    return {"success": True, "data": to_public(doc), "message": "User updated successfully"}


@router.delete("/{user_ref}")
def delete_user(user_ref: str, db=Depends(get_db)):
    doc = db["user"].find_one_and_delete(user_filter(user_ref))
    if not doc:
        raise HTTPException(status_code=404, detail="User not found")
    logger.info("User %s deleted", doc.get("userID"))
    return {"success": True, "data": None, "message": "User deleted successfully"}

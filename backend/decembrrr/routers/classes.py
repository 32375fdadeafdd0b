# backend/decembrrr/routers/classes.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..config import Settings
from ..db import get_db
from ..deps import get_settings
from ..schemas import ClassCreate, ClassOut, ClassUpdate, JoinClassIn, MemberActiveIn, MemberRecord
from ..services import classes as svc
from ..services.stores import must_get_class, query_members

router = APIRouter(tags=["classes"])


@router.post("/classes", response_model=ClassOut, status_code=201)
def create_class(payload: ClassCreate, db: Session = Depends(get_db), s: Settings = Depends(get_settings)):
    data = payload.model_dump()
    return svc.create_class(
        db,
        **data,
        default_collection_days=s.default_collection_days,
        default_timezone=s.default_class_timezone,
    )


@router.post("/classes/join", response_model=MemberRecord)
def join_class(payload: JoinClassIn, db: Session = Depends(get_db)):
    return svc.join_class(db, invite_code=payload.invite_code, name=payload.name, email=payload.email)


@router.get("/classes/{class_id}", response_model=ClassOut)
def get_class(class_id: int, db: Session = Depends(get_db)):
    return svc.get_class(db, class_id=class_id)


@router.patch("/classes/{class_id}", response_model=ClassOut)
def update_class(
    class_id: int,
    payload: ClassUpdate,
    db: Session = Depends(get_db),
    s: Settings = Depends(get_settings),
):
    return svc.update_class(
        db,
        class_id=class_id,
        changes=payload.model_dump(exclude_unset=True),
        default_timezone=s.default_class_timezone,
    )


@router.delete("/classes/{class_id}", status_code=204)
def delete_class(class_id: int, db: Session = Depends(get_db)):
    svc.delete_class(db, class_id=class_id)
    return Response(status_code=204)


@router.get("/classes/{class_id}/members", response_model=list[MemberRecord])
def list_members(class_id: int, db: Session = Depends(get_db)):
    must_get_class(db, class_id=class_id)
    return query_members(db, class_id=class_id)


@router.patch("/members/{member_id}/active", response_model=MemberRecord)
def set_member_active(member_id: int, payload: MemberActiveIn, db: Session = Depends(get_db)):
    return svc.set_member_active(db, member_id=member_id, is_active=payload.is_active)

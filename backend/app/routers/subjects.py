import aiosqlite
from fastapi import APIRouter, Depends

from app.db.sqlite import create_subject, get_db, list_subjects
from app.dependencies import get_current_user_id
from app.models.subject import Subject, SubjectCreate, SubjectList

router = APIRouter()


@router.post("/", response_model=Subject, status_code=201)
async def create(
    body: SubjectCreate,
    user_id: int = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    return await create_subject(db, user_id, body)


@router.get("/", response_model=SubjectList)
async def list_all(
    user_id: int = Depends(get_current_user_id),
    db: aiosqlite.Connection = Depends(get_db),
):
    items = await list_subjects(db, user_id)
    return SubjectList(items=items, total=len(items))

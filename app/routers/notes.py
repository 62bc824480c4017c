from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.db import get_db
from app.models.user import User
from app.schemas.base import MessageOut
from app.schemas.note import NoteOut, NotePageOut
from app.services import notes as notes_service
from app.services.storage import BlobStorage, get_storage, save_uploads

router = APIRouter(prefix="/api/notes", tags=["notes"])

UPLOAD_FOLDER = "notes"


# ---------- list (paged / filtered) ----------
@router.get("", response_model=NotePageOut)
def list_notes(
    page: Optional[str] = Query(None),
    size: Optional[str] = Query(None),
    from_date: Optional[str] = Query(None, alias="fromDate"),
    to_date: Optional[str] = Query(None, alias="toDate"),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    page_result = notes_service.list_notes(
        db,
        owner_id=me.id,
        page=page,
        size=size,
        from_date=from_date,
        to_date=to_date,
        search=search,
    )
    return NotePageOut.model_validate(page_result)


@router.get("/{note_id}", response_model=NoteOut)
def get_note(
    note_id: str,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return notes_service.get_note(db, me.id, note_id)


@router.post("", response_model=NoteOut, status_code=status.HTTP_201_CREATED)
def create_note(
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    deadline: Optional[str] = Form(None),
    categories: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage),
    me: User = Depends(get_current_user),
):
    uploads = save_uploads(storage, files, UPLOAD_FOLDER)
    return notes_service.create_note(
        db,
        storage,
        owner_id=me.id,
        title=title,
        content=content,
        deadline=deadline,
        uploads=uploads,
        categories=notes_service.split_categories(categories),
    )


@router.patch("/{note_id}", response_model=NoteOut)
def update_note(
    note_id: str,
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    deadline: Optional[str] = Form(None),
    categories: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage),
    me: User = Depends(get_current_user),
):
    uploads = save_uploads(storage, files, UPLOAD_FOLDER)
    return notes_service.update_note(
        db,
        storage,
        owner_id=me.id,
        note_id=note_id,
        title=title,
        content=content,
        deadline=deadline,
        uploads=uploads,
        categories=notes_service.split_categories(categories),
    )


@router.get("/{note_id}/files/{filename}")
def download_note_file(
    note_id: str,
    filename: str,
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage),
    me: User = Depends(get_current_user),
):
    entry, data = notes_service.get_note_file(db, storage, me.id, note_id, filename)
    return Response(
        content=data,
        media_type=entry.get("mimetype") or "application/octet-stream",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(entry['filename'])}"},
    )


@router.delete("/{note_id}", response_model=MessageOut)
def delete_note(
    note_id: str,
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage),
    me: User = Depends(get_current_user),
):
    notes_service.delete_note(db, storage, me.id, note_id)
    return {"message": "Note deleted"}

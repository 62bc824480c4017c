# app/schemas/note.py
from datetime import datetime
from typing import List

from .base import BaseSchema


class NoteFileOut(BaseSchema):
    path: str
    filename: str
    mimetype: str
    size: int


class CategoryOut(BaseSchema):
    id: int
    name: str


class NoteOut(BaseSchema):
    id: int
    title: str
    content: str
    deadline: datetime
    files: List[NoteFileOut]
    categories: List[CategoryOut]
    created_at: datetime
    updated_at: datetime


class NotePageOut(BaseSchema):
    pages: int
    total: int
    notes: List[NoteOut]

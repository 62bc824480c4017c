from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Table, UniqueConstraint
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.utils.dates import utcnow

# implicit many-to-many; links are removed by the app before a note is deleted
note_categories = Table(
    "note_categories",
    Base.metadata,
    Column("note_id", Integer, ForeignKey("notes.id"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id"), primary_key=True),
)


class Note(Base):
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    deadline = Column(DateTime, nullable=False)
    # ordered [{path, filename, mimetype, size}]
    files = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False, index=True)

    user = relationship("User", back_populates="notes")
    categories = relationship("Category", secondary=note_categories, back_populates="notes", order_by="Category.name")


class Category(Base):
    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_category_user_name"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(50), nullable=False)

    user = relationship("User", back_populates="categories")
    notes = relationship("Note", secondary=note_categories, back_populates="categories")

from sqlalchemy import Column, String, Text

from app.db.base import Base


class CategoryRecord(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True)
    data = Column(Text, nullable=False, default="")

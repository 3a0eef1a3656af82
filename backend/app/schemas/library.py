from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional
from datetime import date, datetime


class BookCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    title_bn: Optional[str] = None
    author: str = Field(..., min_length=1, max_length=255)
    author_bn: Optional[str] = None
    isbn: Optional[str] = None
    category: Optional[str] = None
    publisher: Optional[str] = None
    publish_year: Optional[int] = None
    total_copies: int = Field(1, ge=1)
    location: Optional[str] = None
    description: Optional[str] = None


class BookUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    title_bn: Optional[str] = None
    author: Optional[str] = Field(None, min_length=1, max_length=255)
    author_bn: Optional[str] = None
    isbn: Optional[str] = None
    category: Optional[str] = None
    publisher: Optional[str] = None
    publish_year: Optional[int] = None
    total_copies: Optional[int] = Field(None, ge=0)
    location: Optional[str] = None
    description: Optional[str] = None


class BookResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    title: str
    title_bn: Optional[str] = None
    author: str
    author_bn: Optional[str] = None
    isbn: Optional[str] = None
    category: Optional[str] = None
    publisher: Optional[str] = None
    publish_year: Optional[int] = None
    total_copies: int
    available_copies: int
    location: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime


class BorrowRequest(BaseModel):
    book_id: str
    student_id: str
    borrow_date: Optional[date] = None


class ReturnRequest(BaseModel):
    borrow_id: Optional[str] = None
    book_id: Optional[str] = None
    student_id: Optional[str] = None
    return_date: Optional[date] = None

    @model_validator(mode='after')
    def validate_target(self):
        if not self.borrow_id and not (self.book_id and self.student_id):
            raise ValueError("Provide borrow_id, or book_id and student_id")
        return self


class BorrowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    book_id: str
    student_id: str
    borrow_date: date
    due_date: date
    return_date: Optional[date] = None
    status: str
    fine: float
    created_at: datetime

# schemas.py
from pydantic import BaseModel, constr, confloat
from datetime import datetime
from typing import List

from database import Category
from policy import Role


class UserBase(BaseModel):
    username: constr(min_length=3, max_length=50)


class UserCreate(UserBase):
    password: constr(min_length=4, max_length=128)


class UserLogin(UserBase):
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    username: str


class MemberResponse(BaseModel):
    id: int
    username: str
    role: Role

    class Config:
        from_attributes = True


class ExpenseCreate(BaseModel):
    title: constr(min_length=1, max_length=100)
    content: constr(max_length=500) = ""
    category: Category
    amount: confloat(ge=0)


class ExpenseResponse(BaseModel):
    id: int
    title: str
    content: str
    category: Category
    amount: float
    photo_urls: List[str] = []
    owner_id: int
    username: str
    created_at: datetime


class ExpensePage(BaseModel):
    items: List[ExpenseResponse]
    page: int
    size: int
    total: int


class AmountItem(BaseModel):
    amount: float


class TotalResponse(BaseModel):
    total: float

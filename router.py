from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse, Response
from sqlalchemy.orm import Session
from typing import List, Optional

from auth import get_current_principal
from config import get_settings
from database import get_db, Category, Expense
from policy import Principal
from schemas import (
    AmountItem,
    ExpenseCreate,
    ExpensePage,
    ExpenseResponse,
    TotalResponse,
)
from services import ExpenseService
from storage import PhotoStorage, StoredPhoto


router = APIRouter()


def get_storage() -> PhotoStorage:
    settings = get_settings()
    return PhotoStorage(settings.upload_dir, settings.max_upload_bytes)


def get_expense_service(
    db: Session = Depends(get_db), storage: PhotoStorage = Depends(get_storage)
) -> ExpenseService:
    return ExpenseService(db, storage)


def photo_url(expense_id: int, photo_id: int) -> str:
    return f"/api/expenses/{expense_id}/photos/{photo_id}"


def to_response(expense: Expense) -> ExpenseResponse:
    return ExpenseResponse(
        id=expense.id,
        title=expense.title,
        content=expense.content,
        category=expense.category,
        amount=expense.amount,
        photo_urls=[photo_url(expense.id, photo.id) for photo in expense.photos],
        owner_id=expense.owner_id,
        username=expense.owner.username,
        created_at=expense.created_at,
    )


def page_size(size: Optional[int]) -> int:
    settings = get_settings()
    return min(size or settings.default_page_size, settings.max_page_size)


def store_uploads(
    storage: PhotoStorage, files: Optional[List[UploadFile]]
) -> List[StoredPhoto]:
    stored: List[StoredPhoto] = []
    try:
        for upload in files or []:
            stored.append(storage.save(upload))
    except Exception:
        for photo in stored:
            storage.delete(photo.file_path)
        raise
    return stored


@router.get("/expenses", response_model=ExpensePage)
def list_expenses(
    page: int = Query(1, ge=1),
    size: Optional[int] = Query(None, ge=1),
    service: ExpenseService = Depends(get_expense_service),
    principal: Principal = Depends(get_current_principal),
):
    size = page_size(size)
    items, total = service.list_expenses(principal, page, size)
    return ExpensePage(
        items=[to_response(e) for e in items], page=page, size=size, total=total
    )


@router.post("/expenses", response_model=ExpenseResponse)
def create_expense(
    title: str = Form(..., min_length=1, max_length=100),
    content: str = Form("", max_length=500),
    category: Category = Form(...),
    amount: float = Form(..., ge=0),
    files: Optional[List[UploadFile]] = File(None),
    service: ExpenseService = Depends(get_expense_service),
    principal: Principal = Depends(get_current_principal),
):
    data = ExpenseCreate(title=title, content=content, category=category, amount=amount)
    photos = store_uploads(service.storage, files)
    expense = service.create_expense(principal, data, photos)
    return to_response(expense)


@router.post("/expenses/total", response_model=TotalResponse)
def get_total_amount(
    expenses: List[AmountItem],
    principal: Principal = Depends(get_current_principal),
):
    return TotalResponse(total=ExpenseService.total_amount(e.amount for e in expenses))


@router.get("/expenses/category/{category}", response_model=ExpensePage)
def list_expenses_by_category(
    category: Category,
    page: int = Query(1, ge=1),
    size: Optional[int] = Query(None, ge=1),
    service: ExpenseService = Depends(get_expense_service),
    principal: Principal = Depends(get_current_principal),
):
    size = page_size(size)
    items, total = service.list_by_category(principal, category, page, size)
    return ExpensePage(
        items=[to_response(e) for e in items], page=page, size=size, total=total
    )


@router.get("/expenses/{expense_id}", response_model=ExpenseResponse)
def get_expense(
    expense_id: int,
    service: ExpenseService = Depends(get_expense_service),
    principal: Principal = Depends(get_current_principal),
):
    return to_response(service.get_expense(principal, expense_id))


@router.put("/expenses/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: int,
    title: str = Form(..., min_length=1, max_length=100),
    content: str = Form("", max_length=500),
    category: Category = Form(...),
    amount: float = Form(..., ge=0),
    files: Optional[List[UploadFile]] = File(None),
    service: ExpenseService = Depends(get_expense_service),
    principal: Principal = Depends(get_current_principal),
):
    data = ExpenseCreate(title=title, content=content, category=category, amount=amount)
    # authorize before touching the disk
    service.get_expense(principal, expense_id)
    photos = store_uploads(service.storage, files)
    expense = service.update_expense(principal, expense_id, data, photos)
    return to_response(expense)


@router.delete("/expenses/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(
    expense_id: int,
    service: ExpenseService = Depends(get_expense_service),
    principal: Principal = Depends(get_current_principal),
):
    service.delete_expense(principal, expense_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/expenses/{expense_id}/photos/{photo_id}")
def get_photo(
    expense_id: int,
    photo_id: int,
    service: ExpenseService = Depends(get_expense_service),
    principal: Principal = Depends(get_current_principal),
):
    photo = service.get_photo(principal, expense_id, photo_id)
    return FileResponse(
        photo.file_path, media_type=photo.file_type, filename=photo.file_name
    )

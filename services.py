# services.py
import logging
import os
from typing import Callable, Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from database import Category, Expense, Photo, utcnow
from errors import Forbidden, NotFound
from policy import Principal, can_delete, can_list_all, can_mutate, can_view
from schemas import ExpenseCreate
from storage import PhotoStorage, StoredPhoto

logger = logging.getLogger(__name__)


class ExpenseService:
    """Expense CRUD for one request, gated by the authorization policy."""

    def __init__(self, db: Session, storage: PhotoStorage):
        self.db = db
        self.storage = storage

    def _load(
        self,
        principal: Principal,
        expense_id: int,
        check: Callable[[Principal, Expense], bool],
    ) -> Expense:
        expense = self.db.get(Expense, expense_id)
        if expense is None:
            # members must not learn whether someone else's record exists
            if principal.is_admin:
                raise NotFound()
            raise Forbidden()
        if not check(principal, expense):
            logger.warning(
                "%s denied %s on expense %s", principal.username, check.__name__, expense_id
            )
            raise Forbidden()
        return expense

    def _attach(self, expense: Expense, photos: Iterable[StoredPhoto]) -> None:
        for stored in photos:
            expense.photos.append(
                Photo(
                    file_name=stored.file_name,
                    file_path=stored.file_path,
                    file_type=stored.file_type,
                    file_size=stored.file_size,
                    uploaded_at=utcnow(),
                    description="Expense photo",
                )
            )

    def _commit_or_discard(self, photos: Iterable[StoredPhoto]) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            for stored in photos:
                self.storage.delete(stored.file_path)
            raise

    def create_expense(
        self,
        principal: Principal,
        data: ExpenseCreate,
        photos: Optional[List[StoredPhoto]] = None,
    ) -> Expense:
        photos = photos or []
        expense = Expense(
            title=data.title,
            content=data.content,
            category=data.category,
            amount=data.amount,
            owner_id=principal.id,
            created_at=utcnow(),
        )
        self._attach(expense, photos)
        self.db.add(expense)
        self._commit_or_discard(photos)
        self.db.refresh(expense)
        logger.info(
            "Expense %s created by %s with %d photo(s)",
            expense.id,
            principal.username,
            len(photos),
        )
        return expense

    def get_expense(self, principal: Principal, expense_id: int) -> Expense:
        return self._load(principal, expense_id, can_view)

    def update_expense(
        self,
        principal: Principal,
        expense_id: int,
        data: ExpenseCreate,
        photos: Optional[List[StoredPhoto]] = None,
    ) -> Expense:
        expense = self._load(principal, expense_id, can_mutate)

        expense.title = data.title
        expense.content = data.content
        expense.category = data.category
        expense.amount = data.amount

        replaced: List[str] = []
        if photos:
            replaced = [photo.file_path for photo in expense.photos]
            expense.photos.clear()
            self._attach(expense, photos)

        self._commit_or_discard(photos or [])
        for file_path in replaced:
            self.storage.delete(file_path)
        self.db.refresh(expense)
        logger.info("Expense %s updated by %s", expense_id, principal.username)
        return expense

    def delete_expense(self, principal: Principal, expense_id: int) -> None:
        expense = self._load(principal, expense_id, can_delete)
        file_paths = [photo.file_path for photo in expense.photos]
        self.db.delete(expense)
        self.db.commit()
        for file_path in file_paths:
            self.storage.delete(file_path)
        logger.info("Expense %s deleted by %s", expense_id, principal.username)

    def _scoped_query(self, principal: Principal):
        query = self.db.query(Expense)
        if not can_list_all(principal):
            query = query.filter(Expense.owner_id == principal.id)
        return query

    def _paginate(self, query, page: int, size: int) -> Tuple[List[Expense], int]:
        total = query.with_entities(func.count(Expense.id)).scalar()
        items = (
            query.order_by(Expense.created_at.desc(), Expense.id.desc())
            .offset((page - 1) * size)
            .limit(size)
            .all()
        )
        return items, total

    def list_expenses(
        self, principal: Principal, page: int = 1, size: int = 10
    ) -> Tuple[List[Expense], int]:
        return self._paginate(self._scoped_query(principal), page, size)

    def list_by_category(
        self, principal: Principal, category: Category, page: int = 1, size: int = 10
    ) -> Tuple[List[Expense], int]:
        query = self._scoped_query(principal).filter(Expense.category == category)
        return self._paginate(query, page, size)

    def get_photo(self, principal: Principal, expense_id: int, photo_id: int) -> Photo:
        expense = self._load(principal, expense_id, can_view)
        for photo in expense.photos:
            if photo.id != photo_id:
                continue
            if not os.path.isfile(photo.file_path):
                logger.warning(
                    "Photo %s of expense %s is missing on disk at %s",
                    photo_id,
                    expense_id,
                    photo.file_path,
                )
                raise NotFound("Photo not found")
            return photo
        raise NotFound("Photo not found")

    @staticmethod
    def total_amount(amounts: Iterable[float]) -> float:
        return float(sum(amounts))

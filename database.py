# database.py
import enum
from datetime import datetime, timezone

from sqlalchemy import (
    create_engine,
    Column,
    Integer,
    String,
    Float,
    DateTime,
    Enum,
    ForeignKey,
)
from sqlalchemy.orm import sessionmaker, declarative_base, relationship

from config import get_settings
from policy import Role

settings = get_settings()

DATABASE_URL = settings.database_url
connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


class Category(str, enum.Enum):
    FOOD = "FOOD"
    TRANSPORT = "TRANSPORT"
    LODGING = "LODGING"
    EVENTS = "EVENTS"
    OTHER = "OTHER"


class Member(Base):
    __tablename__ = "members"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(Role), nullable=False, default=Role.USER)

    expenses = relationship(
        "Expense", back_populates="owner", cascade="all, delete-orphan"
    )


class Expense(Base):
    __tablename__ = "expenses"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    title = Column(String(100), nullable=False)
    content = Column(String(500), nullable=False, default="")
    category = Column(Enum(Category), index=True, nullable=False)
    amount = Column(Float, nullable=False)
    owner_id = Column(Integer, ForeignKey("members.id"), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    owner = relationship("Member", back_populates="expenses")
    photos = relationship(
        "Photo",
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="Photo.id",
    )


class Photo(Base):
    __tablename__ = "photos"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    expense_id = Column(Integer, ForeignKey("expenses.id"), index=True, nullable=False)
    file_name = Column(String(255), nullable=False)
    file_path = Column(String(512), nullable=False)
    file_type = Column(String(100))
    file_size = Column(Integer)
    uploaded_at = Column(DateTime(timezone=True), default=utcnow)
    description = Column(String(255), nullable=True)

    expense = relationship("Expense", back_populates="photos")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordBearer
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from config import get_settings
from database import get_db, Member
from errors import AuthenticationFailure, TokenInvalid, UsernameTaken
from policy import Principal, Role
from schemas import UserCreate, UserLogin, Token, MemberResponse
from tokens import InvalidToken, TokenService

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

auth_router = APIRouter()
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # unrecognised or corrupt hash in the store
        logger.warning("Stored password hash could not be parsed")
        return False


@lru_cache
def get_token_service() -> TokenService:
    return TokenService(get_settings())


def authenticate(db: Session, username: str, password: str) -> Member:
    member = db.query(Member).filter(Member.username == username).first()
    if member is None or not verify_password(password, member.password_hash):
        logger.info("Failed login for %r", username)
        raise AuthenticationFailure()
    return member


def get_current_principal(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> Principal:
    result = tokens.validate(token)
    if isinstance(result, InvalidToken):
        logger.info("Rejected bearer token: %s", result.reason.value)
        raise result.to_error()

    member = db.query(Member).filter(Member.username == result.subject).first()
    if member is None:
        logger.info("Token subject %r no longer exists", result.subject)
        raise TokenInvalid()
    return Principal.from_member(member)


def _token_for(member: Member, tokens: TokenService) -> Token:
    access_token = tokens.issue(Principal.from_member(member))
    return Token(access_token=access_token, username=member.username)


@auth_router.post("/register", response_model=Token)
def register(
    user: UserCreate,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    db_user = db.query(Member).filter(Member.username == user.username).first()
    if db_user:
        raise UsernameTaken()

    new_user = Member(
        username=user.username,
        password_hash=hash_password(user.password),
        role=Role.USER,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    logger.info("Registered member %s", new_user.username)

    return _token_for(new_user, tokens)


@auth_router.post("/login", response_model=Token)
def login(
    user: UserLogin,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    member = authenticate(db, user.username, user.password)
    return _token_for(member, tokens)


@auth_router.get("/me", response_model=MemberResponse)
def me(principal: Principal = Depends(get_current_principal)):
    return MemberResponse(
        id=principal.id, username=principal.username, role=principal.role
    )

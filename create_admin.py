# create_admin.py
import sys

from sqlalchemy.orm import Session

from auth import hash_password
from database import Base, SessionLocal, engine, Member
from policy import Role


def create_admin(db: Session, username: str, password: str) -> str:
    """Create an ADMIN member, or promote and re-password an existing one."""
    member = db.query(Member).filter(Member.username == username).first()
    if member is None:
        db.add(
            Member(
                username=username,
                password_hash=hash_password(password),
                role=Role.ADMIN,
            )
        )
        db.commit()
        return f"Admin {username} created"

    member.role = Role.ADMIN
    member.password_hash = hash_password(password)
    db.commit()
    return f"Member {username} promoted to admin"


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("usage: python create_admin.py <username> <password>")
        sys.exit(2)
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        print(create_admin(db, sys.argv[1], sys.argv[2]))

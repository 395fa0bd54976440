# policy.py
"""Who may see and change which expense records.

All checks are pure predicates over an already-loaded principal and record.
A record only needs an ``owner_id`` attribute.
"""
import enum
from dataclasses import dataclass
from typing import FrozenSet


class Role(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class Principal:
    id: int
    username: str
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def roles(self) -> FrozenSet[str]:
        return frozenset({"ROLE_" + self.role.value})

    @classmethod
    def from_member(cls, member) -> "Principal":
        return cls(id=member.id, username=member.username, role=Role(member.role))


def can_mutate(principal: Principal, record) -> bool:
    return principal.role == Role.ADMIN or record.owner_id == principal.id


def can_delete(principal: Principal, record) -> bool:
    return can_mutate(principal, record)


def can_view(principal: Principal, record) -> bool:
    return can_mutate(principal, record)


def can_list_all(principal: Principal) -> bool:
    return principal.role == Role.ADMIN

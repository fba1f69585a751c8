"""Acesso somente-leitura à tabela users, mais o cadastro e a troca de hash."""
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .db import guarded
from .models.user import User
from .records import Role, UserRecord


class EmailTaken(Exception):
    """O índice único de users.email recusou o cadastro."""

    def __init__(self, email: str):
        super().__init__(email)
        self.email = email


class UserStore:
    def __init__(self, db: Session):
        self.db = db

    def get_by_email(self, email: str) -> UserRecord | None:
        with guarded(self.db, "users.get_by_email"):
            row = self.db.execute(select(User).where(User.email == email)).scalar_one_or_none()
        return UserRecord.from_row(row) if row else None

    def get_by_id(self, user_id: str) -> UserRecord | None:
        with guarded(self.db, "users.get_by_id"):
            row = self.db.execute(select(User).where(User.id == str(user_id))).scalar_one_or_none()
        return UserRecord.from_row(row) if row else None

    def email_exists(self, email: str) -> bool:
        with guarded(self.db, "users.email_exists"):
            found = self.db.execute(select(User.id).where(User.email == email)).first()
        return found is not None

    def create(self, name: str, email: str, password_hash: str, role: Role = Role.USER) -> UserRecord:
        with guarded(self.db, "users.create"):
            row = User(name=name, email=email, password_hash=password_hash, role=role.value)
            self.db.add(row)
            try:
                self.db.commit()
            except IntegrityError as e:
                # dois cadastros simultâneos passaram por email_exists
                self.db.rollback()
                raise EmailTaken(email) from e
            self.db.refresh(row)
        return UserRecord.from_row(row)

    def update_password_hash(self, user_id: str, password_hash: str):
        with guarded(self.db, "users.update_password_hash"):
            row = self.db.get(User, str(user_id))
            if row is None:
                return
            row.password_hash = password_hash
            self.db.commit()

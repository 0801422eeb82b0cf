"""
Credential store: the only place that talks to the `users` table.

Uniqueness of username and email is enforced by the table itself. `add` flushes
immediately so a lost race surfaces as an IntegrityError inside the caller's
try block rather than at commit time.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import select, func, exists
from sqlalchemy.ext.asyncio import AsyncSession
from sensore.models.user import User


class UserStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalars().first()

    async def username_exists(self, username: str) -> bool:
        return bool(await self.db.scalar(select(exists().where(User.username == username))))

    async def add(self, user: User) -> User:
        self.db.add(user)
        await self.db.flush()
        return user

    async def touch(self, user: User, when: datetime) -> None:
        user.updated_at = when
        await self.db.flush()

    async def count(self, user_type: Optional[str] = None) -> int:
        query = select(func.count(User.user_id))
        if user_type is not None:
            query = query.where(User.user_type == user_type)
        return await self.db.scalar(query) or 0

    async def rollback(self) -> None:
        await self.db.rollback()

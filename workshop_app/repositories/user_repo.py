from sqlalchemy.ext.asyncio import AsyncSession
from workshop_app.models.user import User


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.s = session

    async def get_by_id(self, user_id: str) -> User | None:
        return await self.s.get(User, user_id)


UserRepo = UserRepository
__all__ = ["UserRepository", "UserRepo"]

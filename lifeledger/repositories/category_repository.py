from __future__ import annotations
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from lifeledger.models import Category


class CategoryRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, include_inactive: bool = False) -> List[Category]:
        """List all categories, optionally including inactive ones"""
        query = select(Category)
        if not include_inactive:
            query = query.where(Category.is_active == True)
        query = query.order_by(Category.name)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get(self, category_id: int) -> Category | None:
        """Get category by ID"""
        result = await self.db.execute(select(Category).where(Category.id == category_id))
        return result.scalar_one_or_none()

    async def create(self, category: Category) -> Category:
        """Create a new category"""
        self.db.add(category)
        await self.db.commit()
        await self.db.refresh(category)
        return category

    async def set_active(self, category: Category, is_active: bool) -> Category:
        category.is_active = is_active
        await self.db.commit()
        await self.db.refresh(category)
        return category

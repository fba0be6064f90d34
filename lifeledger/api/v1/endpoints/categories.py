from fastapi import APIRouter, HTTPException, Query, status
from lifeledger.core.deps import DBSessionDep
from lifeledger.models.category import Category
from lifeledger.repositories.category_repository import CategoryRepository
from lifeledger.schemas.category import CategoryCreate, CategoryOut, CategoryUpdate

router = APIRouter()


@router.get("/", response_model=list[CategoryOut])
async def list_categories(db: DBSessionDep, include_inactive: bool = Query(False)):
    """List categories; inactive ones only on request"""
    return await CategoryRepository(db).list(include_inactive=include_inactive)


@router.get("/{category_id}", response_model=CategoryOut)
async def get_category(category_id: int, db: DBSessionDep):
    category = await CategoryRepository(db).get(category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.post("/", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
async def create_category(data: CategoryCreate, db: DBSessionDep):
    category = Category(name=data.name, kind=data.kind.value if data.kind else None)
    return await CategoryRepository(db).create(category)


@router.patch("/{category_id}", response_model=CategoryOut)
async def update_category(category_id: int, data: CategoryUpdate, db: DBSessionDep):
    """Activate or deactivate a category. Rules keep pointing at deactivated categories."""
    repo = CategoryRepository(db)
    category = await repo.get(category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return await repo.set_active(category, data.is_active)

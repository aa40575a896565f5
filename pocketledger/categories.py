"""
Category Service

Create, rename and delete the categories entries are filed under.
Categories carry no balance, so nothing here touches accounts.
"""

from typing import Optional, Union

from pocketledger.errors import NotFoundError
from pocketledger.models.ledger import (
    Category,
    CategoryDraft,
    OperationResult,
    utc_now,
)
from pocketledger.models.status import StatusAction, StatusScope
from pocketledger.services.storage import CategoryStoreInterface
from pocketledger.status import StatusRelay
from pocketledger.validation import parse_model


class CategoryService:
    """Manages categories."""
    
    def __init__(
        self,
        category_store: CategoryStoreInterface,
        status_relay: Optional[StatusRelay] = None,
    ):
        self._store = category_store
        self._relay = status_relay or StatusRelay()
    
    async def save_category(self, draft: Union[CategoryDraft, dict]) -> OperationResult:
        """
        Create a category, or update the one with `draft.id`.
        
        An update keeps the original creation time.
        """
        async with self._relay.track(
            scope=StatusScope.CATEGORIES,
            action=StatusAction.UPSERT,
            error_message="Category save failed",
        ) as op:
            draft = parse_model(CategoryDraft, draft, "Category rejected")
            if draft.id:
                op.action = StatusAction.UPDATE
                op.success_message = "Category updated"
            else:
                op.action = StatusAction.CREATE
                op.success_message = "Category created"
            now = utc_now()
            
            previous = await self._store.get_category(draft.id) if draft.id else None
            data = {
                "name": draft.name,
                "color_hex": draft.color_hex,
                "created_at": previous.created_at if previous else now,
                "updated_at": now,
            }
            if draft.id:
                data["id"] = draft.id
            category = parse_model(Category, data, "Category rejected")
            op.details["category_id"] = category.id
            
            await self._store.put_category(category)
            return OperationResult(id=category.id)
    
    async def get_category(self, category_id: str) -> Category:
        category = await self._store.get_category(category_id)
        if category is None:
            raise NotFoundError(f"Category not found: {category_id}")
        return category
    
    async def delete_category(self, category_id: str) -> OperationResult:
        """Delete a category. Entries filed under it keep the dangling id."""
        async with self._relay.track(
            scope=StatusScope.CATEGORIES,
            action=StatusAction.DELETE,
            error_message="Category deletion failed",
            success_message="Category deleted",
        ) as op:
            op.details["category_id"] = category_id
            await self._store.delete_category(category_id)
            return OperationResult(id=category_id)
    
    async def list_categories(self) -> list[Category]:
        """All categories ordered by name."""
        async with self._relay.track(
            scope=StatusScope.CATEGORIES,
            action=StatusAction.LIST,
            error_message="Categories listing failed",
        ):
            return await self._store.list_categories()

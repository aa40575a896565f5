"""
Account Service

Account creation, editing and deletion. This is the only place where a
balance is set directly instead of adjusted by a delta.

A direct balance change is a manual balance edit: the new value becomes
the baseline that entry deltas accumulate on, and the watermark is reset
to "now" to say the number is authoritative as of this moment.
"""

from typing import Optional, Union

from pocketledger.errors import NotFoundError
from pocketledger.models.ledger import (
    Account,
    AccountDraft,
    AccountUpdate,
    OperationResult,
    utc_now,
)
from pocketledger.models.status import StatusAction, StatusScope
from pocketledger.services.storage import AccountStoreInterface
from pocketledger.status import StatusRelay
from pocketledger.validation import parse_model


class AccountService:
    """Manages accounts and manual balance edits."""
    
    def __init__(
        self,
        account_store: AccountStoreInterface,
        status_relay: Optional[StatusRelay] = None,
    ):
        self._store = account_store
        self._relay = status_relay or StatusRelay()
    
    async def save_account(self, draft: Union[AccountDraft, dict]) -> OperationResult:
        """
        Create an account, or update one when `draft.id` is set.
        
        A new account starts with its watermark at creation time. On update,
        a changed balance counts as a manual balance edit.
        """
        async with self._relay.track(
            scope=StatusScope.ACCOUNTS,
            action=StatusAction.UPSERT,
            error_message="Account save failed",
        ) as op:
            draft = parse_model(AccountDraft, draft, "Account rejected")
            if draft.id:
                op.action = StatusAction.UPDATE
                op.success_message = "Account updated"
            else:
                op.action = StatusAction.CREATE
                op.success_message = "Account created"
            now = utc_now()
            
            previous = await self._store.get_account(draft.id) if draft.id else None
            if previous is None:
                watermark = now
            elif previous.balance_cents != draft.balance_cents:
                watermark = now
                op.details["manual_balance_edit"] = True
            else:
                watermark = previous.watermark
            
            data = {
                "name": draft.name,
                "color_hex": draft.color_hex,
                "description": draft.description,
                "balance_cents": draft.balance_cents,
                "watermark": watermark,
                "created_at": previous.created_at if previous else now,
                "updated_at": now,
            }
            if draft.id:
                data["id"] = draft.id
            account = parse_model(Account, data, "Account rejected")
            op.details["account_id"] = account.id
            
            await self._store.put_account(account)
            return OperationResult(id=account.id)
    
    async def set_balance(self, account_id: str, balance_cents: int) -> OperationResult:
        """
        Manual balance edit.
        
        Always resets the watermark to now, even if the value is unchanged.
        """
        async with self._relay.track(
            scope=StatusScope.ACCOUNTS,
            action=StatusAction.UPDATE,
            error_message="Balance update failed",
            success_message="Balance updated",
        ) as op:
            op.details.update(account_id=account_id, balance_cents=balance_cents)
            
            if await self._store.get_account(account_id) is None:
                raise NotFoundError(f"Account not found: {account_id}")
            
            await self._store.update_account(
                account_id,
                AccountUpdate(balance_cents=balance_cents, watermark=utc_now()),
            )
            return OperationResult(id=account_id)
    
    async def get_account(self, account_id: str) -> Account:
        account = await self._store.get_account(account_id)
        if account is None:
            raise NotFoundError(f"Account not found: {account_id}")
        return account
    
    async def delete_account(self, account_id: str) -> OperationResult:
        """Delete an account. Its entries are left to the entry store."""
        async with self._relay.track(
            scope=StatusScope.ACCOUNTS,
            action=StatusAction.DELETE,
            error_message="Account deletion failed",
            success_message="Account deleted",
        ) as op:
            op.details["account_id"] = account_id
            await self._store.delete_account(account_id)
            return OperationResult(id=account_id)
    
    async def list_accounts(self) -> list[Account]:
        """All accounts ordered by name."""
        async with self._relay.track(
            scope=StatusScope.ACCOUNTS,
            action=StatusAction.LIST,
            error_message="Accounts listing failed",
        ):
            return await self._store.list_accounts()

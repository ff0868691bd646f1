"""
Lookups into the account and item master data.

Accounts and items are owned by the master-data service. The command
handler only needs to know whether an identifier exists, so it depends on
the small ``AccountLookup`` / ``ItemLookup`` protocols. The in-memory
directories below serve tests and single-process deployments.
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class Account(BaseModel):
    model_config = ConfigDict(frozen=True)

    account_id: str = Field(..., min_length=1)
    name: str = ""


class Item(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_id: str = Field(..., min_length=1)
    name: str = ""


@runtime_checkable
class AccountLookup(Protocol):
    async def account_exists(self, account_id: str) -> bool: ...


@runtime_checkable
class ItemLookup(Protocol):
    async def item_exists(self, item_id: str) -> bool: ...


class InMemoryAccountDirectory:
    """Account master data held in a dict."""

    def __init__(self, accounts: Iterable[Account] = ()) -> None:
        self._accounts: dict[str, Account] = {}
        self._lock = asyncio.Lock()
        for account in accounts:
            self._accounts[account.account_id] = account

    async def add(self, account: Account) -> None:
        async with self._lock:
            self._accounts[account.account_id] = account
        logger.debug("Registered account %s", account.account_id)

    async def get(self, account_id: str) -> Account | None:
        async with self._lock:
            return self._accounts.get(account_id)

    async def account_exists(self, account_id: str) -> bool:
        return await self.get(account_id) is not None

    def __len__(self) -> int:
        return len(self._accounts)


class InMemoryItemCatalog:
    """Item master data held in a dict."""

    def __init__(self, items: Iterable[Item] = ()) -> None:
        self._items: dict[str, Item] = {}
        self._lock = asyncio.Lock()
        for item in items:
            self._items[item.item_id] = item

    async def add(self, item: Item) -> None:
        async with self._lock:
            self._items[item.item_id] = item
        logger.debug("Registered item %s", item.item_id)

    async def get(self, item_id: str) -> Item | None:
        async with self._lock:
            return self._items.get(item_id)

    async def item_exists(self, item_id: str) -> bool:
        return await self.get(item_id) is not None

    def __len__(self) -> int:
        return len(self._items)


__all__ = [
    "Account",
    "AccountLookup",
    "InMemoryAccountDirectory",
    "InMemoryItemCatalog",
    "Item",
    "ItemLookup",
]

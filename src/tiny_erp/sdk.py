from __future__ import annotations

import logging
from typing import Optional

import httpx

from .client import TinyClient
from .config import create_client_from_env
from .resources import AccountResource, ContactsResource, ProductsResource


class TinySDK:
    """
    Entry point for the Tiny ERP API v2.

        async with TinySDK(token) as sdk:
            info = await sdk.account.get_info()
            page = await sdk.products.search("mouse", situation="A", page=2)

    All resources share one TinyClient; pass ``client`` to reuse an existing one.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        *,
        client: Optional[TinyClient] = None,
        logger: Optional[logging.Logger] = None,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.client = client or TinyClient(token=token or "", logger=logger, http=http)
        self.account = AccountResource(self.client)
        self.contacts = ContactsResource(self.client)
        self.products = ProductsResource(self.client)

    @classmethod
    def from_env(cls, **kwargs) -> "TinySDK":
        return cls(client=create_client_from_env(**kwargs))

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "TinySDK":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

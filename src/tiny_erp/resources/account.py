from __future__ import annotations

from dataclasses import dataclass

from tiny_erp.client import TinyClient
from tiny_erp.envelope import unwrap_one
from tiny_erp.models import AccountDetails

INFO_ENDPOINT = "/info.php"


@dataclass(frozen=True)
class AccountResource:
    client: TinyClient

    async def get_info(self) -> AccountDetails:
        """Account bound to the token. An invalid token raises TinyApiError."""
        payload = await self.client.get(INFO_ENDPOINT, resource="account")
        return TinyClient.validate(AccountDetails, unwrap_one(payload, "conta"))

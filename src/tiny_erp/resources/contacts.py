from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List

from tiny_erp.client import TinyClient
from tiny_erp.envelope import Nested, unwrap_one, unwrap_record
from tiny_erp.models import (
    BatchResult,
    Contact,
    ContactDetails,
    ContactSearchFilters,
    Page,
)

from ._batch import EntryLike, coerce_entries, search_params, submit_batch, unwrap_page

SEARCH_ENDPOINT = "/contatos.pesquisa.php"
GET_ENDPOINT = "/contato.obter.php"
CREATE_ENDPOINT = "/contato.incluir.php"
UPDATE_ENDPOINT = "/contato.alterar.php"

CONTACT_PLAN = (
    Nested("tipos_contato", "tipo"),
    Nested("pessoas_contato", "pessoa_contato"),
)


def _has_identity(record) -> bool:
    return any(record.get(k) not in (None, "") for k in ("id", "codigo"))


@dataclass(frozen=True)
class ContactsResource:
    """Customers and suppliers ("contatos")."""

    client: TinyClient

    async def search(self, query: str = "", **filters: Any) -> Page[Contact]:
        """
        One page of contacts matching ``query``.

        Filters: document (cpf_cnpj), situation ("Ativo" | "Excluido"),
        salesperson_id, salesperson_name, created_at, updated_since, page.
        Callers page by passing page=2..total_pages.
        """
        params = search_params(ContactSearchFilters, query, filters)
        payload = await self.client.get(SEARCH_ENDPOINT, params=params, resource="contacts")
        return unwrap_page(payload, collection="contatos", key="contato", model=Contact)

    async def get_by_id(self, contact_id: int) -> ContactDetails:
        payload = await self.client.get(
            GET_ENDPOINT, params={"id": contact_id}, resource="contacts"
        )
        record = unwrap_record(unwrap_one(payload, "contato"), CONTACT_PLAN)
        return TinyClient.validate(ContactDetails, record)

    async def create(self, entries: Iterable[EntryLike]) -> List[BatchResult]:
        return await self._submit(CREATE_ENDPOINT, entries)

    async def update(self, entries: Iterable[EntryLike]) -> List[BatchResult]:
        """Each record must carry the ``id`` or ``codigo`` of the contact to change."""
        batch = coerce_entries(entries)
        for entry in batch:
            if not _has_identity(entry.data):
                raise ValueError(
                    f"Contact update for sequence {entry.sequence} needs 'id' or 'codigo'."
                )
        return await self._submit(UPDATE_ENDPOINT, batch)

    async def _submit(self, endpoint: str, entries: Iterable[EntryLike]) -> List[BatchResult]:
        return await submit_batch(
            self.client,
            endpoint,
            entries,
            resource="contacts",
            field="contato",
            collection="contatos",
            key="contato",
            plan=CONTACT_PLAN,
        )


from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List

from tiny_erp.client import TinyClient
from tiny_erp.envelope import Nested, unwrap_one, unwrap_record
from tiny_erp.models import BatchResult, Page, Product, ProductDetails, ProductSearchFilters

from ._batch import EntryLike, search_params, submit_batch, unwrap_page

SEARCH_ENDPOINT = "/produtos.pesquisa.php"
GET_ENDPOINT = "/produto.obter.php"
CREATE_ENDPOINT = "/produto.incluir.php"

MAPPINGS = Nested("mapeamentos", "mapeamento")
VARIATIONS = Nested("variacoes", "variacao", children=(MAPPINGS,))

# Collections Tiny returns wrapped from produto.obter
PRODUCT_READ_PLAN = (
    Nested("anexos", "anexo"),
    Nested("imagens_externas", "imagem_externa"),
    Nested("kit", "item"),
    MAPPINGS,
    VARIATIONS,
)

# Collections produto.incluir expects wrapped, always sent even when empty
PRODUCT_WRITE_PLAN = (
    Nested("anexos", "anexo"),
    Nested("imagens_externas", "imagem_externa"),
    Nested("kit", "item"),
    Nested("estrutura", "item"),
    Nested("etapas", "etapa"),
    VARIATIONS,
    MAPPINGS,
)

# Created variation ids echoed in each registro
PRODUCT_RESULT_PLAN = (Nested("variacoes", "variacao"),)


@dataclass(frozen=True)
class ProductsResource:
    client: TinyClient

    async def search(self, query: str = "", **filters: Any) -> Page[Product]:
        """
        One page of product summaries matching ``query``.

        Filters: situation ("A" | "I" | "E"), tag_id, price_list_id, gtin,
        created_at ("dd/mm/yyyy hh:mm:ss"), page.
        """
        params = search_params(ProductSearchFilters, query, filters)
        payload = await self.client.get(SEARCH_ENDPOINT, params=params, resource="products")
        return unwrap_page(payload, collection="produtos", key="produto", model=Product)

    async def get_by_id(self, product_id: int) -> ProductDetails:
        """
        Full product record with attachments, external images, kit items,
        mappings and variations (each with its own mappings) unwrapped.
        Missing collections come back as empty lists.
        """
        payload = await self.client.get(
            GET_ENDPOINT, params={"id": product_id}, resource="products"
        )
        record = unwrap_record(unwrap_one(payload, "produto"), PRODUCT_READ_PLAN)
        return TinyClient.validate(ProductDetails, record)

    async def create(self, entries: Iterable[EntryLike]) -> List[BatchResult]:
        """
        Create products in one batch request.

        Successful records carry the new ``id`` and, when variations were
        sent, ``variation_ids``. Failed records are returned as
        BatchFailure items; check ``ok`` on every result.
        """
        return await submit_batch(
            self.client,
            CREATE_ENDPOINT,
            entries,
            resource="products",
            field="produto",
            collection="produtos",
            key="produto",
            plan=PRODUCT_WRITE_PLAN,
            result_plan=PRODUCT_RESULT_PLAN,
        )

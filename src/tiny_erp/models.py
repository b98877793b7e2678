from __future__ import annotations

from typing import Annotated, Any, Dict, Generic, List, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

T = TypeVar("T")


class TinyRecord(BaseModel):
    """
    Base for Tiny records.
    Only identity and nested-collection fields are declared; every other
    provider field is kept as an extra so nothing is lost on the way through.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class ErrorDetail(BaseModel):
    erro: str = ""

    model_config = ConfigDict(extra="ignore")


# --- Pagination ---


class Page(BaseModel, Generic[T]):
    items: List[T] = Field(default_factory=list)
    page: int = 1
    total_pages: int = 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


# --- Account ---


class AccountDetails(TinyRecord):
    razao_social: Optional[str] = None
    cnpj_cpf: Optional[str] = None
    fantasia: Optional[str] = None
    email: Optional[str] = None
    regime_tributario: Optional[str] = None


# --- Contacts ---


class Contact(TinyRecord):
    id: Optional[int] = None
    codigo: Optional[str] = None
    nome: Optional[str] = None
    cpf_cnpj: Optional[str] = None
    situacao: Optional[str] = None


class ContactPerson(TinyRecord):
    id_pessoa: Optional[int] = None
    nome: Optional[str] = None
    email: Optional[str] = None


class ContactDetails(Contact):
    tipos_contato: List[str] = Field(default_factory=list)
    pessoas_contato: List[ContactPerson] = Field(default_factory=list)


class ContactInput(TinyRecord):
    nome: Optional[str] = None
    situacao: Optional[str] = None
    id: Optional[int] = None
    codigo: Optional[str] = None
    tipos_contato: List[str] = Field(default_factory=list)
    pessoas_contato: List[ContactPerson] = Field(default_factory=list)


class ContactSearchFilters(BaseModel):
    document: Optional[str] = Field(default=None, alias="cpf_cnpj")
    situation: Optional[Literal["Ativo", "Excluido"]] = Field(
        default=None, alias="situacao"
    )
    salesperson_id: Optional[int] = Field(default=None, alias="idVendedor")
    salesperson_name: Optional[str] = Field(default=None, alias="nomeVendedor")
    created_at: Optional[str] = Field(default=None, alias="dataCriacao")
    updated_since: Optional[str] = Field(default=None, alias="dataMinimaAtualizacao")
    page: Optional[int] = Field(default=None, alias="pagina", ge=1)

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


# --- Products ---


class Product(TinyRecord):
    id: Optional[int] = None
    nome: Optional[str] = None
    codigo: Optional[str] = None
    preco: Optional[float] = None
    situacao: Optional[str] = None


class ExternalImage(TinyRecord):
    url: Optional[str] = None


class KitItem(TinyRecord):
    id_produto: Optional[int] = None
    quantidade: Optional[float] = None


class StructureItem(TinyRecord):
    id_produto: Optional[int] = None
    codigo: Optional[str] = None
    descricao: Optional[str] = None
    quantidade: Optional[float] = None


class ProductionStage(TinyRecord):
    nome: Optional[str] = None


class ProductMapping(TinyRecord):
    idEcommerce: Optional[int] = None
    skuMapeamento: Optional[str] = None
    idMapeamento: Optional[int] = None


class ProductVariation(TinyRecord):
    id: Optional[int] = None
    codigo: Optional[str] = None
    grade: Dict[str, str] = Field(default_factory=dict)
    mapeamentos: List[ProductMapping] = Field(default_factory=list)

    @field_validator("grade", mode="before")
    @classmethod
    def _empty_grade(cls, value: Any) -> Any:
        # PHP encodes an empty map as []
        return {} if value == [] else value


class ProductDetails(Product):
    anexos: List[Any] = Field(default_factory=list)
    imagens_externas: List[ExternalImage] = Field(default_factory=list)
    kit: List[KitItem] = Field(default_factory=list)
    mapeamentos: List[ProductMapping] = Field(default_factory=list)
    variacoes: List[ProductVariation] = Field(default_factory=list)


class ProductInput(TinyRecord):
    nome: Optional[str] = None
    anexos: List[Any] = Field(default_factory=list)
    imagens_externas: List[ExternalImage] = Field(default_factory=list)
    kit: List[KitItem] = Field(default_factory=list)
    estrutura: List[StructureItem] = Field(default_factory=list)
    etapas: List[ProductionStage] = Field(default_factory=list)
    variacoes: List[ProductVariation] = Field(default_factory=list)
    mapeamentos: List[ProductMapping] = Field(default_factory=list)


class ProductSearchFilters(BaseModel):
    situation: Optional[Literal["A", "I", "E"]] = Field(default=None, alias="situacao")
    tag_id: Optional[int] = Field(default=None, alias="idTag")
    price_list_id: Optional[int] = Field(default=None, alias="idListaPreco")
    gtin: Optional[str] = None
    created_at: Optional[str] = Field(default=None, alias="dataCriacao")
    page: Optional[int] = Field(default=None, alias="pagina", ge=1)

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


# --- Batch writes ---


class BatchEntry(BaseModel):
    """One record of a batch write, correlated by ``sequence``."""

    sequence: int = Field(alias="sequencia")
    data: Dict[str, Any]

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("data", mode="before")
    @classmethod
    def _dump_input_model(cls, value: Any) -> Any:
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json", exclude_none=True, by_alias=True)
        return value


class CreatedVariation(TinyRecord):
    id: Optional[int] = None


class BatchSuccess(TinyRecord):
    sequence: int = Field(alias="sequencia")
    status: Literal["OK"]
    id: Optional[int] = None
    variacoes: List[CreatedVariation] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return True

    @property
    def variation_ids(self) -> List[int]:
        return [v.id for v in self.variacoes if v.id is not None]


class BatchFailure(TinyRecord):
    sequence: int = Field(alias="sequencia")
    status: Literal["Erro"]
    codigo_erro: Optional[int] = None
    erros: List[ErrorDetail] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return False

    @property
    def messages(self) -> List[str]:
        return [e.erro for e in self.erros]


BatchResult = Annotated[Union[BatchSuccess, BatchFailure], Field(discriminator="status")]

batch_results_adapter: TypeAdapter[List[BatchResult]] = TypeAdapter(List[BatchResult])

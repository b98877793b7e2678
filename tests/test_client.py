import logging
from urllib.parse import parse_qs

import httpx
import pytest
import respx
from httpx import Response
from tiny_erp.client import (
    TinyApiError,
    TinyClient,
    TinyConfigurationError,
    TinyParseError,
    TinyTransportError,
)

BASE = "https://api.tiny.com.br/api2"
TOKEN = "test_token_123"

ERROR_ENVELOPE = {
    "retorno": {
        "status_processamento": 2,
        "status": "Erro",
        "codigo_erro": 32,
        "erros": [{"erro": "Token inválido ou expirado"}],
    }
}


@pytest.fixture
def client():
    return TinyClient(token=TOKEN)


@pytest.mark.parametrize("token", ["", "   ", None])
def test_missing_token_fails_at_construction(token):
    with pytest.raises(TinyConfigurationError):
        TinyClient(token=token)


def test_configuration_error_is_a_value_error():
    with pytest.raises(ValueError):
        TinyClient(token="")


@pytest.mark.asyncio
@respx.mock
async def test_get_strips_envelope(client):
    respx.get(f"{BASE}/info.php").mock(
        return_value=Response(
            200,
            json={"retorno": {"status_processamento": 3, "status": "OK", "conta": {}}},
        )
    )

    async with client:
        data = await client.get("/info.php")

    assert data == {"status_processamento": 3, "status": "OK", "conta": {}}


@pytest.mark.asyncio
@respx.mock
async def test_query_has_token_format_then_params_in_order(client):
    route = respx.get(f"{BASE}/produtos.pesquisa.php").mock(
        return_value=Response(200, json={"retorno": {"status": "OK"}})
    )

    async with client:
        await client.get(
            "/produtos.pesquisa.php",
            params={"pesquisa": "mouse", "situacao": "A", "pagina": 2},
        )

    request = route.calls[0].request
    assert request.url.query.decode() == (
        f"token={TOKEN}&formato=json&pesquisa=mouse&situacao=A&pagina=2"
    )
    assert request.url.params.multi_items() == [
        ("token", TOKEN),
        ("formato", "json"),
        ("pesquisa", "mouse"),
        ("situacao", "A"),
        ("pagina", "2"),
    ]


@pytest.mark.asyncio
@respx.mock
async def test_post_sends_form_encoded_fields(client):
    route = respx.post(f"{BASE}/contato.incluir.php").mock(
        return_value=Response(200, json={"retorno": {"status": "OK", "registros": []}})
    )

    async with client:
        await client.post("/contato.incluir.php", data={"contato": '{"contatos": []}'})

    request = route.calls[0].request
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert parse_qs(request.content.decode()) == {"contato": ['{"contatos": []}']}
    assert request.url.params["token"] == TOKEN
    assert request.url.params["formato"] == "json"


@pytest.mark.asyncio
@respx.mock
async def test_business_error_on_http_200_raises_api_error(client):
    respx.get(f"{BASE}/info.php").mock(return_value=Response(200, json=ERROR_ENVELOPE))

    async with client:
        with pytest.raises(TinyApiError) as exc:
            await client.get("/info.php")

    err = exc.value
    assert err.code == 32
    assert err.processing_status == 2
    assert err.message == "Token inválido ou expirado"
    assert str(err) == "Token inválido ou expirado"
    assert err.errors == ["Token inválido ou expirado"]
    assert err.response_json == ERROR_ENVELOPE["retorno"]


@pytest.mark.asyncio
@respx.mock
async def test_api_error_without_messages_uses_fallback(client):
    respx.get(f"{BASE}/info.php").mock(
        return_value=Response(
            200, json={"retorno": {"status": "Erro", "codigo_erro": 99, "erros": []}}
        )
    )

    async with client:
        with pytest.raises(TinyApiError) as exc:
            await client.get("/info.php")

    assert exc.value.message == "Unknown Tiny API error."
    assert exc.value.errors == []
    assert exc.value.code == 99


@pytest.mark.asyncio
@respx.mock
async def test_ok_payload_on_http_500_is_still_success(client):
    respx.get(f"{BASE}/info.php").mock(
        return_value=Response(500, json={"retorno": {"status": "OK", "conta": {}}})
    )

    async with client:
        data = await client.get("/info.php")

    assert data["status"] == "OK"


@pytest.mark.asyncio
@respx.mock
async def test_non_json_response_raises_parse_error(client):
    respx.get(f"{BASE}/info.php").mock(
        return_value=Response(502, text="<html>Bad Gateway</html>")
    )

    async with client:
        with pytest.raises(TinyParseError) as exc:
            await client.get("/info.php")

    assert exc.value.status_code == 502
    assert "Expected JSON" in str(exc.value)


@pytest.mark.asyncio
@respx.mock
async def test_json_without_envelope_raises_parse_error(client):
    respx.get(f"{BASE}/info.php").mock(return_value=Response(200, json={"foo": 1}))

    async with client:
        with pytest.raises(TinyParseError) as exc:
            await client.get("/info.php")

    assert exc.value.status_code == 200


@pytest.mark.asyncio
@respx.mock
async def test_connect_error_raises_transport_error(client):
    respx.get(f"{BASE}/info.php").mock(side_effect=httpx.ConnectError("boom"))

    async with client:
        with pytest.raises(TinyTransportError) as exc:
            await client.get("/info.php")

    assert isinstance(exc.value.__cause__, httpx.ConnectError)
    assert not isinstance(exc.value, TinyApiError)


@pytest.mark.asyncio
@respx.mock
async def test_timeout_is_single_attempt(client):
    route = respx.get(f"{BASE}/info.php").mock(
        side_effect=httpx.ConnectTimeout("slow")
    )

    async with client:
        with pytest.raises(TinyTransportError):
            await client.get("/info.php")

    assert route.call_count == 1


@pytest.mark.asyncio
@respx.mock
async def test_caller_owned_http_client_is_not_closed():
    respx.get(f"{BASE}/info.php").mock(
        return_value=Response(200, json={"retorno": {"status": "OK"}})
    )
    http = httpx.AsyncClient(timeout=5.0)

    async with TinyClient(token=TOKEN, http=http) as client:
        await client.get("/info.php")

    assert not http.is_closed
    await http.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_request_log_omits_token(client, caplog):
    respx.get(f"{BASE}/info.php").mock(
        return_value=Response(200, json={"retorno": {"status": "OK"}})
    )

    with caplog.at_level(logging.DEBUG, logger="tiny_erp.client"):
        async with client:
            await client.get("/info.php", resource="account")

    record = next(r for r in caplog.records if r.getMessage() == "tiny.request")
    assert record.endpoint == "/info.php"
    assert record.resource == "account"
    assert record.status == 200
    assert record.duration_ms >= 0
    assert all(TOKEN not in str(v) for v in record.__dict__.values())

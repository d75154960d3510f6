import asyncio

import httpx
import pytest

from roots.metadata import extract_metadata, fetch_metadata, proxy_request_url


TARGET = "https://recipes.example.com/jollof"

PROXIES = [
    "https://first-proxy.test/?{url}",
    "https://second-proxy.test/raw?url={url}",
]

PAGE = """<html><head>
<title>Fallback Title</title>
<meta property="og:title" content="Smoky Jollof Rice">
<meta name="description" content="Party-style jollof.">
<meta property="og:image" content="/img/jollof.jpg">
<meta name="twitter:image" content="javascript:alert(1)">
<link rel="shortcut icon" href="/favicon-32.png">
<link rel="apple-touch-icon" href="https://cdn.example.com/touch.png">
<link rel="stylesheet" href="/site.css">
</head><body><img src="/inline.jpg"></body></html>"""


def html_response(body: str = PAGE) -> httpx.Response:
    return httpx.Response(200, text=body, headers={"content-type": "text/html; charset=utf-8"})


def mock_client(handlers: dict) -> tuple[httpx.AsyncClient, list[str]]:
    """Route requests by proxy host; records which hosts were hit"""
    hits = []

    async def handler(request: httpx.Request):
        hits.append(request.url.host)
        respond = handlers[request.url.host]
        result = respond(request)
        if asyncio.iscoroutine(result):
            result = await result
        return result

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), hits


async def hang(request):
    await asyncio.sleep(5)
    return html_response()


def refuse(request):
    raise httpx.ConnectError("connection refused", request=request)


def test_proxy_request_url_encodes_target():
    url = proxy_request_url("https://corsproxy.io/?{url}", "https://x.com/a?b=1&c=2")
    assert url == "https://corsproxy.io/?https%3A%2F%2Fx.com%2Fa%3Fb%3D1%26c%3D2"


def test_extract_metadata_prefers_open_graph():
    metadata = extract_metadata(PAGE, TARGET)

    assert metadata.url == TARGET
    assert metadata.title == "Smoky Jollof Rice"
    assert metadata.description == "Party-style jollof."
    assert metadata.images == ["https://recipes.example.com/img/jollof.jpg"]
    assert metadata.favicons == [
        "https://recipes.example.com/favicon-32.png",
        "https://cdn.example.com/touch.png",
    ]


def test_extract_metadata_falls_back_to_title_tag_and_page_images():
    html = "<html><head><title> Plain Page </title></head><body><img src='a.png'><img src='data:image/png;base64,xx'></body></html>"

    metadata = extract_metadata(html, "https://site.example/dir/page")

    assert metadata.title == "Plain Page"
    assert metadata.description is None
    assert metadata.images == ["https://site.example/dir/a.png"]
    assert metadata.favicons == ["https://site.example/favicon.ico"]


def test_extract_metadata_without_title():
    metadata = extract_metadata("<html><body>No head here</body></html>", TARGET)
    assert metadata.title is None


@pytest.mark.asyncio
async def test_first_proxy_success_skips_the_rest():
    client, hits = mock_client({
        "first-proxy.test": lambda r: html_response(),
        "second-proxy.test": lambda r: html_response(),
    })

    async with client:
        metadata = await fetch_metadata(TARGET, proxies=PROXIES, client=client)

    assert metadata.title == "Smoky Jollof Rice"
    assert hits == ["first-proxy.test"]


@pytest.mark.asyncio
async def test_timeout_on_first_proxy_falls_back_to_second():
    second_page = PAGE.replace("Smoky Jollof Rice", "From Second Proxy")
    client, hits = mock_client({
        "first-proxy.test": hang,
        "second-proxy.test": lambda r: html_response(second_page),
    })

    async with client:
        metadata = await fetch_metadata(TARGET, proxies=PROXIES, timeout=0.05, client=client)

    assert metadata is not None
    assert metadata.title == "From Second Proxy"
    assert metadata.url == TARGET
    assert hits == ["first-proxy.test", "second-proxy.test"]


@pytest.mark.asyncio
async def test_all_proxies_failing_returns_none():
    client, hits = mock_client({
        "first-proxy.test": hang,
        "second-proxy.test": refuse,
    })

    async with client:
        metadata = await fetch_metadata(TARGET, proxies=PROXIES, timeout=0.05, client=client)

    assert metadata is None
    assert hits == ["first-proxy.test", "second-proxy.test"]


@pytest.mark.asyncio
async def test_error_status_moves_to_next_proxy():
    client, hits = mock_client({
        "first-proxy.test": lambda r: httpx.Response(502, text="bad gateway"),
        "second-proxy.test": lambda r: html_response(),
    })

    async with client:
        metadata = await fetch_metadata(TARGET, proxies=PROXIES, client=client)

    assert metadata.title == "Smoky Jollof Rice"


@pytest.mark.asyncio
async def test_page_without_title_moves_to_next_proxy():
    client, hits = mock_client({
        "first-proxy.test": lambda r: html_response("<html><body>captcha</body></html>"),
        "second-proxy.test": lambda r: html_response(),
    })

    async with client:
        metadata = await fetch_metadata(TARGET, proxies=PROXIES, client=client)

    assert metadata.title == "Smoky Jollof Rice"
    assert hits == ["first-proxy.test", "second-proxy.test"]


@pytest.mark.asyncio
async def test_non_html_response_is_not_usable():
    client, hits = mock_client({
        "first-proxy.test": lambda r: httpx.Response(
            200, content=b"\x89PNG", headers={"content-type": "image/png"}
        ),
        "second-proxy.test": lambda r: httpx.Response(
            200, json={"error": "blocked"}
        ),
    })

    async with client:
        metadata = await fetch_metadata(TARGET, proxies=PROXIES, client=client)

    assert metadata is None


@pytest.mark.asyncio
async def test_proxied_request_carries_user_agent_and_target():
    seen = []

    def capture(request):
        seen.append(request)
        return html_response()

    client, _ = mock_client({"first-proxy.test": capture})

    async with client:
        await fetch_metadata(TARGET, proxies=PROXIES[:1], client=client)

    (request,) = seen
    assert "Googlebot" in request.headers["user-agent"]
    assert "recipes.example.com" in str(request.url)


@pytest.mark.asyncio
async def test_invalid_target_url_is_not_fetched():
    client, hits = mock_client({})

    async with client:
        assert await fetch_metadata("not a url", proxies=PROXIES, client=client) is None

    assert hits == []

from __future__ import annotations

import base64
from typing import Callable, Iterator

import httpx
import pytest

from typst_pdf_client.gateway.client import Client
from typst_pdf_client.gateway.options import Option, with_transport

GATEWAY = "https://faas.example.com/function/typst"
PDF_BYTES = b"%PDF"
PDF_B64 = base64.b64encode(PDF_BYTES).decode("ascii")

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingGateway:
    """Fake gateway: records every request and answers with ``handler``."""

    def __init__(self, handler: Handler) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        return self.handler(request)


def ok_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"error": False, "pdf": PDF_B64, "stdout": "compiled"})


@pytest.fixture
def make_client() -> Iterator[Callable[..., tuple[Client, RecordingGateway]]]:
    clients: list[Client] = []

    def factory(handler: Handler = ok_handler, *options: Option) -> tuple[Client, RecordingGateway]:
        gateway = RecordingGateway(handler)
        client = Client("secret-key", GATEWAY, with_transport(httpx.MockTransport(gateway)), *options)
        clients.append(client)
        return client, gateway

    yield factory
    for client in clients:
        client.close()

"""HTTP client for the Typst PDF generation gateway.

One call is one POST to the gateway:
- request: {"content", "template" (base64), "options", "media" {name: base64}}
- response: {"error", "message", "pdf" (base64), "stdout", "stderr"}

Every error raised by a call carries the ``ResponseInfo`` gathered so far,
so the correlation id and renderer output survive failures.
"""
from __future__ import annotations
import base64
import logging
import os
import time
from pathlib import Path
from typing import BinaryIO

import httpx
from pydantic import ValidationError

from typst_pdf_client.common.context import (
    RequestContext,
    correlation_id_from,
    new_correlation_id,
    remaining,
)
from typst_pdf_client.common.errors import (
    ConnectionFailureError,
    GenerationFailureError,
    InvalidConfigurationError,
    OutputFileError,
    PDFDecodeError,
    PDFWriteError,
    RemoteRejectionError,
    TemplateNotFoundError,
    TemplateReadError,
    truncate_body,
)
from typst_pdf_client.common.schema import (
    GenerationRequest,
    GenerationResponse,
    MediaFile,
    ResponseInfo,
)
from typst_pdf_client.common.settings import Settings
from typst_pdf_client.gateway.options import (
    ClientBuilder,
    Option,
    phase_timeout,
    with_insecure_skip_verify,
    with_timeout,
)

LOGGER = logging.getLogger("typst_pdf.gateway.client")

CORRELATION_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"

class Client:
    """
    Gateway client. Immutable after construction and safe to share between threads.

    Args:
        auth_key: Credential sent verbatim in the Authorization header.
        gateway: Absolute http(s) URL of the generation function.
        *options: Construction options, applied in order (see ``options``).
    """

    def __init__(self, auth_key: str, gateway: str, *options: Option) -> None:
        if not auth_key:
            raise InvalidConfigurationError("auth key cannot be empty")
        if not gateway:
            raise InvalidConfigurationError("FaaS gateway cannot be empty")
        self._auth_key = auth_key
        self._gateway = _parse_gateway(gateway)

        builder = ClientBuilder()
        for option in options:
            try:
                option(builder)
            except Exception:
                builder.discard()
                raise
        self._timeout = builder.timeout
        self._http = builder.build()

    @property
    def gateway(self) -> httpx.URL:
        return self._gateway

    @property
    def timeout(self) -> float | None:
        return self._timeout

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def convert(
        self,
        ctx: RequestContext | None,
        sink: BinaryIO,
        content: str,
        template_data: bytes,
        options: list[str] | None = None,
        media: list[MediaFile] | None = None,
    ) -> ResponseInfo:
        """
        Send one generation request and write the resulting PDF to ``sink``.

        Args:
            ctx: Request context (correlation id, deadline). ``None`` for none.
            sink: Binary writable receiving the decoded PDF.
            content: Content string forwarded to the renderer; may be empty.
            template_data: Raw template bytes.
            options: Renderer options, forwarded in order.
            media: Auxiliary files bundled with the request.

        Returns:
            ResponseInfo with the correlation id in effect and renderer output.
        """
        correlation_id = correlation_id_from(ctx) or new_correlation_id()
        info = ResponseInfo(correlation_id=correlation_id)

        try:
            payload = GenerationRequest.build(content, template_data, options, media).model_dump_json()
        except (TypeError, ValueError) as e:
            raise ConnectionFailureError("failed to encode request", e, info) from e

        budget = self._call_budget(ctx, info)
        deadline = None if budget is None else time.monotonic() + budget
        headers = {
            "Content-Type": "application/json",
            "Authorization": self._auth_key,
            CORRELATION_HEADER: correlation_id,
        }
        LOGGER.debug(
            "POST %s (correlation_id=%s, %d bytes, %d media)",
            self._gateway, correlation_id, len(payload), len(media or []),
        )

        start = time.time()
        try:
            request = self._http.build_request(
                "POST", self._gateway, content=payload.encode("utf-8"), headers=headers,
                timeout=phase_timeout(budget),
            )
            response = self._http.send(request, stream=True)
        except (httpx.HTTPError, ValueError) as e:
            LOGGER.error("Gateway request failed (correlation_id=%s): %s", correlation_id, e)
            raise ConnectionFailureError(cause=e, response_info=info) from e

        try:
            server_id = _correlation_id_from_response(response)
            if server_id:
                if server_id != correlation_id:
                    LOGGER.debug("Gateway replaced correlation id %s with %s", correlation_id, server_id)
                correlation_id = server_id
                info.correlation_id = server_id
            body = _read_body(response, deadline, budget, info)
        finally:
            response.close()

        # Parse before looking at the status so renderer output reaches the
        # caller on every path. The authoritative parse happens below.
        parsed = GenerationResponse.salvage(body)
        info.stdout = parsed.stdout
        info.stderr = parsed.stderr

        if response.status_code != httpx.codes.OK:
            text = parsed.message.strip() or body.decode("utf-8", errors="replace").strip()
            LOGGER.warning(
                "Gateway rejected request with HTTP %s (correlation_id=%s)",
                response.status_code, correlation_id,
            )
            raise RemoteRejectionError(
                response.status_code,
                response.reason_phrase,
                truncate_body(text) if text else None,
                correlation_id,
                info,
            )

        try:
            parsed = GenerationResponse.parse(body)
        except ValidationError as e:
            raise ConnectionFailureError("malformed gateway response", e, info) from e
        info.stdout = parsed.stdout
        info.stderr = parsed.stderr

        if parsed.error:
            message = parsed.message or "Unknown error"
            LOGGER.warning("PDF not generated (correlation_id=%s): %s", correlation_id, message)
            raise GenerationFailureError(message, correlation_id, info)
        if not parsed.pdf:
            raise GenerationFailureError("No PDF data in response", correlation_id, info)

        try:
            pdf = base64.b64decode(parsed.pdf, validate=True)
        except ValueError as e:
            raise PDFDecodeError(f"failed to decode PDF data: {e}", info) from e

        try:
            _write_all(sink, pdf)
        except (OSError, ValueError) as e:
            raise PDFWriteError(f"failed to write PDF data: {e}", info) from e

        latency_ms = int((time.time() - start) * 1000)
        LOGGER.info("PDF generated: %d bytes in %sms (correlation_id=%s)", len(pdf), latency_ms, correlation_id)
        return info

    def generate_pdf_from_file(
        self,
        ctx: RequestContext | None,
        sink: BinaryIO,
        content: str,
        template_path: str | os.PathLike[str],
        options: list[str] | None = None,
        media: list[MediaFile] | None = None,
    ) -> ResponseInfo:
        """Read the template from ``template_path`` and stream the PDF to ``sink``."""
        template_data = _read_template(template_path)
        return self.convert(ctx, sink, content, template_data, options, media)

    def generate_pdf_from_string(
        self,
        ctx: RequestContext | None,
        sink: BinaryIO,
        content: str,
        template: str,
        options: list[str] | None = None,
        media: list[MediaFile] | None = None,
    ) -> ResponseInfo:
        """Send ``template`` source text and stream the PDF to ``sink``."""
        return self.convert(ctx, sink, content, template.encode("utf-8"), options, media)

    def save_pdf(
        self,
        ctx: RequestContext | None,
        content: str,
        template_path: str | os.PathLike[str],
        output_path: str | os.PathLike[str],
        options: list[str] | None = None,
        media: list[MediaFile] | None = None,
    ) -> ResponseInfo:
        """
        Render ``template_path`` into ``output_path``.

        The output file is removed again if anything fails after it was
        created, so a failed call never leaves a partial PDF behind.
        """
        template_data = _read_template(template_path)
        try:
            out = open(output_path, "wb")
        except OSError as e:
            raise OutputFileError(f"failed to create output file: {e}", ResponseInfo()) from e

        try:
            info = self.convert(ctx, out, content, template_data, options, media)
        except BaseException:
            try:
                out.close()
            except OSError as close_err:
                LOGGER.warning("Could not close %s after failed conversion: %s", output_path, close_err)
            _remove_output(output_path)
            raise

        try:
            out.close()
        except OSError as e:
            _remove_output(output_path)
            raise OutputFileError(f"failed to close output file: {e}", info) from e
        return info

    def _call_budget(self, ctx: RequestContext | None, info: ResponseInfo) -> float | None:
        """Seconds allowed for the whole call: client timeout, shortened to the context deadline."""
        overall = self._timeout
        left = remaining(ctx)
        if left is not None:
            if left <= 0:
                raise ConnectionFailureError("context deadline exceeded", response_info=info)
            overall = left if overall is None else min(overall, left)
        return overall

def _parse_gateway(gateway: str) -> httpx.URL:
    try:
        url = httpx.URL(gateway)
    except httpx.InvalidURL as e:
        raise InvalidConfigurationError(f"invalid gateway URL: {e}") from e
    if not url.scheme:
        raise InvalidConfigurationError(f"invalid gateway URL: {gateway!r} is not absolute")
    if url.scheme not in ("http", "https"):
        raise ConnectionFailureError("invalid endpoint scheme: expected http or https")
    if not url.host:
        raise InvalidConfigurationError(f"invalid gateway URL: {gateway!r} has no host")
    return url

def _correlation_id_from_response(response: httpx.Response) -> str:
    for header in (CORRELATION_HEADER, REQUEST_ID_HEADER):
        value = response.headers.get(header, "").strip()
        if value:
            return value
    return ""

def _read_template(path: str | os.PathLike[str]) -> bytes:
    try:
        return Path(path).read_bytes()
    except FileNotFoundError as e:
        raise TemplateNotFoundError(str(path)) from e
    except OSError as e:
        raise TemplateReadError(f"failed to read template file: {e}", ResponseInfo()) from e

def _write_all(sink: BinaryIO, data: bytes) -> None:
    written = 0
    while written < len(data):
        n = sink.write(data[written:])
        if n is None:
            # writer does not report counts; it consumed everything
            return
        if n <= 0:
            raise OSError("sink accepted no bytes")
        written += n

def _remove_output(path: str | os.PathLike[str]) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        LOGGER.warning("Could not remove partial output %s: %s", path, e)

def client_from_settings(settings: Settings, *extra: Option) -> Client:
    """Build a client from loaded settings; ``extra`` options are applied last."""
    opts: list[Option] = [with_timeout(settings.timeout)]
    if settings.insecure_skip_verify:
        opts.append(with_insecure_skip_verify())
    opts.extend(extra)
    return Client(settings.auth_key, settings.endpoint, *opts)

def _read_body(
    response: httpx.Response,
    deadline: float | None,
    budget: float | None,
    info: ResponseInfo,
) -> bytes:
    """Drain the response, aborting once the call deadline has passed."""
    chunks = []
    try:
        for chunk in response.iter_bytes():
            chunks.append(chunk)
            if deadline is not None and time.monotonic() > deadline:
                raise ConnectionFailureError(f"timeout: call exceeded {budget:g}s", response_info=info)
    except httpx.HTTPError as e:
        raise ConnectionFailureError("failed to read response body", e, info) from e
    if deadline is not None and time.monotonic() > deadline:
        raise ConnectionFailureError(f"timeout: call exceeded {budget:g}s", response_info=info)
    return b"".join(chunks)

"""
Typst PDF gateway client.

Provides:
- A thread-safe HTTP client that sends Typst templates to a FaaS gateway
  and streams back the generated PDF
- Correlation-id propagation through an explicit request context
- Classified errors for configuration, connection, HTTP and generation failures
"""
from typst_pdf_client.common.context import (
    BACKGROUND,
    RequestContext,
    correlation_id_from,
    with_correlation_id,
    with_timeout,
)
from typst_pdf_client.common.errors import (
    ConnectionFailureError,
    ErrorKind,
    GenerationFailureError,
    InvalidConfigurationError,
    RemoteRejectionError,
    TemplateNotFoundError,
    TypstPDFError,
)
from typst_pdf_client.common.schema import MediaFile, ResponseInfo
from typst_pdf_client.gateway.client import Client
from typst_pdf_client.gateway.options import with_insecure_skip_verify, with_transport
from typst_pdf_client.gateway.options import with_timeout as with_client_timeout

__all__ = [
    "BACKGROUND",
    "Client",
    "ConnectionFailureError",
    "ErrorKind",
    "GenerationFailureError",
    "InvalidConfigurationError",
    "MediaFile",
    "RemoteRejectionError",
    "RequestContext",
    "ResponseInfo",
    "TemplateNotFoundError",
    "TypstPDFError",
    "correlation_id_from",
    "with_client_timeout",
    "with_correlation_id",
    "with_insecure_skip_verify",
    "with_timeout",
    "with_transport",
]

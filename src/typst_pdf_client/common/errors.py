"""Exceptions raised by the gateway client.

Four kinds cover the exchange with the gateway (configuration, connection,
HTTP rejection, generation failure). Template, decode and output-file
problems are reported with their own exception types under ``ErrorKind.OTHER``.
Branch on the exception class or on ``error.kind``, never on the message.
"""
from __future__ import annotations
import enum

from typst_pdf_client.common.schema import ResponseInfo

BODY_LIMIT = 1024

class ErrorKind(str, enum.Enum):
    INVALID_CONFIGURATION = "invalid_configuration"
    CONNECTION_FAILURE = "connection_failure"
    REMOTE_REJECTION = "remote_rejection"
    GENERATION_FAILURE = "generation_failure"
    OTHER = "other"

class TypstPDFError(Exception):
    """Base class for all client errors.

    ``response_info`` holds the diagnostics gathered before the failure
    (correlation id, and stdout/stderr if the gateway answered).
    """
    kind: ErrorKind = ErrorKind.OTHER

    def __init__(self, message: str, response_info: ResponseInfo | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.response_info = response_info

class InvalidConfigurationError(TypstPDFError):
    """Client construction was given an unusable argument or option."""
    kind = ErrorKind.INVALID_CONFIGURATION

class ConnectionFailureError(TypstPDFError):
    """Network-level failure: transport, timeout, body read or (de)serialization."""
    kind = ErrorKind.CONNECTION_FAILURE

    def __init__(
        self,
        message: str = "",
        cause: BaseException | None = None,
        response_info: ResponseInfo | None = None,
    ) -> None:
        self.cause = cause
        super().__init__(_connection_text(message, cause), response_info)
        self.message = message

class RemoteRejectionError(TypstPDFError):
    """The gateway answered with a non-success HTTP status."""
    kind = ErrorKind.REMOTE_REJECTION

    def __init__(
        self,
        status_code: int,
        status: str,
        body: str | None = None,
        correlation_id: str = "",
        response_info: ResponseInfo | None = None,
    ) -> None:
        self.status_code = status_code
        self.status = status
        self.body = body
        self.correlation_id = correlation_id
        text = f"HTTP {status_code}: {status}"
        if body:
            text += f": {body}"
        if correlation_id:
            text += f" (correlation_id={correlation_id})"
        super().__init__(text, response_info)

class GenerationFailureError(TypstPDFError):
    """The gateway answered 200 but did not produce a PDF."""
    kind = ErrorKind.GENERATION_FAILURE

    def __init__(
        self,
        message: str,
        correlation_id: str = "",
        response_info: ResponseInfo | None = None,
    ) -> None:
        self.correlation_id = correlation_id
        text = f"TypstPDF.NotGenerated '{message}'"
        if correlation_id:
            text += f" (correlation_id={correlation_id})"
        super().__init__(text, response_info)
        self.message = message

class TemplateReadError(TypstPDFError):
    """The template file could not be read."""

class TemplateNotFoundError(TemplateReadError, FileNotFoundError):
    """The template file does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"template file not found: {path}", ResponseInfo())
        self.path = path

class PDFDecodeError(TypstPDFError):
    """The PDF payload was not valid base64."""

class PDFWriteError(TypstPDFError):
    """Writing the decoded PDF to the sink failed."""

class OutputFileError(TypstPDFError):
    """The output file could not be created or closed."""

def truncate_body(text: str, limit: int = BODY_LIMIT) -> str:
    """Cap diagnostic text at ``limit`` characters, marking the cut with '...'."""
    if len(text) > limit:
        return text[:limit] + "..."
    return text

def _connection_text(message: str, cause: BaseException | None) -> str:
    if message and cause is not None:
        return f"connection error: {message}: {cause}"
    if message:
        return f"connection error: {message}"
    if cause is not None:
        return f"connection error: {cause}"
    return "connection error"

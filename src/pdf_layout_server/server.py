"""FastAPI REST API converting PDFs into HTML email messages."""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .layout import DecodeError, LayoutConfig
from .logger import logger
from .packaging import (
    ConversionResult,
    PackagingError,
    SignatureStore,
    convert_pdf,
    resolve_file_name_collisions,
)

# Maximum file size for uploads (50MB)
MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", 50 * 1024 * 1024))
# Maximum number of PDFs per batch conversion
MAX_FILES = int(os.getenv("MAX_FILES", 20))


# --- Request/Response Models ---


class ConversionResponse(BaseModel):
    original_name: str
    recipient: str
    to_email: str
    subject: str
    file_name: str
    diagnostics: str
    body_html: str
    eml: str


class BatchItemResponse(BaseModel):
    original_name: str
    conversion: ConversionResponse | None = None
    error: str | None = None


class BatchConversionResponse(BaseModel):
    results: list[BatchItemResponse]
    successful: int
    failed: int


class SignatureResponse(BaseModel):
    id: str
    label: str


class HealthResponse(BaseModel):
    status: str
    checks: dict[str, bool] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    code: str
    message: str


# --- App State ---

signatures = SignatureStore()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load application-wide signature templates once per process."""
    global signatures

    logger.info("starting server")
    signatures = SignatureStore(os.getenv("SIGNATURES_DIR"))
    signatures.load()

    yield

    logger.info("server shutdown")


app = FastAPI(
    title="PDF Layout API",
    description="Reconstructs PDF paragraphs and tables into HTML email messages",
    version="0.1.0",
    lifespan=lifespan,
)


# --- Exception Handlers ---


@app.exception_handler(DecodeError)
async def decode_error_handler(request, exc: DecodeError):
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(code="DECODE_FAILED", message=str(exc)).model_dump(),
    )


@app.exception_handler(PackagingError)
async def packaging_error_handler(request, exc: PackagingError):
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(code="INVALID_INPUT", message=str(exc)).model_dump(),
    )


@app.exception_handler(FileNotFoundError)
async def file_not_found_handler(request, exc: FileNotFoundError):
    return JSONResponse(
        status_code=404,
        content=ErrorResponse(code="FILE_NOT_FOUND", message=str(exc)).model_dump(),
    )


# --- Helpers ---


def _read_pdf_upload(file: UploadFile) -> bytes:
    """Read an upload, enforcing extension, size limit and PDF header."""
    file_name = file.filename or "unknown.pdf"
    if not file_name.lower().endswith(".pdf"):
        raise PackagingError("Only PDF files are supported")

    data = file.file.read(MAX_UPLOAD_SIZE + 1)
    if len(data) > MAX_UPLOAD_SIZE:
        raise PackagingError(
            f"File too large. Maximum size is {MAX_UPLOAD_SIZE // (1024 * 1024)}MB"
        )
    if not data.startswith(b"%PDF-"):
        raise PackagingError("Invalid PDF file. File does not have valid PDF header.")
    return data


def _to_response(result: ConversionResult, file_name: str) -> ConversionResponse:
    return ConversionResponse(
        original_name=result.original_name,
        recipient=result.recipient,
        to_email=result.to_email,
        subject=result.subject,
        file_name=file_name,
        diagnostics=result.diagnostics,
        body_html=result.body_html,
        eml=result.eml,
    )


def _signature(signature_id: str | None) -> str | None:
    if signature_id and signatures.get(signature_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown signature: {signature_id}")
    return signatures.get(signature_id)


# --- Health Endpoints ---


@app.get("/health", response_model=HealthResponse)
def health():
    """Liveness check."""
    return HealthResponse(status="healthy")


# --- Conversion Endpoints ---


@app.get("/api/v1/signatures", response_model=list[SignatureResponse])
def list_signatures():
    """List the loaded signature templates."""
    return [SignatureResponse(**entry) for entry in signatures.available()]


@app.post("/api/v1/convert", response_model=ConversionResponse)
def convert(file: UploadFile = File(...), signature_id: str | None = Form(None)):
    """Convert one PDF into an HTML email message."""
    signature_html = _signature(signature_id)
    data = _read_pdf_upload(file)
    result = convert_pdf(
        data,
        original_name=file.filename or "unknown.pdf",
        signature_html=signature_html,
        config=LayoutConfig.from_env(),
    )
    return _to_response(result, resolve_file_name_collisions([result.base_filename])[0])


@app.post("/api/v1/convert/batch", response_model=BatchConversionResponse)
def convert_batch(
    files: list[UploadFile] = File(...), signature_id: str | None = Form(None)
):
    """Convert several PDFs; failures are reported per file."""
    if len(files) > MAX_FILES:
        raise HTTPException(
            status_code=400,
            detail=f"Too many files. Maximum {MAX_FILES} PDFs allowed",
        )

    signature_html = _signature(signature_id)
    config = LayoutConfig.from_env()
    converted: list[tuple[int, ConversionResult]] = []
    results: list[BatchItemResponse] = []

    for file in files:
        file_name = file.filename or "unknown.pdf"
        try:
            data = _read_pdf_upload(file)
            result = convert_pdf(
                data,
                original_name=file_name,
                signature_html=signature_html,
                config=config,
            )
        except (PackagingError, DecodeError) as e:
            logger.warn("batch item failed", file_name=file_name, error=str(e))
            results.append(BatchItemResponse(original_name=file_name, error=str(e)))
            continue
        converted.append((len(results), result))
        results.append(BatchItemResponse(original_name=file_name))

    names = resolve_file_name_collisions([r.base_filename for _, r in converted])
    for (index, result), name in zip(converted, names):
        results[index].conversion = _to_response(result, name)

    successful = len(converted)
    return BatchConversionResponse(
        results=results,
        successful=successful,
        failed=len(results) - successful,
    )

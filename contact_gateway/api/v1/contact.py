"""
Public contact endpoint.

Accepts JSON or form-encoded submissions and answers with the localized
success text as plain text.
"""
from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse

from contact_gateway.core.config import settings
from contact_gateway.core.rate_limiter import get_client_ip
from contact_gateway.services.contact_pipeline import (
    TOKEN_FIELD,
    ContactSubmission,
    RequestPipeline,
)

router = APIRouter()


async def _read_capped_body(request: Request, limit: int) -> bytes:
    """Read at most ``limit + 1`` bytes; oversized bodies are never buffered whole."""
    chunks = []
    size = 0
    async for chunk in request.stream():
        chunks.append(chunk)
        size += len(chunk)
        if size > limit:
            break
    return b"".join(chunks)[: limit + 1]


def get_contact_pipeline() -> RequestPipeline:
    """Return the pipeline used by the contact endpoint."""
    return RequestPipeline.from_settings()


@router.post(
    settings.CONTACT_PATH,
    response_class=PlainTextResponse,
    status_code=status.HTTP_200_OK,
    summary="Submit the contact form",
    description="Rate-limited, bot-checked contact form relayed to the administrator mailbox.",
)
async def submit_contact(
    request: Request,
    pipeline: RequestPipeline = Depends(get_contact_pipeline),
) -> PlainTextResponse:
    submission = ContactSubmission(
        identity=get_client_ip(request),
        content_type=request.headers.get("Content-Type"),
        body=await _read_capped_body(request, pipeline.max_body_bytes),
        query_token=request.query_params.get(TOKEN_FIELD),
    )

    # Turnstile and SMTP calls block; keep them off the event loop
    outcome = await asyncio.to_thread(pipeline.process, submission)
    return PlainTextResponse(outcome.success_text, status_code=status.HTTP_200_OK)

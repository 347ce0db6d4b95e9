"""
Contact Gateway Services Module.

Services:
    - RequestPipeline: ordered admission gates for one submission
    - ContentFilter: blacklisted names, disallowed alphabets, links
    - TurnstileService: Cloudflare Turnstile verification (fail closed)
    - NotificationDispatcher: admin notification + localized auto-reply
"""

from .contact_pipeline import ContactSubmission, PipelineState, RequestPipeline
from .contact_service import (
    DeliveryResult,
    DispatchOutcome,
    NotificationDispatcher,
    combine_outcomes,
)
from .content_filter import ContentFilter
from .turnstile_service import TurnstileService

__all__ = [
    "ContactSubmission",
    "PipelineState",
    "RequestPipeline",
    "DeliveryResult",
    "DispatchOutcome",
    "NotificationDispatcher",
    "combine_outcomes",
    "ContentFilter",
    "TurnstileService",
]

"""Collaborator implementations shipped with claimflow."""

from __future__ import annotations

from .http import HttpApiCaller
from .local import (
    LoggingActionHandler,
    LoggingDocumentRequestService,
    LoggingNotificationService,
    LoggingPaymentGateway,
)

__all__ = [
    "HttpApiCaller",
    "LoggingActionHandler",
    "LoggingDocumentRequestService",
    "LoggingNotificationService",
    "LoggingPaymentGateway",
]

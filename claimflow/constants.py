"""Default business rules and shared literals."""

from __future__ import annotations

AUTO_APPROVAL_LIMIT = 20000
HIGH_VALUE_THRESHOLD = 50000
FRAUD_SCORE_THRESHOLD = 0.7
MINIMUM_CONFIDENCE = 0.8

HIGH_VALUE_RISK_SCORE = 0.3
SUSPICIOUS_TIMING_RISK_SCORE = 0.2

REQUIRED_DOCUMENTS = {
    "APE": ["medical_report", "death_certificate", "identity_document"],
    "BAG": ["police_report", "receipts", "identity_document"],
    "APE+BAG": [
        "medical_report",
        "death_certificate",
        "police_report",
        "receipts",
        "identity_document",
    ],
}

DEFAULT_REVIEW_INSTRUCTIONS = "Review required"

"""X.509 certificate expiry inspection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from cryptography import x509


@dataclass(slots=True)
class CertificateStatus:
    path: Path
    subject: str
    expires_at: datetime
    days_remaining: float

    @property
    def expired(self) -> bool:
        return self.days_remaining <= 0

    def expires_within(self, days: int) -> bool:
        return self.days_remaining <= days


def load_certificate(path: Path) -> x509.Certificate:
    """Load a PEM or DER certificate.

    Raises:
        ValueError: If the file holds no parseable certificate
    """
    data = path.read_bytes()
    if b"-----BEGIN" in data:
        return x509.load_pem_x509_certificate(data)
    return x509.load_der_x509_certificate(data)


def inspect_certificate(path: Path, now: datetime | None = None) -> CertificateStatus:
    certificate = load_certificate(path)
    expires_at = certificate.not_valid_after_utc
    remaining = expires_at - (now or datetime.now(UTC))
    return CertificateStatus(
        path=path,
        subject=certificate.subject.rfc4514_string(),
        expires_at=expires_at,
        days_remaining=remaining.total_seconds() / 86400,
    )

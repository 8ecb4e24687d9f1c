"""HTTP fetch that buffers a payload and records its content digest."""

from __future__ import annotations

import hashlib
import http.client
from urllib.error import HTTPError, URLError
from urllib.request import urlopen

from layersmith.errors import (
    BadStatusError,
    BodyReadError,
    IntegrityError,
    TransportError,
    ValidationError,
)
from layersmith.fetch import FetchedArchive
from layersmith.policy import Policy, ensure_network_allowed


def fetch(
    url: str,
    *,
    expected_sha256: str | None = None,
    policy: Policy | None = None,
    timeout: float | None = None,
) -> FetchedArchive:
    """Download *url* into memory and return it with its SHA-256 digest.

    Without *expected_sha256* the digest is only recorded. With it, a
    mismatch raises :class:`IntegrityError`.
    """
    if policy is not None:
        ensure_network_allowed(url, policy=policy)
        if policy.require_integrity and not expected_sha256:
            raise ValidationError(
                "fetch() requires an expected sha256 when integrity policy is enabled.",
                hint="Pass expected_sha256 or relax policy.require_integrity.",
                context={"operation": "fetch", "url": url},
            )

    payload = _download(url, timeout=timeout)
    digest = hashlib.sha256(payload).hexdigest()

    if expected_sha256 and digest != expected_sha256.lower():
        raise IntegrityError(
            "Fetched content hash mismatch.",
            hint="Update the expected hash or source URL to a trusted immutable artifact.",
            context={"operation": "fetch", "url": url, "expected": expected_sha256, "actual": digest},
        )
    return FetchedArchive(url=url, payload=payload, sha256=digest)


def _download(url: str, *, timeout: float | None) -> bytes:
    kwargs = {} if timeout is None else {"timeout": timeout}
    try:
        response = urlopen(url, **kwargs)  # noqa: S310 - URLs are fixed per installer
    except HTTPError as exc:
        raise BadStatusError(
            f"Download returned status {exc.code}.",
            status=exc.code,
            context={"operation": "fetch", "url": url, "status": str(exc.code)},
        ) from exc
    except (URLError, OSError, http.client.HTTPException) as exc:
        raise TransportError(
            "Download failed before a response was received.",
            hint="Check network connectivity and the download URL.",
            context={"operation": "fetch", "url": url, "cause": str(exc)},
        ) from exc

    with response:
        # file:// responses carry no status code.
        status = getattr(response, "status", None)
        if status is not None and status != 200:
            raise BadStatusError(
                f"Download returned status {status}.",
                status=status,
                context={"operation": "fetch", "url": url, "status": str(status)},
            )
        try:
            return response.read()
        except (OSError, http.client.HTTPException) as exc:
            raise BodyReadError(
                "Failed to read the response body.",
                context={"operation": "fetch", "url": url, "cause": str(exc)},
            ) from exc

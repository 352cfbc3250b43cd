"""
Network download manager with retry logic and checksum verification.

This module provides:
- Streaming HTTP/HTTPS downloads with TLS verification
- SHA256 computed while streaming
- Retry logic with exponential backoff for transient network errors
- Progress reporting (bytes, percentage, speed, ETA)

Integrity failures are never retried: a mismatching artifact is deleted and
the call fails with IntegrityError.
"""

import hashlib
import logging
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import HTTPError, RequestException

from govm import __version__
from govm.core.exceptions import DownloadError, IntegrityError

logger = logging.getLogger(__name__)

USER_AGENT = f"govm/{__version__}"
CHUNK_SIZE = 64 * 1024


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second
    eta_seconds: float  # estimated time remaining

    def __str__(self) -> str:
        return format_progress(self)


class StreamingHasher:
    """Compute hash incrementally for streaming downloads."""

    def __init__(self, algorithm: str = "sha256"):
        """
        Initialize streaming hasher.

        Raises:
            ValueError: If algorithm is not supported
        """
        self.algorithm = algorithm.lower()

        if self.algorithm == "sha256":
            self.hasher = hashlib.sha256()
        elif self.algorithm == "sha512":
            self.hasher = hashlib.sha512()
        else:
            raise ValueError(f"Unsupported hash algorithm: {algorithm}")

    def update(self, data: bytes):
        self.hasher.update(data)

    def finalize(self) -> str:
        return self.hasher.hexdigest()

    def verify(self, expected_hash: str) -> bool:
        """Constant-time, case-insensitive comparison with the final digest."""
        actual = self.finalize().encode("ascii")
        expected = expected_hash.strip().lower().encode("ascii", "replace")
        return secrets.compare_digest(actual, expected)


def is_retryable(error: RequestException) -> bool:
    """
    Decide whether a request failure is transient.

    Connection errors and timeouts are retried, as are HTTP 429 and 5xx.
    Other HTTP errors (404 for an unknown archive) fail immediately.
    """
    if isinstance(error, HTTPError) and error.response is not None:
        status = error.response.status_code
        return status == 429 or status >= 500
    return True


def with_retries(
    operation: Callable[[], object],
    description: str,
    url: str,
    max_retries: int = 3,
    sleep: Callable[[float], None] = time.sleep,
):
    """
    Run a network operation with bounded retries and exponential backoff.

    Args:
        operation: Zero-argument callable performing one attempt
        description: Human-readable name used in log and error messages
        url: URL being fetched (reported in DownloadError)
        max_retries: Maximum number of attempts
        sleep: Sleep function (injectable for tests)

    Returns:
        Whatever ``operation`` returns

    Raises:
        DownloadError: If the last attempt fails or the error is not transient
    """
    attempts = max(1, max_retries)
    for attempt in range(attempts):
        try:
            return operation()
        except RequestException as e:
            if not is_retryable(e):
                raise DownloadError(f"{description} failed: {e}", url=url) from e
            if attempt == attempts - 1:
                raise DownloadError(
                    f"{description} failed after {attempts} attempts: {e}", url=url
                ) from e

            backoff_seconds = 2**attempt
            logger.warning(
                f"{description} attempt {attempt + 1} failed: {e}. "
                f"Retrying in {backoff_seconds}s..."
            )
            sleep(backoff_seconds)

    # Unreachable: the loop either returns or raises
    raise DownloadError(f"{description} failed", url=url)


def download_file(
    url: str,
    destination: Path,
    expected_sha256: Optional[str] = None,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    timeout: float = 30,
    max_retries: int = 3,
    sleep: Callable[[float], None] = time.sleep,
) -> Path:
    """
    Download file from URL to destination with retries and checksum verification.

    Each attempt rewrites the destination from scratch.

    Args:
        url: URL to download from
        destination: Local path to save file
        expected_sha256: Expected SHA256 hash (verified during download)
        progress_callback: Optional callback for progress updates
        timeout: Request timeout in seconds
        max_retries: Maximum number of attempts
        sleep: Sleep function used between attempts

    Returns:
        Path to downloaded file

    Raises:
        DownloadError: If download fails after retries
        IntegrityError: If checksum doesn't match expected value
        ValueError: If URL is empty

    Example:
        >>> download_file(
        ...     "https://go.dev/dl/go1.22.0.linux-amd64.tar.gz",
        ...     Path("/tmp/go1.22.0.linux-amd64.tar.gz"),
        ...     expected_sha256="f6c8a87a...",
        ... )
    """
    if not url:
        raise ValueError("URL cannot be empty")

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    return with_retries(
        lambda: _download_with_progress(
            url=url,
            destination=destination,
            expected_sha256=expected_sha256,
            progress_callback=progress_callback,
            timeout=timeout,
        ),
        description=f"Download of {url}",
        url=url,
        max_retries=max_retries,
        sleep=sleep,
    )


def _download_with_progress(
    url: str,
    destination: Path,
    expected_sha256: Optional[str],
    progress_callback: Optional[Callable[[DownloadProgress], None]],
    timeout: float,
) -> Path:
    """
    Perform one streaming download attempt.

    Raises:
        IntegrityError: If checksum doesn't match
        RequestException: If HTTP request fails
    """
    logger.info(f"Downloading from {url}")

    response = requests.get(
        url,
        stream=True,
        timeout=timeout,
        allow_redirects=True,
        headers={"User-Agent": USER_AGENT},
    )
    with response:
        response.raise_for_status()

        content_length = response.headers.get("content-length")
        total_size = int(content_length) if content_length else 0

        hasher = StreamingHasher("sha256") if expected_sha256 else None
        downloaded = 0
        start_time = time.time()
        last_progress_time = start_time

        with open(destination, "wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if not chunk:
                    continue
                f.write(chunk)
                downloaded += len(chunk)

                if hasher:
                    hasher.update(chunk)

                # Report progress at most twice per second
                current_time = time.time()
                if progress_callback and (
                    current_time - last_progress_time >= 0.5
                    or downloaded == total_size
                ):
                    elapsed = current_time - start_time
                    speed = downloaded / elapsed if elapsed > 0 else 0
                    remaining = total_size - downloaded if total_size > 0 else 0
                    progress_callback(
                        DownloadProgress(
                            bytes_downloaded=downloaded,
                            total_bytes=total_size if total_size > 0 else downloaded,
                            percentage=(downloaded / total_size * 100)
                            if total_size > 0
                            else 0,
                            speed_bps=speed,
                            eta_seconds=remaining / speed if speed > 0 else 0,
                        )
                    )
                    last_progress_time = current_time

    if expected_sha256 and hasher:
        if not hasher.verify(expected_sha256):
            actual_hash = hasher.finalize()
            destination.unlink(missing_ok=True)
            raise IntegrityError(
                f"Checksum mismatch for {destination.name}: "
                f"expected {expected_sha256}, got {actual_hash}",
                path=destination,
            )
        logger.debug("Checksum verified successfully")

    logger.info(f"Download complete: {destination}")
    return destination


def verify_checksum(file_path: Path, expected_sha256: str) -> bool:
    """
    Verify file SHA256 checksum.

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    hasher = StreamingHasher("sha256")
    with open(file_path, "rb") as f:
        while chunk := f.read(CHUNK_SIZE):
            hasher.update(chunk)

    return hasher.verify(expected_sha256)


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576, 50)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s ETA: 50s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.total_bytes > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s "
            f"ETA: {progress.eta_seconds:.0f}s"
        )
    else:
        return f"{mb_downloaded:.1f} MB at {speed_mbps:.1f} MB/s"

"""Parallel file downloads with progress reporting."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from .tracker import Tracker
from ..ui.progress import ProgressWriter
from ..utils.filename import unique_paths

# Configure logging
logger = logging.getLogger(__name__)

PART_SUFFIX = ".part"


class DownloadError(Exception):
    """Base exception for download operations."""
    pass


class DownloadHTTPError(DownloadError):
    """Raised when the server answers with an error status."""

    def __init__(self, url: str, status_code: int):
        super().__init__(f"HTTP {status_code} for {url}")
        self.url = url
        self.status_code = status_code


@dataclass
class DownloadResult:
    """Result of a single download."""
    url: str
    success: bool
    output_path: Optional[Path] = None
    file_size: Optional[int] = None
    duration: Optional[float] = None
    error: Optional[str] = None
    status_code: Optional[int] = None
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        """Set timestamp if not provided."""
        if self.timestamp is None:
            self.timestamp = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result = asdict(self)
        if result['output_path']:
            result['output_path'] = str(result['output_path'])
        if result['timestamp']:
            result['timestamp'] = result['timestamp'].isoformat()
        return result


def download_single_file(
    session: requests.Session,
    url: str,
    output_path: Path,
    tracker: Optional[Tracker] = None,
    chunk_size: int = 65536,
    timeout: int = 60
) -> DownloadResult:
    """Download one URL to ``output_path``.

    Data is streamed into ``<output_path>.part`` and renamed once complete.
    The tracker, if given, receives the size announced by the server, one
    increment per chunk, and is marked done on success. Failures are returned
    as unsuccessful results and leave the tracker pending so the caller can
    retry.

    Args:
        session: HTTP session to use
        url: URL to download
        output_path: Final file location
        tracker: Optional tracker to advance
        chunk_size: Bytes read per iteration
        timeout: Connect/read timeout in seconds

    Returns:
        DownloadResult object
    """
    logger.info(f"Downloading {url} -> {output_path}")
    part_path = output_path.with_name(output_path.name + PART_SUFFIX)
    start_time = time.time()

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with session.get(url, stream=True, timeout=timeout) as response:
            if response.status_code >= 400:
                raise DownloadHTTPError(url, response.status_code)

            content_length = int(response.headers.get('Content-Length') or 0)
            if response.headers.get('Content-Encoding', 'identity').lower() != 'identity':
                # Content-Length counts encoded bytes, iter_content yields decoded ones
                content_length = 0
            if tracker is not None:
                tracker.set_value(0)
                if content_length > 0:
                    tracker.update_total(content_length)

            written = 0
            with open(part_path, 'wb') as f:
                for chunk in response.iter_content(chunk_size=chunk_size):
                    if not chunk:
                        continue
                    f.write(chunk)
                    written += len(chunk)
                    if tracker is not None:
                        tracker.increment(len(chunk))

        if content_length and written != content_length:
            raise DownloadError(f"Incomplete download: got {written} of {content_length} bytes")

        part_path.replace(output_path)
        duration = time.time() - start_time

        if tracker is not None:
            if tracker.total == 0:
                tracker.update_total(written)
            tracker.mark_as_done()

        logger.info(f"Downloaded {url} ({written} bytes) in {duration:.1f}s")

        return DownloadResult(
            url=url,
            success=True,
            output_path=output_path,
            file_size=written,
            duration=duration
        )

    except (requests.RequestException, DownloadError, OSError) as e:
        error_msg = str(e)
        logger.error(f"Failed to download {url}: {error_msg}")
        part_path.unlink(missing_ok=True)

        return DownloadResult(
            url=url,
            success=False,
            output_path=output_path,
            duration=time.time() - start_time,
            error=error_msg,
            status_code=e.status_code if isinstance(e, DownloadHTTPError) else None
        )


class ParallelDownloader:
    """Downloads many files concurrently and reports through a progress writer."""

    def __init__(
        self,
        max_workers: int = 4,
        timeout: int = 60,
        retry_attempts: int = 2,
        chunk_size: int = 65536,
        proxy: Optional[str] = None
    ):
        """Initialize parallel downloader.

        Args:
            max_workers: Maximum number of concurrent downloads
            timeout: Connect/read timeout per request in seconds
            retry_attempts: Number of retries after a failed attempt
            chunk_size: Bytes read per iteration
            proxy: Optional proxy URL (http://, https:// or socks5://)

        Raises:
            ValueError: If parameters are invalid
        """
        if max_workers <= 0:
            raise ValueError("max_workers must be positive")
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        if retry_attempts < 0:
            raise ValueError("retry_attempts must be non-negative")
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

        self.max_workers = max_workers
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.chunk_size = chunk_size
        self.proxy = proxy

        logger.info(f"Initialized ParallelDownloader: workers={max_workers}, proxy={proxy or 'none'}")

    def create_session(self) -> requests.Session:
        """Create an HTTP session honouring the configured proxy."""
        session = requests.Session()
        if self.proxy:
            session.proxies = {'http': self.proxy, 'https': self.proxy}
        return session

    def download_files(
        self,
        urls: List[str],
        output_dir: Path,
        writer: ProgressWriter
    ) -> List[DownloadResult]:
        """Download all URLs into ``output_dir``.

        Each URL gets a tracker registered with ``writer``. The writer is
        started before the first download and stopped once all of them have
        finished, so its summary covers the whole batch.

        Args:
            urls: URLs to download
            output_dir: Directory for downloaded files
            writer: Progress writer that reports on the downloads

        Returns:
            List of DownloadResult objects in completion order

        Raises:
            DownloadError: If the output directory cannot be created
        """
        logger.info(f"Starting parallel download of {len(urls)} files")

        if not urls:
            logger.info("No files to download")
            return []

        self._validate_output_dir(output_dir)

        jobs = []
        for url, path in zip(urls, unique_paths(output_dir, urls)):
            tracker = Tracker(message=path.name)
            writer.append_tracker(tracker)
            jobs.append((url, path, tracker))

        writer.set_num_trackers_expected(len(jobs))
        writer.start()

        results = []
        try:
            with self.create_session() as session:
                with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                    future_to_job = {
                        executor.submit(
                            self._download_with_retry,
                            session=session,
                            url=url,
                            output_path=path,
                            tracker=tracker
                        ): (url, tracker)
                        for url, path, tracker in jobs
                    }

                    for future in as_completed(future_to_job):
                        url, tracker = future_to_job[future]
                        try:
                            results.append(future.result())
                        except Exception as e:
                            logger.error(f"Unexpected error downloading {url}: {e}")
                            tracker.mark_as_errored()
                            results.append(DownloadResult(
                                url=url,
                                success=False,
                                error=f"Unexpected error: {e}"
                            ))
        finally:
            writer.stop()

        failed = sum(1 for result in results if not result.success)
        logger.info(f"Download batch finished: {len(results) - failed} succeeded, {failed} failed")
        return results

    def _download_with_retry(
        self,
        session: requests.Session,
        url: str,
        output_path: Path,
        tracker: Tracker
    ) -> DownloadResult:
        """Download with retry logic, marking the tracker errored on final failure.

        Args:
            session: HTTP session to use
            url: URL to download
            output_path: Final file location
            tracker: Tracker for this download

        Returns:
            DownloadResult object
        """
        result = None

        for attempt in range(self.retry_attempts + 1):
            if attempt > 0:
                logger.info(f"Retry attempt {attempt} for {url}")

            result = download_single_file(
                session=session,
                url=url,
                output_path=output_path,
                tracker=tracker,
                chunk_size=self.chunk_size,
                timeout=self.timeout
            )

            if result.success:
                return result

            if result.status_code is not None and 400 <= result.status_code < 500:
                # Client errors will not change on retry
                break

            # Wait before retry
            if attempt < self.retry_attempts:
                time.sleep(2 ** attempt)  # Exponential backoff

        logger.error(f"All retry attempts failed for {url}: {result.error}")
        tracker.mark_as_errored()
        return result

    def _validate_output_dir(self, output_dir: Path) -> bool:
        """Validate and create output directory.

        Args:
            output_dir: Output directory path

        Returns:
            True if valid

        Raises:
            DownloadError: If directory cannot be created
        """
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            return True
        except OSError as e:
            raise DownloadError(f"Cannot create output directory {output_dir}: {e}")

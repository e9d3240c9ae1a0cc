"""Main CLI entry point for Parallel Downloader."""

import os
import sys
import logging
from pathlib import Path
from typing import Optional, List, Tuple

import click
from rich.console import Console

from parallel_downloader import __version__
from parallel_downloader.core.downloader import ParallelDownloader, DownloadError
from parallel_downloader.ui.progress import SimpleWriter
from parallel_downloader.utils.config import Config
from parallel_downloader.utils.log_config import OutputMode, setup_logging
from parallel_downloader.utils.units import format_binary_bytes

logger = logging.getLogger(__name__)

console = Console(stderr=True)


def setup_config(config_path: Optional[Path] = None) -> Config:
    """Setup and return configuration instance.

    ``PD_PROXY`` and ``PD_LOG_LEVEL`` override the file values.

    Args:
        config_path: Optional path to config file

    Returns:
        Configuration instance
    """
    config = Config(config_path)
    if os.getenv('PD_PROXY'):
        config.set('proxy', os.getenv('PD_PROXY'))
    if os.getenv('PD_LOG_LEVEL'):
        config.set('log_level', os.getenv('PD_LOG_LEVEL'))
    return config


def read_url_file(path: Path) -> List[str]:
    """Read URLs from a file, one per line.

    Blank lines and lines starting with ``#`` are skipped.

    Args:
        path: File to read

    Returns:
        List of URLs
    """
    urls = []
    for line in path.read_text(encoding='utf-8').splitlines():
        line = line.strip()
        if line and not line.startswith('#'):
            urls.append(line)
    return urls


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Also write log records to stderr")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), help="JSON config file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.option(
    "--log-output",
    type=click.Choice([mode.value for mode in OutputMode]),
    default=None,
    help="Where to write log records"
)
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Log file path")
@click.pass_context
def main(
    ctx: click.Context,
    verbose: bool,
    config_path: Optional[Path],
    log_level: Optional[str],
    log_output: Optional[str],
    log_file: Optional[Path]
) -> None:
    """Parallel Downloader - fetch many files at once with log-friendly progress."""
    config = setup_config(config_path)

    level = log_level or config.get('log_level', 'INFO')
    output = log_output or config.get('log_output', OutputMode.FILE.value)
    if verbose:
        output = OutputMode.BOTH.value
        console.print(f"[bold green]Parallel Downloader v{__version__}[/bold green]")

    try:
        setup_logging(level=level, path=log_file or config.get('log_file'), output=output)
    except (ValueError, OSError) as e:
        console.print(f"[red]Error: cannot configure logging: {e}[/red]")
        sys.exit(1)

    ctx.obj = config


@main.command("download")
@click.argument("urls", nargs=-1)
@click.option(
    "--input-file", "-i",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read additional URLs from a file, one per line"
)
@click.option("--output-dir", "-o", type=click.Path(file_okay=False, path_type=Path), help="Directory for downloaded files")
@click.option("--workers", type=int, default=None, help="Number of parallel downloads (default: 4)")
@click.option("--timeout", type=int, default=None, help="Per-request timeout in seconds (default: 60)")
@click.option("--retries", type=int, default=None, help="Retries per file after a failure (default: 2)")
@click.option("--proxy", default=None, help="Proxy URL, e.g. socks5://127.0.0.1:9050")
@click.option("--poll-interval", type=float, default=None, help="Seconds between progress checks (default: 0.1)")
@click.pass_obj
def download_command(
    config: Config,
    urls: Tuple[str, ...],
    input_file: Optional[Path],
    output_dir: Optional[Path],
    workers: Optional[int],
    timeout: Optional[int],
    retries: Optional[int],
    proxy: Optional[str],
    poll_interval: Optional[float]
) -> None:
    """Download URLS in parallel.

    One line is printed when each file finishes or fails, followed by a
    summary. Exits with status 1 if any download failed.

    Examples:

        # Two files into ./downloads
        parallel-downloader download https://example.com/a.iso https://example.com/b.iso

        # URLs from a file, through a SOCKS proxy
        parallel-downloader download -i urls.txt --proxy socks5://127.0.0.1:9050
    """
    all_urls = list(urls)
    if input_file:
        all_urls.extend(read_url_file(input_file))

    if not all_urls:
        console.print("[yellow]No URLs given.[/yellow]")
        sys.exit(1)

    # Use config defaults if not specified
    if output_dir is None:
        output_dir = Path(config.get('output_dir', 'downloads'))
    if workers is None:
        workers = config.get('max_workers', 4)
    if timeout is None:
        timeout = config.get('timeout', 60)
    if retries is None:
        retries = config.get('retry_attempts', 2)
    if proxy is None:
        proxy = config.get('proxy')
    if poll_interval is None:
        poll_interval = config.get('poll_interval', 0.1)

    try:
        downloader = ParallelDownloader(
            max_workers=workers,
            timeout=timeout,
            retry_attempts=retries,
            chunk_size=config.get('chunk_size', 65536),
            proxy=proxy
        )
        writer = SimpleWriter(formatter=format_binary_bytes, interval=poll_interval)
        results = downloader.download_files(all_urls, output_dir, writer)

    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    except DownloadError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user.[/yellow]")
        sys.exit(1)

    failed = [result for result in results if not result.success]
    for result in failed:
        logger.warning(f"{result.url}: {result.error}")

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()

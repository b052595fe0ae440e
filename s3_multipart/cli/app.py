"""Typer CLI for S3 multipart uploads."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from pathlib import Path

import typer
from tqdm import tqdm

from s3_multipart import __version__
from s3_multipart.config_manager.config import ConfigManager
from s3_multipart.config_manager.uploader_config import UploaderConfig
from s3_multipart.const import DEFAULT_HASH_CHUNK_SIZE
from s3_multipart.exceptions import ConfigLoadError, UploaderError, UserCanceled
from s3_multipart.hashing.incremental_hasher import hash_file
from s3_multipart.models import Credentials, FileUploadResult
from s3_multipart.transport.aiohttp_transport import AiohttpTransport
from s3_multipart.transport.base import CancelToken
from s3_multipart.upload_management.file_uploader import MultipartFileUploader
from s3_multipart.upload_management.uploader import Uploader

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
EXIT_CANCELED = 130

logger = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False, help="S3 multipart upload command line interface."
)


def configure_logging(level: int = logging.INFO) -> None:
    """Configure root logging with a concise, consistent format."""
    if logging.getLogger().handlers:
        logging.getLogger().setLevel(level)
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(level=level, handlers=[handler])


def _version_callback(value: bool) -> bool:
    if value:
        typer.echo(__version__)
        raise typer.Exit()
    return value


@app.callback()
def callback(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show the s3-multipart version and exit.",
        callback=_version_callback,
        is_eager=True,
        is_flag=True,
    ),
) -> None:
    """Handle global CLI option for --version."""
    return None


def _load_config(
    config_path: Path | None, part_size: str | None = None
) -> tuple[UploaderConfig, Credentials]:
    """Resolve configuration and credentials for a command."""
    config = ConfigManager(config_path).resolve_effective_config(
        {"part_size": part_size}
    )
    try:
        credentials = config.to_credentials()
    except ValueError as exc:
        raise ConfigLoadError(str(exc)) from exc
    return config, credentials


@contextlib.contextmanager
def _cancel_on_interrupt(cancel_token: CancelToken):
    """Fire the token on SIGINT while the block runs."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_token.cancel, "Interrupted")
        installed = True
    except (NotImplementedError, RuntimeError):
        logger.debug("SIGINT handler unavailable; Ctrl-C will not cancel cleanly")
        installed = False
    try:
        yield
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)


async def _run_upload(
    config: UploaderConfig,
    credentials: Credentials,
    file: Path,
    bucket: str,
    key: str,
    abort_on_failure: bool,
) -> FileUploadResult:
    cancel_token = CancelToken()
    with _cancel_on_interrupt(cancel_token):
        async with AiohttpTransport(timeout_secs=config.request_timeout) as transport:
            uploader = Uploader(credentials, transport)
            with tqdm(
                total=file.stat().st_size, unit="B", unit_scale=True, desc=file.name
            ) as pbar:
                file_uploader = MultipartFileUploader(
                    uploader,
                    bucket,
                    key,
                    file,
                    part_size=config.part_size,
                    progress_callback=pbar.update,
                    cancel_token=cancel_token,
                    abort_on_failure=abort_on_failure,
                )
                return await file_uploader.upload()


async def _run_abort(
    config: UploaderConfig,
    credentials: Credentials,
    bucket: str,
    key: str,
    upload_id: str,
) -> None:
    async with AiohttpTransport(timeout_secs=config.request_timeout) as transport:
        await Uploader(credentials, transport).abort(bucket, key, upload_id)


@app.command("upload")
def upload(
    file: Path = typer.Argument(
        ...,
        exists=True,
        readable=True,
        dir_okay=False,
        help="Local file to upload.",
    ),
    bucket: str = typer.Option(..., "--bucket", "-b", help="Target bucket."),
    key: str | None = typer.Option(
        None, "--key", "-k", help="Object key. Defaults to the file name."
    ),
    part_size: str | None = typer.Option(
        None, "--part-size", help="Bytes per part, e.g. '16MiB' (minimum 5MiB)."
    ),
    config_path: Path | None = typer.Option(
        None, "--config", "-c", dir_okay=False, help="YAML configuration file."
    ),
    abort_on_failure: bool = typer.Option(
        True,
        "--abort-on-failure/--keep-on-failure",
        help="Abort the upload on the store when it fails or is canceled.",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    """Upload a file as an S3 multipart upload."""
    configure_logging(logging.DEBUG if verbose else logging.INFO)
    object_key = key or file.name
    try:
        config, credentials = _load_config(config_path, part_size)
        result = asyncio.run(
            _run_upload(
                config, credentials, file, bucket, object_key, abort_on_failure
            )
        )
    except UserCanceled as exc:
        logger.warning("Upload canceled: %s", exc)
        raise typer.Exit(code=EXIT_CANCELED) from exc
    except UploaderError as exc:
        logger.error("%s", exc)
        raise typer.Exit(code=1) from exc

    typer.echo(f"Location: {result.location}")
    typer.echo(f"Parts: {len(result.parts)}")
    typer.echo(f"SHA256: {result.sha256}")
    typer.echo(f"MD5: {result.md5}")


@app.command("abort")
def abort(
    bucket: str = typer.Option(..., "--bucket", "-b", help="Bucket of the upload."),
    key: str = typer.Option(..., "--key", "-k", help="Object key of the upload."),
    upload_id: str = typer.Option(..., "--upload-id", "-u", help="Upload id."),
    config_path: Path | None = typer.Option(
        None, "--config", "-c", dir_okay=False, help="YAML configuration file."
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    """Abort a multipart upload and release its stored parts."""
    configure_logging(logging.DEBUG if verbose else logging.INFO)
    try:
        config, credentials = _load_config(config_path)
        asyncio.run(_run_abort(config, credentials, bucket, key, upload_id))
    except UploaderError as exc:
        logger.error("%s", exc)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Aborted upload {upload_id}")


@app.command("hash")
def hash_command(
    file: Path = typer.Argument(
        ..., exists=True, readable=True, dir_okay=False, help="File to hash."
    ),
    chunk_size: int = typer.Option(
        DEFAULT_HASH_CHUNK_SIZE, "--chunk-size", min=1, help="Bytes read per chunk."
    ),
) -> None:
    """Print the SHA-256 and MD5 of a file."""
    hasher = hash_file(file, chunk_size=chunk_size)
    typer.echo(f"SHA256: {hasher.sha256_hexdigest()}")
    typer.echo(f"MD5: {hasher.md5_hexdigest()}")


def main() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()

import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import typer
from PIL import features

from inkpad.config import settings
from inkpad.domain.exceptions import InkpadError
from inkpad.logging import configure, get_session_id, logger

app = typer.Typer(no_args_is_help=True)


@app.callback()
def main():
    """
    inkpad media CLI.
    """
    configure(settings.LOG_LEVEL)


@app.command(name="serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8000, help="Bind port"),
):
    """
    Run the media ingestion API.
    """
    import uvicorn
    from inkpad.api.app import create_app

    uvicorn.run(create_app(), host=host, port=port)


@app.command(name="doctor")
def doctor():
    """
    Check the upload directory, image codecs and backend reachability.
    """
    logger.info("Running doctor check...")
    failures: list[str] = []

    print("\n🩺 inkpad doctor\n")
    print("[Environment]")
    print(f"  Python:     {sys.version.split()[0]}")
    print(f"  Session ID: {get_session_id()}")

    print("\n[Storage]")
    upload_dir = settings.upload_dir
    try:
        upload_dir.mkdir(parents=True, exist_ok=True)
        probe = upload_dir / ".write_test"
        probe.touch()
        probe.unlink()
        print(f"  UPLOAD_DIR:  ✅ {upload_dir}")
    except OSError as e:
        print(f"  UPLOAD_DIR:  ❌ {upload_dir}")
        failures.append(f"Cannot write to upload directory {upload_dir}: {e}")
    print(f"  URL prefix:  {settings.url_prefix}")
    print(f"  Max upload:  {settings.MAX_UPLOAD_BYTES} bytes")

    print("\n[Codecs]")
    if features.check("webp"):
        print("  WebP:        ✅ available")
    else:
        print("  WebP:        ❌ missing")
        failures.append("Pillow was built without WebP support")

    print("\n[Backend]")
    from inkpad.client.api_client import MediaClient
    client = MediaClient(settings.API_BASE_URL)
    try:
        client.health()
        print(f"  API:         ✅ {settings.API_BASE_URL}")
    except Exception as e:
        print(f"  API:         ⚠️  {settings.API_BASE_URL} unreachable ({e})")
    finally:
        client.close()

    if failures:
        print("\nProblems:")
        for failure in failures:
            print(f"  - {failure}")
        raise typer.Exit(code=1)
    print("\nAll checks passed.")


@app.command(name="ingest")
def ingest(path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Image file")):
    """
    Run the ingestion pipeline on a local file and print the stored URL.
    """
    from inkpad.media.pipeline import build_pipeline

    try:
        result = build_pipeline().ingest(path.read_bytes())
    except InkpadError as e:
        logger.error(f"Ingestion failed: {e.message}")
        raise typer.Exit(code=1)
    print(f"{result.url}  ({result.source_format}, {result.source_bytes} -> {result.stored_bytes} bytes)")


@app.command(name="upload")
def upload(
    paths: List[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Image file(s)"),
    base_url: Optional[str] = typer.Option(None, help="API base URL (defaults to INKPAD_API_BASE_URL)"),
):
    """
    Upload through an upload slot, as the editor does, printing progress.
    """
    from inkpad.client.api_client import HttpUploadTransport
    from inkpad.upload.display import format_file_size
    from inkpad.upload.files import SelectedFile, SlotStatus
    from inkpad.upload.slot import UploadSlot
    from inkpad.upload.validator import SlotConfig

    config = SlotConfig(
        max_size=settings.CLIENT_MAX_SIZE,
        limit=settings.CLIENT_LIMIT,
        accept=settings.CLIENT_ACCEPT,
    )
    errors: list[InkpadError] = []

    def on_change(item) -> None:
        if item is not None and item.status is SlotStatus.UPLOADING:
            print(f"\r  {item.progress:3d}%", end="", flush=True)

    slot = UploadSlot(
        config,
        HttpUploadTransport(base_url or settings.API_BASE_URL),
        on_error=errors.append,
        on_change=on_change,
    )
    files = [SelectedFile.from_path(p) for p in paths]
    print(f"Uploading {files[0].name} ({format_file_size(files[0].size)})")
    url = asyncio.run(slot.select(files))
    print()
    if url is None:
        for error in errors:
            logger.error(error.message)
        raise typer.Exit(code=1)
    print(url)
    slot.clear()


if __name__ == "__main__":
    app()

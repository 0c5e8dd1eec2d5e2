"""Image ingestion router. The request body is the raw image bytes."""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from inkpad.api.deps import get_pipeline
from inkpad.api.schemas.media import ErrorResponse, IngestResponse
from inkpad.domain.exceptions import InkpadError
from inkpad.logging import logger
from inkpad.media.pipeline import MediaIngestionPipeline

router = APIRouter(prefix="/api/image-gallery", tags=["media"])


@router.post(
    "",
    response_model=IngestResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def ingest_image(
    request: Request,
    pipeline: MediaIngestionPipeline = Depends(get_pipeline),
):
    try:
        body = await request.body()
        result = await run_in_threadpool(pipeline.ingest, body)
    except InkpadError:
        # rejected payloads and storage failures go to the app's exception handlers
        raise
    except Exception as exc:
        logger.exception(exc)
        return JSONResponse(status_code=500, content={"error": "Upload failed."})
    return IngestResponse(url=result.url, filename=result.filename)

"""
Listing scrape job endpoints.
"""

from __future__ import annotations

import io

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse, StreamingResponse

from app.domain.listing_scrape import ScrapeJob
from app.schemas.listing_scrape import (
    JobLogEntryResponse,
    ScrapeJobCancelResponse,
    ScrapeJobCreateRequest,
    ScrapeJobListResponse,
    ScrapeJobLogsResponse,
    ScrapeJobStatusResponse,
)
from app.services.listing_scrape_service import DuplicateJobError, ScrapeJobManager

router = APIRouter(tags=["listing-scrape"])

_VALID_FORMATS = frozenset({"csv", "json"})


def get_job_manager(request: Request) -> ScrapeJobManager:
    return request.app.state.job_manager


def _require_job(manager: ScrapeJobManager, job_id: str) -> ScrapeJob:
    job = manager.get(job_id)
    if job is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Scrape job not found: {job_id}",
        )
    return job


def _to_status_response(job: ScrapeJob) -> ScrapeJobStatusResponse:
    return ScrapeJobStatusResponse(
        job_id=job.job_id,
        search_url=job.search_url,
        status=job.status.value,
        scraped=job.scraped_count,
        pages_visited=job.pages_visited,
        cancelled=job.cancelled,
        error=job.error,
        created_at=job.created_at,
        finished_at=job.finished_at,
    )


@router.post(
    "/scrape-jobs",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ScrapeJobStatusResponse,
)
async def create_scrape_job(
    payload: ScrapeJobCreateRequest,
    manager: ScrapeJobManager = Depends(get_job_manager),
) -> ScrapeJobStatusResponse:
    try:
        job = manager.start(payload.search_url, job_id=payload.job_id)
    except DuplicateJobError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _to_status_response(job)


@router.get("/scrape-jobs", response_model=ScrapeJobListResponse)
async def list_scrape_jobs(
    manager: ScrapeJobManager = Depends(get_job_manager),
) -> ScrapeJobListResponse:
    return ScrapeJobListResponse(jobs=[_to_status_response(job) for job in manager.list_jobs()])


@router.get("/scrape-jobs/{job_id}", response_model=ScrapeJobStatusResponse)
async def get_scrape_job(
    job_id: str,
    manager: ScrapeJobManager = Depends(get_job_manager),
) -> ScrapeJobStatusResponse:
    return _to_status_response(_require_job(manager, job_id))


@router.post("/scrape-jobs/{job_id}/cancel", response_model=ScrapeJobCancelResponse)
async def cancel_scrape_job(
    job_id: str,
    manager: ScrapeJobManager = Depends(get_job_manager),
) -> ScrapeJobCancelResponse:
    _require_job(manager, job_id)
    return ScrapeJobCancelResponse(job_id=job_id, cancel_requested=manager.cancel(job_id))


@router.get("/scrape-jobs/{job_id}/logs", response_model=ScrapeJobLogsResponse)
async def get_scrape_job_logs(
    job_id: str,
    since: int = Query(default=0, ge=0, description="Return entries with index >= since"),
    manager: ScrapeJobManager = Depends(get_job_manager),
) -> ScrapeJobLogsResponse:
    job = _require_job(manager, job_id)
    entries = job.logger.entries_since(since)
    next_index = entries[-1].index + 1 if entries else since
    return ScrapeJobLogsResponse(
        job_id=job_id,
        scraped=job.logger.scraped,
        next_index=next_index,
        entries=[
            JobLogEntryResponse(
                index=entry.index,
                level=entry.level,
                message=entry.message,
                timestamp=entry.timestamp,
            )
            for entry in entries
        ],
    )


@router.get("/scrape-jobs/{job_id}/export", response_model=None)
async def export_scrape_job(
    job_id: str,
    output_format: str = Query(
        default="csv",
        alias="format",
        description='Output format: "csv" (file download) or "json".',
    ),
    manager: ScrapeJobManager = Depends(get_job_manager),
) -> StreamingResponse | JSONResponse:
    job = _require_job(manager, job_id)
    output_format = output_format.strip().lower()
    if output_format not in _VALID_FORMATS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unsupported format '{output_format}'. Use one of: {sorted(_VALID_FORMATS)}",
        )

    if output_format == "json":
        return JSONResponse(
            content={
                "job_id": job_id,
                "rows": len(job.sink),
                "fields": job.sink.columns,
                "data": job.sink.to_rows(),
            }
        )

    buffer = io.StringIO()
    row_count = job.sink.write_csv(buffer)
    return StreamingResponse(
        content=iter([buffer.getvalue()]),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="listings_{job_id}.csv"',
            "X-Row-Count": str(row_count),
        },
    )

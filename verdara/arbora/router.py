"""
Routes for the Arbora arborist vertical.

Clients and jobs are plain in-memory CRUD; the calendar endpoint lays the
jobs out on a month grid.
"""

from __future__ import annotations

import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query

from .. import storage
from .calendar import build_month_grid
from .schemas import Client, CreateClientRequest, CreateJobRequest, Job, MonthGrid


router = APIRouter(prefix="/api/arborist", tags=["arbora"])


@router.get("/clients", response_model=List[Client])
def list_clients_api():
    return storage.list_clients()


@router.post("/clients", response_model=Client)
def add_client_api(req: CreateClientRequest):
    try:
        return storage.add_client(req)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/jobs", response_model=List[Job])
def list_jobs_api():
    return storage.list_jobs()


@router.post("/jobs", response_model=Job)
def add_job_api(req: CreateJobRequest):
    try:
        return storage.add_job(req)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/jobs/{job_id}")
def delete_job_api(job_id: int):
    if not storage.delete_job(job_id):
        raise HTTPException(status_code=404, detail="Job not found")
    return {"status": "ok"}


@router.get("/calendar", response_model=MonthGrid)
def calendar_api(
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., ge=0, le=11, description="Zero-based month index"),
    today: Optional[dt.date] = Query(default=None, description="Client's local date"),
):
    """Month grid with jobs attached to their scheduled day.

    ``today`` is the caller's local date and only drives highlighting; the
    server date is used when it is omitted.
    """
    return build_month_grid(year, month, storage.list_jobs(), today or dt.date.today())

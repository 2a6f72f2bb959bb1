# verdara/storage.py
from typing import List, Optional

from .arbora.schemas import Client, CreateClientRequest, CreateJobRequest, Job


CLIENTS: List[Client] = []
JOBS: List[Job] = []
_next_client_id = 1
_next_job_id = 1


def add_client(req: CreateClientRequest) -> Client:
    global _next_client_id

    if not req.name.strip():
        raise ValueError("Client name is required.")

    client = Client(id=_next_client_id, **req.model_dump())
    CLIENTS.append(client)
    _next_client_id += 1
    return client


def list_clients() -> List[Client]:
    return CLIENTS


def get_client(client_id: int) -> Optional[Client]:
    return next((c for c in CLIENTS if c.id == client_id), None)


def add_job(req: CreateJobRequest) -> Job:
    global _next_job_id

    if not req.title.strip():
        raise ValueError("Job title is required.")
    if req.client_id is not None and get_client(req.client_id) is None:
        raise ValueError(f"Unknown client {req.client_id}.")

    job = Job(id=_next_job_id, **req.model_dump())
    JOBS.append(job)
    _next_job_id += 1
    return job


def list_jobs() -> List[Job]:
    return JOBS


def get_job(job_id: int) -> Optional[Job]:
    return next((j for j in JOBS if j.id == job_id), None)


def delete_job(job_id: int) -> bool:
    job = get_job(job_id)
    if job is None:
        return False
    JOBS.remove(job)
    return True


def reset() -> None:
    global _next_client_id, _next_job_id
    CLIENTS.clear()
    JOBS.clear()
    _next_client_id = 1
    _next_job_id = 1

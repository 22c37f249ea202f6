import logging
from contextlib import asynccontextmanager
from functools import partial

from anyio import to_thread
from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from backend import config
from backend.app import gantt_service
from backend.app.db import store
from backend.app.db.database import get_db, init_db
from backend.app.db.db_loader import load_project_from_db
from backend.app.db.models import (
    PhaseCreate,
    ProjectCreate,
    UpdateTaskDatesRequest,
    UpdateTaskProgressRequest,
    WorkPackageCreate,
)
from backend.app.exceptions import MissingPlannedDateError, ProjectNotFoundError, TaskNotFoundError

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger("api")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Project Gantt API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def _run(func, *args):
    """Run a blocking store call in a worker thread."""
    return await to_thread.run_sync(partial(func, *args))


def _raise_for_domain_error(e: Exception):
    if isinstance(e, ProjectNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, TaskNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, MissingPlannedDateError):
        raise HTTPException(status_code=422, detail=str(e))


@app.get("/")
async def root():
    return {"message": "Project Gantt API"}


@app.get("/debug/ping")
async def debug_ping():
    return {"pong": True}


# ------------------------------
# Gantt / critical path
# ------------------------------

@app.get("/projects/{project_id}/gantt")
async def get_gantt_data(project_id: str, db: Session = Depends(get_db)):
    """Tasks (project, phases, work packages) and finish-to-start links for the Gantt chart."""
    try:
        data = await _run(gantt_service.get_schedule, db, project_id)
        return {"success": True, "data": data}
    except HTTPException:
        raise
    except (ProjectNotFoundError, MissingPlannedDateError) as e:
        _raise_for_domain_error(e)
    except Exception as e:
        logger.exception("/projects/%s/gantt failed: %s", project_id, e)
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/projects/{project_id}/gantt/critical-path")
async def get_critical_path(project_id: str, db: Session = Depends(get_db)):
    """Critical tasks, total duration, per-task slack and ES/EF/LS/LF for the project."""
    try:
        result = await _run(gantt_service.get_critical_path, db, project_id)
        return {"success": True, "data": result}
    except HTTPException:
        raise
    except (ProjectNotFoundError, MissingPlannedDateError) as e:
        _raise_for_domain_error(e)
    except Exception as e:
        logger.exception("/projects/%s/gantt/critical-path failed: %s", project_id, e)
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/projects/{project_id}/gantt/tasks/{task_id}/slack")
async def get_task_slack(project_id: str, task_id: str, db: Session = Depends(get_db)):
    try:
        data = await _run(gantt_service.get_task_slack, db, project_id, task_id)
        return {"success": True, "data": data}
    except HTTPException:
        raise
    except (ProjectNotFoundError, TaskNotFoundError, MissingPlannedDateError) as e:
        _raise_for_domain_error(e)
    except Exception as e:
        logger.exception("/projects/%s/gantt/tasks/%s/slack failed: %s", project_id, task_id, e)
        raise HTTPException(status_code=500, detail=str(e))


@app.put("/projects/{project_id}/gantt/tasks/{task_id}/dates")
async def update_task_dates(
    project_id: str,
    task_id: str,
    request: UpdateTaskDatesRequest,
    db: Session = Depends(get_db),
):
    try:
        await _run(
            gantt_service.update_task_dates, db, task_id, request.task_type, request.start_date, request.end_date
        )
        logger.info("Updated dates of %s %s in project %s", request.task_type, task_id, project_id)
        return {"success": True, "message": "Task dates updated"}
    except HTTPException:
        raise
    except TaskNotFoundError as e:
        _raise_for_domain_error(e)
    except Exception as e:
        logger.exception("/projects/%s/gantt/tasks/%s/dates failed: %s", project_id, task_id, e)
        raise HTTPException(status_code=500, detail=str(e))


@app.put("/projects/{project_id}/gantt/tasks/{task_id}/progress")
async def update_task_progress(
    project_id: str,
    task_id: str,
    request: UpdateTaskProgressRequest,
    db: Session = Depends(get_db),
):
    try:
        await _run(gantt_service.update_task_progress, db, task_id, request.task_type, request.progress)
        logger.info("Updated progress of %s %s in project %s", request.task_type, task_id, project_id)
        return {"success": True, "message": "Task progress updated"}
    except HTTPException:
        raise
    except TaskNotFoundError as e:
        _raise_for_domain_error(e)
    except Exception as e:
        logger.exception("/projects/%s/gantt/tasks/%s/progress failed: %s", project_id, task_id, e)
        raise HTTPException(status_code=500, detail=str(e))


# ------------------------------
# Project hierarchy
# ------------------------------

@app.post("/projects", status_code=status.HTTP_201_CREATED)
async def create_project(request: ProjectCreate, db: Session = Depends(get_db)):
    try:
        project_id = await _run(store.create_project, db, request)
        return {"success": True, "data": {"id": project_id}}
    except Exception as e:
        logger.exception("/projects failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/projects/{project_id}")
async def get_project(project_id: str, db: Session = Depends(get_db)):
    try:
        project = await _run(load_project_from_db, db, project_id)
        return {"success": True, "data": project}
    except ProjectNotFoundError as e:
        _raise_for_domain_error(e)
    except Exception as e:
        logger.exception("/projects/%s failed: %s", project_id, e)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/projects/{project_id}/phases", status_code=status.HTTP_201_CREATED)
async def create_phase(project_id: str, request: PhaseCreate, db: Session = Depends(get_db)):
    try:
        phase_id = await _run(store.create_phase, db, project_id, request)
        return {"success": True, "data": {"id": phase_id}}
    except ProjectNotFoundError as e:
        _raise_for_domain_error(e)
    except Exception as e:
        logger.exception("/projects/%s/phases failed: %s", project_id, e)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/projects/{project_id}/phases/{phase_id}/work-packages", status_code=status.HTTP_201_CREATED)
async def create_work_package(
    project_id: str,
    phase_id: str,
    request: WorkPackageCreate,
    db: Session = Depends(get_db),
):
    try:
        wp_id = await _run(store.create_work_package, db, project_id, phase_id, request)
        return {"success": True, "data": {"id": wp_id}}
    except TaskNotFoundError as e:
        _raise_for_domain_error(e)
    except Exception as e:
        logger.exception("/projects/%s/phases/%s/work-packages failed: %s", project_id, phase_id, e)
        raise HTTPException(status_code=500, detail=str(e))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.UVICORN_HOST, port=config.UVICORN_PORT)

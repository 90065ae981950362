"""Metrics API routes — anonymous play/share/add counters.

- POST /metrics {project_id, field} → atomic +1, returns counters
- GET /projects/{id}/metrics → current counters (hidden projects: owner only)
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from demoshare.auth.dependencies import Identity, get_identity
from demoshare.db.engine import get_db
from demoshare.errors import InvalidInput
from demoshare.schemas.library import MetricIncrement, MetricsEnvelope
from demoshare.services.metrics_service import METRIC_FIELDS, MetricsService
from demoshare.validation import parse_uuid

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> MetricsService:
    return MetricsService(db)


@router.post("/metrics", response_model=MetricsEnvelope)
async def increment_metric(body: MetricIncrement, svc: MetricsService = Depends(_svc)):
    if not body.project_id or not body.field:
        raise InvalidInput("project_id and field are required")
    project_id = parse_uuid(body.project_id, "project_id format")
    if body.field not in METRIC_FIELDS:
        raise InvalidInput(
            f"Invalid field. Must be one of: {', '.join(METRIC_FIELDS)}"
        )
    metrics = await svc.increment(project_id, body.field)
    return {"metrics": metrics}


@router.get("/projects/{project_id}/metrics", response_model=MetricsEnvelope)
async def get_metrics(
    project_id: str,
    identity: Identity = Depends(get_identity),
    svc: MetricsService = Depends(_svc),
):
    pid = parse_uuid(project_id, "project_id")
    caller = await identity.peek()
    metrics = await svc.read_metrics(pid, caller.id if caller else None)
    return {"metrics": metrics}

"""Nightly recompute trigger endpoint."""

from datetime import date
from typing import Any

from litestar import Router, post
from litestar.datastructures import State
from litestar.status_codes import HTTP_200_OK

from readiness_engine.services.batch import NightlyRecomputeService
from readiness_engine.services.scheduler import get_scheduler


@post("/batch/recompute", status_code=HTTP_200_OK)
async def trigger_recompute(state: State, as_of: date | None = None) -> dict[str, Any]:
    """Run the nightly recompute now.

    Goes through the scheduler when it is running so the run shows up in
    ``/health``. ``as_of`` recomputes a specific day directly.
    """
    scheduler = get_scheduler()
    if as_of is None and scheduler is not None and scheduler.is_running:
        return await scheduler.trigger_manual()

    summary = await NightlyRecomputeService(state.session_factory).run(as_of)
    return summary.to_dict()


batch_router = Router(path="/", route_handlers=[trigger_recompute], tags=["Batch"])

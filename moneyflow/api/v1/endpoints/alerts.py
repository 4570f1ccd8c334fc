"""Trigger endpoint for the cron caller."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from moneyflow.api import deps
from moneyflow.schemas import AlertRunRequest, AlertRunResponse
from moneyflow.services.alert_generator import AlertGenerator
from moneyflow.utils.exceptions import AlertRunError, handle_alert_run_error

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.post("/run", response_model=AlertRunResponse, dependencies=[Depends(deps.require_cron_secret)])
def run_alerts(
    payload: AlertRunRequest,
    generator: AlertGenerator = Depends(deps.get_alert_generator),
) -> AlertRunResponse:
    """Run the requested alert categories now and return per-category counts."""

    try:
        summary = generator.run(payload.category)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except AlertRunError as exc:
        raise handle_alert_run_error(exc) from exc
    return AlertRunResponse.model_validate(summary.as_dict())

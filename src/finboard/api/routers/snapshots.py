"""Balance snapshot and super contribution endpoints."""

from fastapi import APIRouter, Depends, Query

from finboard.api.deps import get_snapshot_service
from finboard.api.schemas import (
    SnapshotCreateRequest,
    SnapshotUpdateRequest,
    SnapshotResponse,
    ContributionRequest,
    ContributionResponse,
    as_float,
)
from finboard.domain.models import Contribution, Snapshot
from finboard.services import SnapshotService, SnapshotCreate, SnapshotUpdate, ContributionUpsert

router = APIRouter(tags=["snapshots"])


def _snapshot_to_response(snapshot: Snapshot) -> SnapshotResponse:
    return SnapshotResponse(
        id=snapshot.snapshot_id,
        holding_id=snapshot.holding_id,
        date=snapshot.snapshot_date,
        balance=as_float(snapshot.balance),
        currency=snapshot.currency,
        notes=snapshot.notes,
    )


def _contribution_to_response(contribution: Contribution) -> ContributionResponse:
    return ContributionResponse(
        id=contribution.contribution_id,
        holding_id=contribution.holding_id,
        date=contribution.contribution_date,
        employer_contrib=as_float(contribution.employer_contrib),
        employee_contrib=as_float(contribution.employee_contrib),
        notes=contribution.notes,
    )


@router.get("/snapshots", response_model=list[SnapshotResponse])
def list_snapshots(
    holding_id: str = Query(..., alias="holdingId"),
    service: SnapshotService = Depends(get_snapshot_service),
) -> list[SnapshotResponse]:
    """Snapshots for one holding, oldest first."""
    return [_snapshot_to_response(s) for s in service.list_snapshots(holding_id)]


@router.post("/snapshots", response_model=SnapshotResponse, status_code=201)
def create_snapshot(
    request: SnapshotCreateRequest,
    service: SnapshotService = Depends(get_snapshot_service),
) -> SnapshotResponse:
    """Record a balance; a second snapshot for the same date is a 409."""
    snapshot = service.create_snapshot(
        SnapshotCreate(
            holding_id=request.holding_id,
            snapshot_date=request.date,
            balance=request.balance,
            currency=request.currency,
            notes=request.notes,
        )
    )
    return _snapshot_to_response(snapshot)


@router.patch("/snapshots/{snapshot_id}", response_model=SnapshotResponse)
def update_snapshot(
    snapshot_id: str,
    request: SnapshotUpdateRequest,
    service: SnapshotService = Depends(get_snapshot_service),
) -> SnapshotResponse:
    snapshot = service.update_snapshot(
        snapshot_id,
        SnapshotUpdate(
            snapshot_date=request.date,
            balance=request.balance,
            currency=request.currency,
            notes=request.notes,
        ),
    )
    return _snapshot_to_response(snapshot)


@router.delete("/snapshots/{snapshot_id}", status_code=204)
def delete_snapshot(
    snapshot_id: str,
    service: SnapshotService = Depends(get_snapshot_service),
) -> None:
    service.delete_snapshot(snapshot_id)


@router.post("/snapshots/{snapshot_id}/restore", response_model=SnapshotResponse)
def restore_snapshot(
    snapshot_id: str,
    service: SnapshotService = Depends(get_snapshot_service),
) -> SnapshotResponse:
    return _snapshot_to_response(service.restore_snapshot(snapshot_id))


@router.get("/contributions", response_model=list[ContributionResponse])
def list_contributions(
    holding_id: str = Query(..., alias="holdingId"),
    service: SnapshotService = Depends(get_snapshot_service),
) -> list[ContributionResponse]:
    return [_contribution_to_response(c) for c in service.list_contributions(holding_id)]


@router.post("/contributions", response_model=ContributionResponse, status_code=201)
def upsert_contribution(
    request: ContributionRequest,
    service: SnapshotService = Depends(get_snapshot_service),
) -> ContributionResponse:
    """Create or replace the contribution for a super holding on a date."""
    contribution = service.upsert_contribution(
        ContributionUpsert(
            holding_id=request.holding_id,
            contribution_date=request.date,
            employer_contrib=request.employer_contrib,
            employee_contrib=request.employee_contrib,
            notes=request.notes,
        )
    )
    return _contribution_to_response(contribution)

"""REST API for rosters, weekly overrides and lineup recomputes."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from pydantic import ValidationError

from lineuplab.api.schemas import (
    OverridesPayload,
    RecomputeRequest,
    RecomputeResponse,
    RosterCreateRequest,
    RosterPatchRequest,
    WeekResponse,
)
from lineuplab.config.settings import load_settings
from lineuplab.errors import NoProjectionDataError, RosterNotFoundError, StoreUnavailableError
from lineuplab.ingest import HttpProjectionFeed, PlayerDirectory
from lineuplab.models import AdminOverrides, UserRoster, WeeklyLineup
from lineuplab.persistence import RosterStore
from lineuplab.recompute import LineupService
from lineuplab.week import current_nfl_week, season_for


def _default_service(store: RosterStore) -> LineupService:
    settings = load_settings()
    return LineupService(
        store,
        HttpProjectionFeed(settings),
        settings=settings,
        directory=PlayerDirectory(timeout=settings.fetch_timeout),
    )


def create_app(store: Optional[RosterStore] = None, service: Optional[LineupService] = None) -> FastAPI:
    app = FastAPI(title="lineuplab")
    store = store or (service.store if service is not None else RosterStore())
    service = service or _default_service(store)
    app.state.roster_store = store
    app.state.lineup_service = service

    def _roster_or_404(roster_id: str) -> UserRoster:
        try:
            return store.require_roster(roster_id)
        except RosterNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except StoreUnavailableError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/nfl/week", response_model=WeekResponse)
    async def nfl_week() -> WeekResponse:
        return WeekResponse(week=current_nfl_week(), season=season_for())

    @app.post("/rosters", response_model=UserRoster, status_code=201)
    async def create_roster(payload: RosterCreateRequest) -> UserRoster:
        try:
            return store.create_roster(**payload.model_dump())
        except (KeyError, ValidationError) as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except StoreUnavailableError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc

    @app.get("/rosters/{roster_id}", response_model=UserRoster)
    async def get_roster(roster_id: str) -> UserRoster:
        return _roster_or_404(roster_id)

    @app.patch("/rosters/{roster_id}", response_model=UserRoster)
    async def patch_roster(roster_id: str, payload: RosterPatchRequest) -> UserRoster:
        _roster_or_404(roster_id)
        try:
            return store.save_roster(roster_id, payload.model_dump(exclude_none=True))
        except RosterNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except (KeyError, ValidationError) as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except StoreUnavailableError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc

    @app.get("/overrides/{week}", response_model=AdminOverrides)
    async def get_overrides(week: int) -> AdminOverrides:
        try:
            return store.get_overrides(week)
        except StoreUnavailableError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc

    @app.put("/overrides/{week}", response_model=AdminOverrides)
    async def put_overrides(week: int, payload: OverridesPayload) -> AdminOverrides:
        try:
            return store.set_overrides(week, **payload.model_dump())
        except StoreUnavailableError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc

    @app.post("/rosters/{roster_id}/recompute", response_model=RecomputeResponse)
    def recompute(roster_id: str, payload: Optional[RecomputeRequest] = None) -> RecomputeResponse:
        payload = payload or RecomputeRequest()
        week = payload.week or current_nfl_week()
        season = payload.season or season_for()
        try:
            result = service.recompute(
                roster_id,
                week,
                season=season,
                notify=payload.notify,
                dry_run=payload.dry_run,
            )
        except RosterNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except NoProjectionDataError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except StoreUnavailableError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return RecomputeResponse(
            roster_id=roster_id,
            week=week,
            changed=result.changed,
            notified=result.notified,
            saved=result.saved,
            previous_hash=result.previous_hash,
            lineup=result.lineup,
        )

    @app.get("/rosters/{roster_id}/lineups/{week}", response_model=WeeklyLineup)
    async def get_lineup(roster_id: str, week: int) -> Any:
        _roster_or_404(roster_id)
        try:
            lineup = store.get_lineup(roster_id, week)
        except StoreUnavailableError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        if lineup is None:
            raise HTTPException(status_code=404, detail="Lineup not found")
        return lineup

    return app


__all__ = ["create_app"]

"""FastAPI application for the duplicate check."""

import logging
import threading
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from pydantic import BaseModel, Field

from ... import __version__
from ...config import MatchConfig
from ...matching.presenter import MatchDetail, RecordView, describe, paginate
from ...service import DuplicateCheckService, ScanResult
from ...store.adapter import CitizenStore

logger = logging.getLogger(__name__)


# ========== Request/Response Models ==========

class ScanRequest(BaseModel):
    min_confidence: Optional[int] = Field(
        None, ge=50, le=95, multiple_of=5,
        description="Minimum confidence; defaults to the configured threshold",
    )


class WarningResponse(BaseModel):
    record_id: int
    field: str
    value: str
    message: str


class ScanResponse(BaseModel):
    status: str
    min_confidence: int
    total_records: int
    pending_count: int
    reference_count: int
    excluded_count: int
    comparisons: int
    match_count: int
    elapsed_seconds: float
    warnings: List[WarningResponse]


class RecordResponse(BaseModel):
    id: int
    display_name: str
    birth_date: str
    status: str
    province: str
    lgu: str
    barangay: str


class MatchResponse(BaseModel):
    pending: RecordResponse
    reference: RecordResponse
    confidence_score: int
    confidence_label: str
    name_score: int
    birth_date_score: int


class MatchDetailResponse(MatchResponse):
    field_scores: Dict[str, int]
    birth_month_match: bool
    birth_day_match: bool
    birth_year_match: bool


class MatchPageResponse(BaseModel):
    page: int
    page_size: int
    total_items: int
    total_pages: int
    start_index: int
    end_index: int
    items: List[MatchResponse]


# ========== Conversion Helpers ==========

def _record_response(view: RecordView) -> RecordResponse:
    return RecordResponse(
        id=view.id,
        display_name=view.display_name,
        birth_date=view.birth_date,
        status=view.status,
        province=view.province,
        lgu=view.lgu,
        barangay=view.barangay,
    )


def _match_response(detail: MatchDetail) -> MatchResponse:
    scores = detail.candidate.field_scores
    return MatchResponse(
        pending=_record_response(detail.pending),
        reference=_record_response(detail.reference),
        confidence_score=detail.confidence_score,
        confidence_label=detail.confidence_label,
        name_score=scores.name_score,
        birth_date_score=scores.birth_date_score,
    )


def _scan_response(result: ScanResult) -> ScanResponse:
    stats = result.statistics
    return ScanResponse(
        status=result.status.value,
        min_confidence=result.config.min_confidence,
        total_records=stats.total_records,
        pending_count=stats.pending_count,
        reference_count=stats.reference_count,
        excluded_count=stats.excluded_count,
        comparisons=stats.comparisons,
        match_count=stats.match_count,
        elapsed_seconds=stats.elapsed_seconds,
        warnings=[
            WarningResponse(
                record_id=w.record_id, field=w.field, value=w.value, message=w.message
            )
            for w in result.warnings
        ],
    )


# ========== Application ==========

def create_app(service: Optional[DuplicateCheckService] = None) -> FastAPI:
    """
    Build the API.

    Args:
        service: Service to expose; when omitted one is created on first use
            from CITIZENMATCH_* environment settings
    """
    app = FastAPI(
        title="citizenmatch API",
        description="Duplicate citizen record detection for verification review",
        version=__version__,
    )
    app.state.service = service
    app.state.service_lock = threading.Lock()

    def get_service(request: Request) -> DuplicateCheckService:
        state = request.app.state
        with state.service_lock:
            if state.service is None:
                config = MatchConfig.from_env()
                if config.database_path is None:
                    raise HTTPException(
                        status_code=500, detail="CITIZENMATCH_DATABASE is not set"
                    )
                store = CitizenStore(config.database_path, page_size=config.address_page_size)
                state.service = DuplicateCheckService(store, config)
                logger.info(f"Opened registry database {config.database_path}")
        return state.service

    def require_scan(service: DuplicateCheckService) -> ScanResult:
        result = service.last_result
        if result is None:
            raise HTTPException(status_code=409, detail="No scan has been run yet")
        if not result.ok:
            raise HTTPException(status_code=503, detail=f"Last scan {result.status.value}: {result.error}")
        return result

    def scan_or_fail(result: ScanResult) -> ScanResponse:
        if not result.ok:
            raise HTTPException(status_code=503, detail=f"Scan {result.status.value}: {result.error}")
        return _scan_response(result)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": __version__}

    @app.post("/scan", response_model=ScanResponse)
    def run_scan(
        request: Optional[ScanRequest] = None,
        service: DuplicateCheckService = Depends(get_service),
    ):
        """Run a full scan, replacing the previous results."""
        min_confidence = request.min_confidence if request else None
        return scan_or_fail(service.scan(min_confidence))

    @app.post("/scan/refresh", response_model=ScanResponse)
    def refresh_scan(service: DuplicateCheckService = Depends(get_service)):
        """Re-run the scan with the last threshold."""
        return scan_or_fail(service.refresh())

    @app.get("/matches", response_model=MatchPageResponse)
    def list_matches(
        page: int = Query(1, ge=1),
        page_size: Optional[int] = Query(None, ge=1, le=500),
        service: DuplicateCheckService = Depends(get_service),
    ):
        """One page of ranked matches from the last scan."""
        result = require_scan(service)
        match_page = paginate(
            result.matches,
            page=page,
            page_size=page_size or service.config.page_size,
            addresses=result.addresses,
        )
        return MatchPageResponse(
            page=match_page.page,
            page_size=match_page.page_size,
            total_items=match_page.total_items,
            total_pages=match_page.total_pages,
            start_index=match_page.start_index,
            end_index=match_page.end_index,
            items=[_match_response(detail) for detail in match_page.items],
        )

    @app.get("/matches/{pending_id}/{reference_id}", response_model=MatchDetailResponse)
    def get_match(
        pending_id: int,
        reference_id: int,
        service: DuplicateCheckService = Depends(get_service),
    ):
        """Full field breakdown of one match."""
        result = require_scan(service)
        try:
            candidate = result.find(pending_id, reference_id)
        except KeyError:
            raise HTTPException(
                status_code=404,
                detail=f"No match between {pending_id} and {reference_id}",
            )

        detail = describe(candidate, result.addresses)
        scores = detail.candidate.field_scores
        summary = _match_response(detail)
        return MatchDetailResponse(
            **summary.model_dump(),
            field_scores=scores.as_dict(),
            birth_month_match=scores.birth_month_match,
            birth_day_match=scores.birth_day_match,
            birth_year_match=scores.birth_year_match,
        )

    return app


app = create_app()

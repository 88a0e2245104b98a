"""FastAPI routes for the Mega-Sena analytics service."""

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import List, Optional
from datetime import datetime
import logging

from api.schemas import (
    FrequencyResponse, NumberFrequency, TopNumber, TopNumbersResponse,
    SimulationConfigRequest, SimulationStatusResponse, UniformityResponse,
    HistorySummaryResponse, PrizeTierSchema, RefreshResponse,
    CombinationsResponse, ComboEntrySchema,
    SubsetQueryRequest, SubsetQueryResponse, SubsetHitSchema,
    OddsRow, ErrorResponse,
)
from analysis.combinations import CoOccurrenceAnalyzer
from analysis.history import HistorySnapshot, history_store
from analysis.statistics import frequency_frame, official_odds_table, uniformity_test
from analysis.subset_query import SubsetQueryEngine
from config.settings import settings, NUMBERS_PER_DRAW, NUMBER_RANGE_MAX
from models.draw_models import InvalidCandidateSetError
from scraping.provider import DataProviderError, megasena_provider
from simulation.frequency import FrequencyAggregator
from simulation.scheduler import SimulationScheduler, SimulationSnapshot
from utils.helpers import clamp, parse_pasted_numbers
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Mega-Sena Analytics",
    description="Historical statistics, number group analysis and a 6x60 draw simulator",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Rate limiting
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in (settings.cors_origins or "*").split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Core services
simulator = SimulationScheduler()
analyzer = CoOccurrenceAnalyzer()
query_engine = SubsetQueryEngine()
provider = megasena_provider


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}")
    body = ErrorResponse(detail="Internal server error", status_code=500)
    return JSONResponse(status_code=500, content=body.model_dump(mode='json'))


def _require_history() -> HistorySnapshot:
    snapshot = history_store.snapshot()
    if snapshot is None:
        raise HTTPException(status_code=409, detail="History not loaded; call POST /history/refresh first")
    return snapshot


def _frequency_response(aggregator: FrequencyAggregator) -> FrequencyResponse:
    frame = frequency_frame(aggregator)
    total_numbers = int(frame['count'].sum())
    return FrequencyResponse(
        total_draws=total_numbers // NUMBERS_PER_DRAW,
        total_numbers=total_numbers,
        frequencies=[
            NumberFrequency(number=int(r.number), label=r.label, count=int(r.count), percent=float(r.percent))
            for r in frame.itertuples(index=False)
        ],
    )


def _status_response(snapshot: SimulationSnapshot) -> SimulationStatusResponse:
    return SimulationStatusResponse(
        run_mode=snapshot.run_mode.value,
        running=snapshot.running,
        total_generated=snapshot.total_generated,
        frequency_sum=snapshot.frequency_sum,
        last_draw=list(snapshot.last_draw),
        top=[TopNumber(number=n, count=c) for n, c in snapshot.top],
        batch_size=snapshot.batch_size,
        tick_interval_ms=snapshot.tick_interval_ms,
        limit_enabled=snapshot.limit_enabled,
        limit_total=snapshot.limit_total,
        progress=snapshot.progress,
        ticks=snapshot.ticks,
    )


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint for health check."""
    return {
        "message": "Mega-Sena Analytics API",
        "status": "running",
        "version": "1.0.0"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    snapshot = history_store.snapshot()
    return {
        "status": "healthy",
        "history_loaded": snapshot is not None,
        "history_draws": snapshot.dataset.total_draws if snapshot else 0,
        "simulation": simulator.run_mode.value,
        "timestamp": datetime.now().isoformat()
    }


# ----------------------------------------------------------------------
# History
# ----------------------------------------------------------------------
@app.post("/history/refresh", response_model=RefreshResponse, tags=["History"])
@limiter.limit(settings.rate_limit_refresh)
def refresh_history(request: Request):
    """Download the official history and replace the loaded dataset."""
    try:
        dataset = provider.fetch_dataset()
    except DataProviderError as e:
        logger.error(f"History refresh failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    history_store.replace(dataset)
    return RefreshResponse(
        message="History loaded",
        total_draws=dataset.total_draws,
        last_contest=dataset.latest.contest or dataset.last_contest,
    )


@app.get("/history/summary", response_model=HistorySummaryResponse, tags=["History"])
async def history_summary():
    """Last official contest, prize breakdown and next contest info."""
    snapshot = _require_history()
    dataset = snapshot.dataset
    latest = dataset.latest
    last_contest = latest.contest or dataset.last_contest
    return HistorySummaryResponse(
        loaded_at=snapshot.loaded_at,
        total_draws=dataset.total_draws,
        excluded_contests=dataset.invalid_contests,
        last_contest=last_contest,
        last_date=latest.date or (dataset.date_for(last_contest) if last_contest else None),
        last_numbers=list(latest.numbers),
        prize_breakdown=[
            PrizeTierSchema(tier=p.tier, winners=p.winners, prize=p.prize) for p in latest.prize_breakdown
        ],
        accumulated=dataset.next_contest.accumulated,
        estimated_prize=dataset.next_contest.estimated_prize,
        next_date=dataset.next_contest.next_date,
    )


@app.get("/history/frequencies", response_model=FrequencyResponse, tags=["History"])
def history_frequencies():
    """How many times each number was drawn in the history."""
    return _frequency_response(_require_history().frequency)


@app.get("/history/top", response_model=TopNumbersResponse, tags=["History"])
async def history_top(n: int = Query(settings.default_top_n, description="Top N (clamped to 1-60)")):
    """Most drawn numbers, ties broken by the lower number."""
    snapshot = _require_history()
    n = clamp(n, 1, NUMBER_RANGE_MAX)
    return TopNumbersResponse(
        requested=n,
        numbers=[TopNumber(number=num, count=c) for num, c in snapshot.frequency.ranking(n)],
    )


@app.get("/history/combinations", response_model=CombinationsResponse, tags=["History"])
def history_combinations(
    top_n: int = Query(settings.default_top_n, description="Top N numbers used as pool (clamped to 1-60)"),
    rows: Optional[int] = Query(None, ge=1, description="Entries per group size (default from settings)"),
):
    """Groups of 2-6 top numbers that were drawn together most often."""
    snapshot = _require_history()
    top_n = clamp(top_n, 1, NUMBER_RANGE_MAX)
    rows = rows or settings.combo_rows_per_k

    result = analyzer.analyze(snapshot.dataset, snapshot.frequency.top_k(top_n))
    return CombinationsResponse(
        top_n=top_n,
        pool=list(result.pool),
        truncated=result.truncated,
        pool_cap=analyzer.pool_cap,
        total_draws=result.total_draws,
        combinations={
            k: [
                ComboEntrySchema(combo=list(e.combo), key=e.key, count=e.count,
                                 percent_of_total=e.percent_of_total)
                for e in result.top(k, rows)
            ]
            for k in result.by_k
        },
    )


@app.post("/history/query", response_model=SubsetQueryResponse, tags=["History"])
@limiter.limit(settings.rate_limit_query)
def history_query(request: Request, body: SubsetQueryRequest):
    """Contests whose draw contains every given number."""
    snapshot = _require_history()

    values: List = list(body.numbers)
    for i, token in enumerate(parse_pasted_numbers(body.text or "")):
        if i < len(values):
            values[i] = token
        else:
            values.append(token)

    try:
        result = query_engine.query(snapshot.dataset, values)
    except InvalidCandidateSetError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return SubsetQueryResponse(
        numbers=list(result.numbers),
        normalized_key=result.normalized_key,
        occurred=result.occurred,
        hits=[SubsetHitSchema(contest=h.contest, date=h.date) for h in result.hits],
    )


@app.get("/odds", response_model=List[OddsRow], tags=["History"])
async def odds_table():
    """Jackpot odds for bets of 6 to 20 numbers."""
    return [OddsRow(**row) for row in official_odds_table()]


# ----------------------------------------------------------------------
# Simulation
# ----------------------------------------------------------------------
@app.get("/simulation", response_model=SimulationStatusResponse, tags=["Simulation"])
async def simulation_status():
    return _status_response(simulator.snapshot())


@app.post("/simulation/start", response_model=SimulationStatusResponse, tags=["Simulation"])
def simulation_start():
    return _status_response(simulator.start())


@app.post("/simulation/stop", response_model=SimulationStatusResponse, tags=["Simulation"])
async def simulation_stop():
    return _status_response(simulator.stop())


@app.post("/simulation/reset", response_model=SimulationStatusResponse, tags=["Simulation"])
def simulation_reset():
    return _status_response(simulator.reset())


@app.put("/simulation/config", response_model=SimulationStatusResponse, tags=["Simulation"])
def simulation_config(config: SimulationConfigRequest):
    """Change batch size, interval and limit; values are clamped to their bounds."""
    return _status_response(simulator.configure(
        batch_size=config.batch_size,
        tick_interval_ms=config.tick_interval_ms,
        limit_enabled=config.limit_enabled,
        limit_total=config.limit_total,
    ))


@app.get("/simulation/frequencies", response_model=FrequencyResponse, tags=["Simulation"])
async def simulation_frequencies():
    return _frequency_response(simulator.aggregator)


@app.get("/simulation/uniformity", response_model=UniformityResponse, tags=["Simulation"])
def simulation_uniformity():
    """Chi-square check of the simulated counts."""
    report = uniformity_test(simulator.aggregator)
    if report is None:
        raise HTTPException(status_code=409, detail="No simulated draws yet")
    return UniformityResponse(**report)

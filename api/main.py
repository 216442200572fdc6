import logging
import os
import random
from datetime import datetime
from typing import Optional, Dict, Any, List

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from api.puzzles.ambiguity_v1 import find_ambiguous_cards, has_no_ambiguity
from api.puzzles.constants import (
    DIFFICULTY_CONFIG,
    DIFFICULTY_MEDIUM,
    ENGINE_VERSION,
    IMPOSTOR_DIMENSIONS,
    PREDICATE_LIBRARY_VERSION,
    UnknownDifficultyError,
)
from api.puzzles.guesser_builder_v1 import build_guesser_puzzle
from api.puzzles.impostor_builder_v1 import ImpostorFallbackUnavailableError, build_impostor_round
from api.puzzles.predicates_v1 import all_predicates, predicates_by_dimension
from catalog.db import CatalogNotFoundError
from catalog.provider import SUGGEST_DEFAULT_LIMIT, CatalogProvider, EntityCatalog, SqliteCatalogProvider

logger = logging.getLogger(__name__)


class GuesserPuzzleRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    seed: Optional[int] = Field(default=None, description="Optional RNG seed for a repeatable puzzle")


class ImpostorRoundRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    difficulty: str = DIFFICULTY_MEDIUM
    last_dimension: Optional[str] = None
    seed: Optional[int] = Field(default=None, description="Optional RNG seed for a repeatable round")


class ImpostorCheckRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    cards: List[int] = Field(..., description="Entity ids in lineup order")
    impostor_index: int


class ImpostorCheckResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: str
    has_no_ambiguity: bool
    ambiguous_cards: List[Dict[str, Any]] = Field(default_factory=list)


_catalog_provider: CatalogProvider = SqliteCatalogProvider()


def get_catalog() -> EntityCatalog:
    return _catalog_provider.get_catalog()


def _rng_for(seed: Optional[int]) -> random.Random:
    return random.Random(seed) if seed is not None else random.Random()


def _error_payload(unknown: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "status": "ERROR",
        "unknowns": [unknown],
    }


app = FastAPI(title="Royale Puzzle Engine", version=ENGINE_VERSION)

DEV_CORS = os.getenv("ROYALE_ENGINE_DEV_CORS", "0") == "1"

if DEV_CORS:
    dev_ports = range(3000, 3006)
    allow_origins = [f"http://127.0.0.1:{port}" for port in dev_ports] + [
        f"http://localhost:{port}" for port in dev_ports
    ]
else:
    allow_origins = [
        "http://127.0.0.1:3000",
        "http://localhost:3000",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CatalogNotFoundError)
def catalog_not_found_handler(request: Request, exc: CatalogNotFoundError):
    logger.error("catalog unavailable: %s", exc)
    return JSONResponse(status_code=503, content=_error_payload(exc.to_unknown()))


@app.get("/health")
def health():
    return {
        "ok": True,
        "engine_version": ENGINE_VERSION,
        "time": datetime.utcnow().isoformat(),
    }


@app.get("/catalog/summary")
def catalog_summary(catalog: EntityCatalog = Depends(get_catalog)):
    return {
        "status": "OK",
        "summary": catalog.summary(),
    }


@app.get("/predicates")
def predicates():
    return {
        "status": "OK",
        "version": PREDICATE_LIBRARY_VERSION,
        "predicates": [p.to_payload() for p in all_predicates()],
        "by_dimension": {
            dimension: [p.predicate_id for p in group]
            for dimension, group in predicates_by_dimension().items()
        },
    }


@app.get("/cards/suggest")
def cards_suggest(
    q: str = "",
    limit: int = SUGGEST_DEFAULT_LIMIT,
    catalog: EntityCatalog = Depends(get_catalog),
):
    safe_limit = max(1, min(int(limit), 25))
    return {
        "query": q,
        "limit": safe_limit,
        "results": [{"id": e.id, "name": e.name} for e in catalog.suggest(q, limit=safe_limit)],
    }


@app.post("/puzzles/guesser")
def puzzles_guesser(req: GuesserPuzzleRequest, catalog: EntityCatalog = Depends(get_catalog)):
    result = build_guesser_puzzle(catalog, rng=_rng_for(req.seed))
    return result.to_payload()


@app.post("/puzzles/impostor")
def puzzles_impostor(req: ImpostorRoundRequest, catalog: EntityCatalog = Depends(get_catalog)):
    if req.difficulty not in DIFFICULTY_CONFIG:
        return _error_payload(UnknownDifficultyError(req.difficulty).to_unknown())
    if req.last_dimension is not None and req.last_dimension not in IMPOSTOR_DIMENSIONS:
        return _error_payload(
            {
                "code": "UNKNOWN_DIMENSION",
                "last_dimension": req.last_dimension,
                "allowed": list(IMPOSTOR_DIMENSIONS),
            }
        )

    try:
        round_ = build_impostor_round(
            catalog,
            req.difficulty,
            last_dimension=req.last_dimension,
            rng=_rng_for(req.seed),
        )
    except ImpostorFallbackUnavailableError as exc:
        logger.error("impostor generation failed: %s", exc)
        return _error_payload(exc.to_unknown())

    return {
        "status": "OK",
        "difficulty": req.difficulty,
        "round": round_.to_payload(),
    }


@app.post("/puzzles/impostor/check", response_model=ImpostorCheckResponse)
def puzzles_impostor_check(req: ImpostorCheckRequest, catalog: EntityCatalog = Depends(get_catalog)):
    cards = [catalog.get(card_id) for card_id in req.cards]
    missing = [card_id for card_id, card in zip(req.cards, cards) if card is None]
    if missing or not (0 <= req.impostor_index < len(cards)):
        return ImpostorCheckResponse(
            status="ERROR",
            has_no_ambiguity=False,
            ambiguous_cards=[{"code": "INVALID_LINEUP", "missing_ids": missing}],
        )

    ambiguous = find_ambiguous_cards(cards, req.impostor_index)
    return ImpostorCheckResponse(
        status="OK",
        has_no_ambiguity=has_no_ambiguity(cards, req.impostor_index),
        ambiguous_cards=[
            {"index": index, "card_id": cards[index].id, "attribute": attribute}
            for index, attribute in ambiguous
        ],
    )

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from stakes_ledger import runtime
from stakes_ledger.api.saved import router as saved_router
from stakes_ledger.api.sessions import router as sessions_router
from stakes_ledger.config import settings
from stakes_ledger.domain import VARIANTS

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # pending debounced saves would otherwise die with their daemon timers
    runtime.shutdown()


app = FastAPI(title="Stakes Ledger API", lifespan=lifespan)
app.include_router(sessions_router)
app.include_router(saved_router)


@app.get("/variants", tags=["variants"])
def list_variants() -> list[dict[str, object]]:
    return [
        {
            "variant": definition.variant.value,
            "title": definition.title,
            "min_players": definition.setup_type.min_players,
            "max_players": definition.setup_type.max_players,
            "required_inputs": list(definition.required_inputs),
        }
        for definition in VARIANTS.values()
    ]

"""FastAPI application exposing the Split Bills endpoints."""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from splitbills import __version__
from splitbills.config import get_settings
from splitbills.logging import setup_logger

from . import crud, database, schemas

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def allowed_payers() -> Optional[tuple[str, ...]]:
    """Dependency returning the accepted payer names when strict mode is on."""
    settings = get_settings()
    return settings.participants if settings.strict_payers else None


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logger("splitbills")
    database.init_db()
    logger.info("Split Bills API ready (database: %s)", database.engine.url.render_as_string(hide_password=True))
    yield


app = FastAPI(title="Split Bills API", version=__version__, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
router = APIRouter(prefix=API_PREFIX)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=schemas.ErrorRead(error=message).model_dump())


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - started) * 1000, 2)
    logger.info(
        "%s %s -> %s",
        request.method,
        request.url.path,
        response.status_code,
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    return response


@app.exception_handler(crud.ValidationError)
async def handle_validation_error(_: Request, exc: crud.ValidationError) -> JSONResponse:
    logger.warning("Rejected transaction payload: %s", exc)
    return _error(status.HTTP_400_BAD_REQUEST, str(exc))


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Malformed request: %s", exc.errors())
    return _error(status.HTTP_400_BAD_REQUEST, "Invalid request body")


@app.exception_handler(crud.NotFoundError)
async def handle_not_found(_: Request, exc: crud.NotFoundError) -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, str(exc))


@app.exception_handler(crud.PersistenceError)
async def handle_persistence_error(_: Request, exc: crud.PersistenceError) -> JSONResponse:
    logger.error("Persistence failure: %s (%r)", exc, exc.__cause__)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


@app.exception_handler(Exception)
async def handle_unexpected_error(_: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled server error", exc_info=exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@app.get("/", tags=["system"])
def index() -> Dict[str, Any]:
    return {
        "message": "Split Bills backend is running!",
        "endpoints": {
            "health": f"{API_PREFIX}/health",
            "test": f"{API_PREFIX}/test",
            "transactions": f"{API_PREFIX}/transactions",
        },
    }


@router.get("/transactions", response_model=List[schemas.TransactionRead])
def list_transactions(db: Session = Depends(database.get_db)) -> List[schemas.TransactionRead]:
    transactions = crud.list_transactions(db)
    logger.debug("Fetched %d transactions", len(transactions))
    return transactions


@router.post(
    "/transactions",
    response_model=schemas.TransactionRead,
    status_code=status.HTTP_201_CREATED,
)
def create_transaction(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(database.get_db),
    payers: Optional[tuple[str, ...]] = Depends(allowed_payers),
) -> schemas.TransactionRead:
    return crud.create_transaction(db, payload, allowed_payers=payers)


@router.put("/transactions/{transaction_id}", response_model=schemas.TransactionRead)
def update_transaction(
    transaction_id: int,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(database.get_db),
    payers: Optional[tuple[str, ...]] = Depends(allowed_payers),
) -> schemas.TransactionRead:
    return crud.update_transaction(db, transaction_id, payload, allowed_payers=payers)


@router.delete("/transactions/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(transaction_id: int, db: Session = Depends(database.get_db)) -> Response:
    crud.delete_transaction(db, transaction_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/health", response_model=schemas.HealthRead, tags=["system"])
def healthcheck() -> schemas.HealthRead:
    return schemas.HealthRead(status="OK", message="Split Bills API is running!")


@router.get("/test", tags=["system"])
def connectivity_test(db: Session = Depends(database.get_db)) -> JSONResponse:
    report = crud.connectivity_test(db)
    if not report.ok:
        body = schemas.ConnectivityRead(status="ERROR", message=report.message)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(by_alias=True, exclude_none=True),
        )
    body = schemas.ConnectivityRead(
        status="OK",
        message=report.message,
        transaction_count=report.transaction_count,
    )
    return JSONResponse(content=body.model_dump(by_alias=True))


app.include_router(router)


def main() -> None:
    """Entrypoint for running the API server."""
    import uvicorn

    settings = get_settings()
    setup_logger("splitbills")
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()

import logging
import math
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from darts_server.db import redis
from darts_server.errors import DartsError, TooFastError, ValidationError
from darts_server.load_settings import log_level
from darts_server.models.dc_models import ErrorResponseModel
from darts_server.routers import game
from darts_server.services.preview import scheduler

logging.basicConfig(level=log_level)


@asynccontextmanager
async def lifespan(app):
    """Start the scheduler that runs preview notifications off the request path.
    This function is called to start the server.
    """
    scheduler.start()
    logging.info("Start Server")
    try:
        yield
    finally:
        scheduler.shutdown(wait=False)
        await redis.aclose()
        logging.info("Stop Server")


app = FastAPI(lifespan=lifespan)
app.include_router(game.game_router)


@app.exception_handler(DartsError)
async def darts_error_handler(request: Request, exc: DartsError) -> JSONResponse:
    logging.info(f"{request.method} {request.url.path} rejected: {exc}")
    body = ErrorResponseModel(error=exc.user_message, code=exc.code)
    headers = None
    if isinstance(exc, TooFastError):
        body.retry_after_ms = exc.retry_after_ms
        headers = {"Retry-After": str(max(1, math.ceil(exc.retry_after_ms / 1000)))}
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    reasons = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return await darts_error_handler(request, ValidationError(f"Invalid request: {reasons}"))


# if __name__ == "__main__":
#     uvicorn.run(app, host="0.0.0.0", port=8080)

"""
FastAPI application for the Lana assistant.
HTTP API for the web client under /api, Telegram webhook under /api/v1/telegram.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import config
from app.api.routes import MissingUserError
from app.api.routes import router as api_router
from app.api.telegram import router as telegram_router
from app.core.logger import configure_logging

logger = configure_logging(config.LOG_LEVEL)

if not config.API_KEY:
    logger.warning("CONFIG|missing|API_KEY|classification will fall back to chat")
if not config.BOT_TOKEN:
    logger.warning("CONFIG|missing|BOT_TOKEN|telegram replies disabled")

# Create FastAPI app
app = FastAPI(
    title="Lana Assistant",
    description="Natural-language tasks, budget, planner and notes for Telegram and the web app",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MissingUserError)
async def missing_user_handler(request: Request, exc: MissingUserError):
    return JSONResponse(status_code=400, content={"error": "User ID required"})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning("API|invalid_body|path=%s|errors=%d", request.url.path, len(exc.errors()))
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


app.include_router(api_router, prefix="/api")
app.include_router(telegram_router, prefix="/api/v1/telegram")


# Health check
@app.get("/")
async def root():
    return {"status": "ok", "service": "lana-assistant"}


@app.get("/health")
async def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=config.PORT)

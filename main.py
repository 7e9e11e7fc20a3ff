# main.py

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from tasks_api.config import ALLOWED_ORIGINS, LOG_LEVEL
from tasks_api.routes import auth_router, router

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

REQUEST_LOCATIONS = {"body", "query", "path", "header", "cookie"}


def field_name(loc) -> str:
    """Error location without its leading request section, e.g. ("query", "startDate") -> "startDate"."""
    if loc and loc[0] in REQUEST_LOCATIONS:
        loc = loc[1:]
    return ".".join(str(part) for part in loc)


app = FastAPI(title="Task Manager API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": field_name(error["loc"]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    logger.info("Rejected %s %s: %s", request.method, request.url.path, errors)
    return JSONResponse(status_code=400, content={"message": "Validation failed", "errors": errors})


app.include_router(router)
app.include_router(auth_router)


# Health check endpoint
@app.get("/")
async def root():
    return {"message": "Task Manager API"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)

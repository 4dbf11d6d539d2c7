from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from pagewiki.core.db import init_db
from pagewiki.core.errors import APIError
from pagewiki.log_utils import inject_request_id, setup_logging
from pagewiki.routers.api import api_router


load_dotenv()
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Page Wiki", version="0.1.0", lifespan=lifespan)
app.include_router(api_router)


@app.middleware("http")
async def add_req_id(request, call_next):
    return await inject_request_id(request, call_next)


@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code, "message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        where = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{where}: {err.get('msg')}" if where else str(err.get("msg")))
    return JSONResponse(
        status_code=400,
        content={"error": "validation_error", "message": "; ".join(problems) or "Invalid request"},
    )

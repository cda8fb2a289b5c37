from fastapi import FastAPI
import uvicorn
from fastapi.middleware.cors import CORSMiddleware
from lms.routes.auth_routes import auth_routes
from lms.routes.curriculum_routes import curriculum_routes
from lms.routes.dashboard_routes import dashboard_routes
from lms.routes.module_routes import module_routes
from lms.config import create_db, settings
from lms.utils.errors import CurriculumError
from lms.utils.logger import configure_logging, set_request_id, clear_request_id
from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from starlette.responses import Response, JSONResponse
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR, HTTP_503_SERVICE_UNAVAILABLE
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException

app = FastAPI(title="LMS Curriculum API")
logger = configure_logging()
create_db()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_logger(request: Request, call_next):
    rid = set_request_id(request.headers.get("x-request-id"))
    try:
        logger.info("request start method=%s path=%s", request.method, request.url.path)
        response: Response = await call_next(request)
        logger.info("request end status=%s method=%s path=%s", response.status_code, request.method, request.url.path)
        response.headers["x-request-id"] = rid
        return response
    except Exception:
        logger.exception("request error method=%s path=%s", request.method, request.url.path)
        raise
    finally:
        clear_request_id()


@app.exception_handler(CurriculumError)
async def curriculum_exception_handler(request: Request, exc: CurriculumError) -> JSONResponse:
    # Store failures are transient: the client re-fetches authoritative state.
    if exc.status_code >= 500:
        logger.error("store error method=%s path=%s detail=%s cause=%r", request.method, request.url.path, exc.detail, exc.__cause__)
    else:
        logger.warning("request rejected status=%s method=%s path=%s detail=%s", exc.status_code, request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(SQLAlchemyError)
async def store_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("unhandled store error method=%s path=%s", request.method, request.url.path)
    return JSONResponse(status_code=HTTP_503_SERVICE_UNAVAILABLE, content={"detail": "Store unavailable, please retry"})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("http error status=%s method=%s path=%s detail=%s", exc.status_code, request.method, request.url.path, exc.detail)
    else:
        logger.warning("http error status=%s method=%s path=%s detail=%s", exc.status_code, request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("validation error method=%s path=%s errors=%s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Never leak internal exception details to clients.
    logger.exception("unhandled error method=%s path=%s", request.method, request.url.path)
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error"},
    )


@app.get("/")
def read_root():
    return {"message": "LMS is Healthy"}

app.include_router(auth_routes, prefix="/auth")
app.include_router(curriculum_routes, prefix="/lms")
app.include_router(module_routes, prefix="/lms")
app.include_router(dashboard_routes, prefix="/lms")

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)

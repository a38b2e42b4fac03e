from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

# Import the conversion router
from converter import __version__
from converter.router import router as convert_router

# Import runtime configuration
from converter.config import AppConfig

# Import centralized error handling
from converter.utils.error_handling import create_error_response, ErrorCode

# Import centralized logging configuration
from converter.utils.logging_config import get_logger


# Set up logging
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: log the effective limits on startup."""
    logger.info(
        f"Converter API {__version__} starting "
        f"(max upload {AppConfig.get_max_upload_bytes()} bytes, "
        f"max image {AppConfig.get_max_image_pixels()} pixels)"
    )
    yield
    logger.info("Converter API shutting down")


app = FastAPI(title="File Converter API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=AppConfig.get_cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Conversion-Message", "X-Files-Converted", "X-Files-Failed"],
)

# Include the conversion router
app.include_router(convert_router)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed form data in the same envelope as every other failure."""
    logger.info(f"Malformed request to {request.url.path}: {exc.errors()}")
    return create_error_response(ErrorCode.INVALID_PARAMETER, message="Invalid request parameters")


@app.get("/ping")
async def general_ping():
    return {"success": True, "data": "PONG!"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host="0.0.0.0", port=AppConfig.get_port())

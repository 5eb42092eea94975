"""FastAPI application."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI, UploadFile, File, Form, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from facematch.api.schemas import (
    MatchRequest, MatchResponse, HealthResponse, ReloadResponse,
    ReferenceInfo, ReferenceListResponse, AddReferenceResponse
)
from facematch.services.match_service import MatchService
from facematch.utils.config_loader import load_config, get_config
from facematch.exceptions import (
    DimensionMismatchError, NoFingerprintError, StoreUnavailableError, UnsupportedFormatError
)

load_config()
cfg = get_config()

logging.basicConfig(level=cfg.get("logging", {}).get("level", "INFO"))
logger = logging.getLogger(__name__)


def validate_path(path: str, allowed_dirs: list[str]) -> bool:
    """Validate path is within allowed directories (prevent path traversal)."""
    resolved = Path(path).resolve()
    for allowed in allowed_dirs:
        allowed_resolved = Path(allowed).resolve()
        try:
            resolved.relative_to(allowed_resolved)
            return True
        except ValueError:
            continue
    return False


def _decision_response(decision) -> MatchResponse:
    return MatchResponse(**decision.to_dict())


def create_app(service: MatchService | None = None) -> FastAPI:
    """Build the API around one MatchService; its store is loaded on startup."""
    service = service or MatchService()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        count = service.reload()
        logger.info(f"Face Recognition Service ready with {count} faces from {service.reference_dir}")
        yield

    app = FastAPI(
        title="Face Match API",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.service = service

    # Configurable CORS
    allowed_origins = cfg.get("api", {}).get("allowed_origins", ["http://localhost:3000"])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    max_size = cfg.get("files", {}).get("max_size_mb", 10) * 1024 * 1024

    @app.get("/health", response_model=HealthResponse)
    async def health():
        """Health check endpoint."""
        return HealthResponse()

    @app.post("/match", response_model=MatchResponse, response_model_exclude_none=True)
    async def match(body: MatchRequest | None = None):
        """Match an image on the server's filesystem."""
        if body is None or not body.imagePath:
            return JSONResponse(status_code=400, content={"error": "imagePath is required"})

        allowed_dirs = cfg.get("storage", {}).get("allowed_directories") or []
        if allowed_dirs and not validate_path(body.imagePath, allowed_dirs):
            logger.warning(f"Path traversal attempt: {body.imagePath}")
            raise HTTPException(403, "Access to path not allowed")

        try:
            decision = service.match_file(body.imagePath)
        except DimensionMismatchError as e:
            logger.error(f"Fingerprint store corrupted: {e}")
            return JSONResponse(status_code=500, content={"error": str(e)})

        logger.info(f"Match for {body.imagePath}: {decision.outcome.value}")
        return _decision_response(decision)

    @app.post("/match/upload", response_model=MatchResponse, response_model_exclude_none=True)
    async def match_upload(file: UploadFile = File(...)):
        """Match an uploaded image."""
        content_type = file.content_type or ""
        if not content_type.startswith("image/"):
            raise HTTPException(400, "File must be an image")

        # Read with size limit
        content = await file.read(max_size + 1)
        if len(content) > max_size:
            raise HTTPException(413, f"File too large (max {max_size // (1024*1024)}MB)")

        try:
            decision = service.match(content, len(content), file.filename or "upload")
        except DimensionMismatchError as e:
            logger.error(f"Fingerprint store corrupted: {e}")
            return JSONResponse(status_code=500, content={"error": str(e)})

        logger.info(f"Match for upload {file.filename}: {decision.outcome.value}")
        return _decision_response(decision)

    @app.post("/reload", response_model=ReloadResponse)
    async def reload():
        """Rebuild the fingerprint store from the reference directory."""
        count = service.reload()
        return ReloadResponse(count=count)

    @app.get("/references", response_model=ReferenceListResponse)
    async def list_references():
        """List reference images."""
        try:
            images = service.list_references()
        except StoreUnavailableError as e:
            logger.error(f"Listing failed: {e}")
            raise HTTPException(503, str(e))
        return ReferenceListResponse(
            count=len(images),
            references=[
                ReferenceInfo(filename=i.filename, size=i.size, loaded=i.loaded)
                for i in images
            ]
        )

    @app.post("/references", response_model=AddReferenceResponse)
    async def add_reference(file: UploadFile = File(...), name: str | None = Form(None)):
        """Add an uploaded image to the reference directory."""
        content = await file.read(max_size + 1)
        if len(content) > max_size:
            raise HTTPException(413, f"File too large (max {max_size // (1024*1024)}MB)")

        try:
            filename = service.add_reference(content, name)
        except (UnsupportedFormatError, NoFingerprintError) as e:
            logger.warning(f"Rejected reference upload: {e}")
            return JSONResponse(
                status_code=400,
                content=AddReferenceResponse(success=False, error=str(e)).model_dump()
            )
        except StoreUnavailableError as e:
            logger.error(f"Reference directory not writable: {e}")
            return JSONResponse(
                status_code=409,
                content=AddReferenceResponse(success=False, error=str(e)).model_dump()
            )

        logger.info(f"Added reference {filename}")
        return AddReferenceResponse(success=True, filename=filename)

    @app.delete("/references/{filename}")
    async def remove_reference(filename: str):
        """Delete a reference image."""
        try:
            removed = service.remove_reference(filename)
        except StoreUnavailableError as e:
            raise HTTPException(409, str(e))
        if not removed:
            raise HTTPException(404, f"Reference not found: {filename}")
        return {"message": f"Removed {filename}"}

    return app


app = create_app()

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from astro_layouts.blueprint import LayoutBlueprint
from astro_layouts.compiler import compile_astro
from astro_layouts.config import LOG_LEVEL
from astro_layouts.exceptions import (
    InvalidLayoutPathError,
    LayoutNotFoundError,
    LayoutValidationError,
    RevisionConflictError,
)
from astro_layouts.layout_store import store
from astro_layouts.markerize import markerize_astro
from astro_layouts.parser import parse_astro_to_blueprint
from astro_layouts.presets_manager import presets_manager
from astro_layouts.validator import validate_astro_layout

# Configure Logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger("astro_layouts")

NOT_A_BLUEPRINT = "This file cannot be opened in the visual editor."


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load presets on startup."""
    presets_manager.load_all()
    yield


app = FastAPI(lifespan=lifespan)


class CompileRequest(BaseModel):
    blueprint: LayoutBlueprint

class ContentRequest(BaseModel):
    content: str

class SaveLayoutRequest(BaseModel):
    """
    Save a layout, either from raw text or from a blueprint.

    When `blueprint` is given it is compiled and `content` is ignored.
    `sha` is the revision the editor loaded; leave it out to create a file.
    """
    path: str
    content: Optional[str] = None
    blueprint: Optional[LayoutBlueprint] = None
    sha: Optional[str] = None
    message: Optional[str] = Field(default=None, description="Version comment")

class RollbackRequest(BaseModel):
    """Request to rollback to a specific version."""
    path: str
    version: int


# API Endpoints

@app.post("/api/compile")
async def compile_layout(req: CompileRequest):
    logger.info(f"COMPILE Request: blueprint='{req.blueprint.name}'")
    content = compile_astro(req.blueprint)
    validation = validate_astro_layout(content)
    if not validation.ok:
        logger.warning(f"COMPILE produced an invalid layout: {validation.errors}")
    return {"content": content, "validation": validation}

@app.post("/api/parse")
async def parse_layout(req: ContentRequest):
    logger.info(f"PARSE Request: size={len(req.content)} chars")
    blueprint = parse_astro_to_blueprint(req.content)
    if blueprint is None:
        raise HTTPException(status_code=422, detail=NOT_A_BLUEPRINT)
    return {"blueprint": blueprint.to_dict()}

@app.post("/api/validate")
async def validate_layout(req: ContentRequest):
    logger.info(f"VALIDATE Request: size={len(req.content)} chars")
    return validate_astro_layout(req.content)

@app.post("/api/markerize")
async def markerize_layout(req: ContentRequest):
    logger.info(f"MARKERIZE Request: size={len(req.content)} chars")
    result = markerize_astro(req.content)
    logger.info(f"MARKERIZE Result: changed={result.report.changed}, warnings={len(result.report.warnings)}")
    return result.model_dump(by_alias=True)

# -------------------------------------------------------------------------
# Preset Endpoints
# -------------------------------------------------------------------------

@app.get("/api/presets")
async def list_presets():
    return {"presets": presets_manager.list_presets()}

@app.get("/api/presets/{name}")
async def get_preset(name: str):
    preset = presets_manager.get_preset(name)
    if preset is None:
        raise HTTPException(status_code=404, detail=f"Preset '{name}' not found")
    return {"blueprint": preset.to_dict()}

# -------------------------------------------------------------------------
# Layout Storage Endpoints
# -------------------------------------------------------------------------

@app.get("/api/layouts")
async def list_layouts():
    return {"layouts": store.list_layouts()}

@app.get("/api/layout")
async def get_layout(path: str = Query(...)):
    """
    Fetch a stored layout with its revision sha.

    `blueprint` is null when the file has no editor markers; the editor then
    offers to markerize it or open it as text.
    """
    logger.info(f"FETCH Request: path='{path}'")
    try:
        layout = store.get_layout(path)
    except InvalidLayoutPathError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LayoutNotFoundError as e:
        logger.warning(f"Layout '{path}' not found.")
        raise HTTPException(status_code=404, detail=str(e))

    blueprint = parse_astro_to_blueprint(layout.content)
    return {
        "path": layout.path,
        "content": layout.content,
        "sha": layout.sha,
        "blueprint": blueprint.to_dict() if blueprint is not None else None,
    }

@app.post("/api/save-layout")
async def save_layout(req: SaveLayoutRequest):
    logger.info(f"SAVE Request: path='{req.path}', from_blueprint={req.blueprint is not None}")
    if req.blueprint is not None:
        content = compile_astro(req.blueprint)
    elif req.content is not None:
        content = req.content
    else:
        raise HTTPException(status_code=422, detail="Either 'content' or 'blueprint' is required.")

    try:
        validation = validate_astro_layout(content)
        if not validation.ok:
            raise LayoutValidationError(req.path, validation.errors)
        layout = store.save_layout(req.path, content, sha=req.sha, message=req.message)
    except LayoutValidationError as e:
        logger.warning(f"SAVE Rejected: '{req.path}' failed validation")
        raise HTTPException(status_code=422, detail={"message": "Validation failed", "errors": e.errors})
    except InvalidLayoutPathError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RevisionConflictError as e:
        raise HTTPException(status_code=409, detail={
            "message": str(e),
            "current_sha": e.current_sha,
        })

    vc_data = store.get_vc_data(layout.path)
    logger.info(f"SAVE Success: '{layout.path}' at v{vc_data['current_version']}")
    return {
        "path": layout.path,
        "sha": layout.sha,
        "content": layout.content,
        "version": vc_data["current_version"],
    }

# -------------------------------------------------------------------------
# Version Control Endpoints
# -------------------------------------------------------------------------

@app.get("/api/versions")
async def get_versions(path: str = Query(...)):
    """
    Get version history for a layout.

    Returns list of all versions with metadata.
    """
    logger.info(f"VERSIONS Request: path='{path}'")
    try:
        vc_data = store.get_vc_data(path)
    except InvalidLayoutPathError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "current_version": vc_data.get("current_version", 0),
        "versions": vc_data.get("versions", []),
    }

@app.post("/api/rollback")
async def rollback_layout(req: RollbackRequest):
    """
    Rollback layout to a previous version.

    Creates a new version entry with 'rollback' trigger.
    """
    logger.info(f"ROLLBACK Request: path='{req.path}', target_version={req.version}")
    try:
        success = store.rollback_to_version(req.path, req.version)
    except InvalidLayoutPathError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not success:
        logger.warning(f"ROLLBACK Failed: Version {req.version} not found for '{req.path}'")
        raise HTTPException(status_code=404, detail=f"Version {req.version} not found")

    layout = store.get_layout(req.path)
    vc_data = store.get_vc_data(req.path)
    logger.info(f"ROLLBACK Success: '{req.path}' now at v{vc_data['current_version']}")
    return {
        "message": f"Layout rolled back to version {req.version}.",
        "new_version": vc_data["current_version"],
        "content": layout.content,
        "sha": layout.sha,
    }

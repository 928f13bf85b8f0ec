"""
Admin media asset endpoints: list, upload, presigned upload and delete
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import JSONResponse

from minimall.core.exceptions import ValidationError
from minimall.core.logging import get_logger
from minimall.domains.storage import AssetService, get_r2_service
from minimall.domains.storage.assets import DEFAULT_ASSET_FOLDER

logger = get_logger(__name__)

router = APIRouter(prefix="/api/assets", tags=["assets"])


def get_asset_service() -> Optional[AssetService]:
    storage = get_r2_service()
    return AssetService(storage) if storage is not None else None


def _not_configured() -> JSONResponse:
    return JSONResponse(status_code=503, content={"error": "R2 service not configured"})


@router.get("")
async def list_assets(
    folder: str = DEFAULT_ASSET_FOLDER,
    type: str = "all",
    limit: int = Query(50, ge=1, le=1000),
    service: Optional[AssetService] = Depends(get_asset_service),
):
    if service is None:
        return _not_configured()

    try:
        result = await service.list_assets(folder=folder, asset_type=type, limit=limit)
    except Exception as e:
        logger.error(f"Failed to list assets: {e}", folder=folder)
        return JSONResponse(status_code=500, content={"error": "Failed to list assets"})
    return {"success": True, **result}


@router.post("/upload")
async def upload_asset(
    file: Optional[UploadFile] = File(None),
    folder: str = Form(DEFAULT_ASSET_FOLDER),
    service: Optional[AssetService] = Depends(get_asset_service),
):
    if service is None:
        return _not_configured()
    if file is None:
        return JSONResponse(status_code=400, content={"error": "No file provided"})

    try:
        body = await file.read()
        asset = await service.upload_asset(
            file.filename or "upload", file.content_type, body, folder=folder
        )
    except ValidationError as e:
        return JSONResponse(status_code=400, content={"error": e.message})
    except Exception as e:
        logger.error(f"Failed to upload asset: {e}", filename=file.filename)
        return JSONResponse(status_code=500, content={"error": "Failed to upload file"})

    return {"success": True, "asset": asset, "message": "File uploaded successfully"}


@router.get("/upload-url")
async def create_upload_url(
    filename: Optional[str] = None,
    contentType: Optional[str] = None,
    shopId: str = "demo",
    service: Optional[AssetService] = Depends(get_asset_service),
):
    if not filename or not contentType:
        return JSONResponse(
            status_code=400, content={"error": "filename and contentType are required"}
        )
    if service is None:
        return _not_configured()

    try:
        return service.create_upload_url(shopId, filename, contentType)
    except ValidationError as e:
        return JSONResponse(status_code=400, content={"error": e.message})


@router.delete("/{asset_id:path}")
async def delete_asset(
    asset_id: str, service: Optional[AssetService] = Depends(get_asset_service)
):
    if service is None:
        return _not_configured()

    try:
        await service.delete_asset(asset_id)
    except Exception as e:
        logger.error(f"Failed to delete asset: {e}", asset_id=asset_id)
        return JSONResponse(status_code=500, content={"error": "Failed to delete asset"})
    return {"success": True, "message": "Asset deleted successfully"}

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from starlette import status
from starlette.concurrency import run_in_threadpool

from keitruckhub.assets import AssetStore
from keitruckhub.errors import Conflict, InvalidInput, NotFound
from keitruckhub.importer import import_workbook
from keitruckhub.models.vehicle_model import VehicleModel, validate_create, validate_update
from keitruckhub.store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/models", tags=["models"])


# --- Dependencies (backends live on app.state, see main.create_app) ---
def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_assets(request: Request) -> AssetStore:
    return request.app.state.assets
# ----------------------------------------------------------------------


async def _store_image(assets: AssetStore, image: Optional[UploadFile]) -> Optional[str]:
    """Save the uploaded image, if any, and return its URL path."""
    if image is None or not image.filename:
        return None
    try:
        return await run_in_threadpool(assets.save, image.filename, image.file)
    finally:
        await image.close()


@router.get("", name="list_models")
async def list_models(store: RecordStore = Depends(get_store)):
    models = await run_in_threadpool(store.list_all)
    return [model.to_json() for model in models]


@router.post("", name="create_model", status_code=status.HTTP_201_CREATED)
async def create_model(
    model_id: Optional[str] = Form(None, alias="id"),
    name: Optional[str] = Form(None),
    year: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    store: RecordStore = Depends(get_store),
    assets: AssetStore = Depends(get_assets),
):
    payload = validate_create(
        {"id": model_id, "name": name, "year": year, "description": description}
    )

    # Early exit before the upload is written; store.create re-checks atomically

    if await run_in_threadpool(store.find_by_id, payload.id) is not None:
        raise Conflict(payload.id)

    image_url = await _store_image(assets, image)
    record = VehicleModel(**payload.model_dump(), image_url=image_url or "")
    created = await run_in_threadpool(store.create, record)

    logger.info("Created model %s", created.id)
    return {"success": True, "model": created.to_json()}


@router.post("/import", name="import_models")
async def import_models(
    file: Optional[UploadFile] = File(None),
    store: RecordStore = Depends(get_store),
):
    """Bulk-create models from an .xlsx workbook (see keitruckhub.importer)."""
    if file is None or not file.filename:
        raise InvalidInput(["file is required"])
    if not file.filename.lower().endswith(".xlsx"):
        await file.close()
        raise InvalidInput(["file must be an .xlsx workbook"])

    try:
        content = await file.read()
    finally:
        await file.close()

    return await run_in_threadpool(import_workbook, store, content)


@router.get("/{model_id}", name="show_model")
async def show_model(model_id: str, store: RecordStore = Depends(get_store)):
    model = await run_in_threadpool(store.find_by_id, model_id)
    if model is None:
        raise NotFound()
    return model.to_json()


@router.put("/{model_id}", name="update_model")
async def update_model(
    model_id: str,
    name: Optional[str] = Form(None),
    year: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    store: RecordStore = Depends(get_store),
    assets: AssetStore = Depends(get_assets),
):
    # Unknown ids are a 404 whatever the payload looks like
    if await run_in_threadpool(store.find_by_id, model_id) is None:
        raise NotFound()

    payload = validate_update({"name": name, "year": year, "description": description})

    fields = payload.model_dump()
    image_url = await _store_image(assets, image)
    if image_url:
        fields["image_url"] = image_url

    updated = await run_in_threadpool(store.update, model_id, fields)
    logger.info("Updated model %s", model_id)
    return {"success": True, "model": updated.to_json()}


@router.delete("/{model_id}", name="delete_model")
async def delete_model(model_id: str, store: RecordStore = Depends(get_store)):
    await run_in_threadpool(store.delete, model_id)
    logger.info("Deleted model %s", model_id)
    return {"success": True}

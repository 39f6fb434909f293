"""
Media Routes
Upload, delete and proxy marketplace media stored in S3
"""

import logging
from typing import Optional

import orjson
from fastapi import APIRouter, File, Form, Query, Request, UploadFile
from fastapi.responses import JSONResponse, Response, StreamingResponse

from services.object_key_resolver import resolve_upload_key
from services.s3_media_service import DEFAULT_CONTENT_TYPE, S3MediaService
from utils.exception_handler import ValidationError, json_error_boundary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/media", tags=["media"])


def get_media_service(request: Request) -> S3MediaService:
    return request.app.state.media_service


def _uploaded_file_name(file: UploadFile, explicit_name: Optional[str]) -> Optional[str]:
    if explicit_name and explicit_name.strip():
        return explicit_name
    if file.filename and file.filename != "blob":
        return file.filename
    return None


@router.post("/upload")
@json_error_boundary("S3 upload error", "Failed to upload file to S3.")
async def upload_media(
    request: Request,
    file: Optional[UploadFile] = File(None),
    path: Optional[str] = Form(None),
    fileName: Optional[str] = Form(None),
    contentType: Optional[str] = Form(None),
):
    """Multipart upload: file, path, optional fileName/contentType"""
    if file is None:
        raise ValidationError("A file must be provided for upload.", field="file")

    object_key = resolve_upload_key(path, _uploaded_file_name(file, fileName))
    data = await file.read()
    content_type = (contentType or "").strip() or file.content_type or DEFAULT_CONTENT_TYPE

    uploaded = await get_media_service(request).upload(object_key, data, content_type)
    return JSONResponse(
        content={"success": True, "key": uploaded.key, "url": uploaded.url},
        status_code=201,
    )


@router.post("/delete")
@json_error_boundary("S3 delete error", "Failed to delete file from S3.")
async def delete_media(request: Request):
    """Body: {key} or {url}"""
    raw_body = await request.body()
    try:
        body = orjson.loads(raw_body)
    except orjson.JSONDecodeError:
        body = None
    if not isinstance(body, dict):
        raise ValidationError("Invalid request payload.")

    media_service = get_media_service(request)
    object_key = media_service.resolve_key(body.get("key"), body.get("url"))
    await media_service.delete(object_key)
    return JSONResponse(content={"success": True}, status_code=200)


@router.head("/public")
@json_error_boundary("S3 proxy error", "Unable to retrieve media from S3.")
async def head_public_media(
    request: Request,
    key: Optional[str] = Query(None),
    url: Optional[str] = Query(None),
):
    media_service = get_media_service(request)
    headers = await media_service.head_meta(media_service.resolve_key(key, url))
    return Response(status_code=200, headers=headers)


@router.get("/public")
@json_error_boundary("S3 proxy error", "Unable to retrieve media from S3.")
async def get_public_media(
    request: Request,
    key: Optional[str] = Query(None),
    url: Optional[str] = Query(None),
):
    """Stream an object with headers derived from its S3 metadata"""
    media_service = get_media_service(request)
    media = await media_service.fetch(media_service.resolve_key(key, url))
    return StreamingResponse(media.body, status_code=200, headers=media.headers)

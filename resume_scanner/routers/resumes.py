# routers/resumes.py
import asyncio
import mimetypes
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import FileResponse

from resume_scanner.models.models import ParseOutcome, SearchQuery
from resume_scanner.models.response import ConnectionTestResponse, FileDeleteResponse, SearchHit
from resume_scanner.models.settings import AppSettings
from resume_scanner.routers.dependencies import (
    get_ai_client,
    get_app_settings,
    get_cancel_event,
    get_parser,
    get_storage,
)
from resume_scanner.services.ai_client import AzureOpenAIClient
from resume_scanner.services.matching import rank_resumes
from resume_scanner.services.pipeline import ResumeParser
from resume_scanner.services.storage import LocalStorage, make_unique_file_name
from resume_scanner.utils.logging_config import get_logger, log_api_call

router = APIRouter()
logger = get_logger(__name__)


@router.get("/scan", response_model=List[ParseOutcome])
@log_api_call("scan")
async def scan(
    settings: AppSettings = Depends(get_app_settings),
    parser: ResumeParser = Depends(get_parser),
    cancel_event: asyncio.Event = Depends(get_cancel_event),
):
    """Parse every resume in the configured folder"""
    return await parser.parse_folder(settings.resume_folder, cancel_event)


@router.post("/upload", response_model=ParseOutcome, status_code=201)
@log_api_call("upload")
async def upload(
    file: UploadFile = File(..., description="Resume file (PDF, DOCX or TXT)"),
    settings: AppSettings = Depends(get_app_settings),
    parser: ResumeParser = Depends(get_parser),
    storage: LocalStorage = Depends(get_storage),
):
    """Store an uploaded resume under a unique name and parse it"""
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded.")
    raw = await file.read()
    if not raw:
        raise HTTPException(status_code=400, detail="No file uploaded.")
    await file.seek(0)

    unique_name = make_unique_file_name(file.filename)
    path = await asyncio.to_thread(storage.save_file, settings.resume_folder, unique_name, file.file)

    outcome = await parser.parse_one(str(path))
    if not outcome.success:
        raise HTTPException(status_code=500, detail=outcome.error_message)
    return outcome


@router.post("/search", response_model=List[SearchHit])
@log_api_call("search")
async def search(
    query: SearchQuery,
    settings: AppSettings = Depends(get_app_settings),
    parser: ResumeParser = Depends(get_parser),
    cancel_event: asyncio.Event = Depends(get_cancel_event),
):
    """Parse the folder and rank resumes against the query, best first"""
    outcomes = await parser.parse_folder(settings.resume_folder, cancel_event)
    hits = rank_resumes(outcomes, query)
    logger.info(f"Search matched {len(hits)} of {len(outcomes)} resumes")
    return hits


@router.get("/files", response_model=List[str])
async def list_files(
    settings: AppSettings = Depends(get_app_settings),
    storage: LocalStorage = Depends(get_storage),
):
    return storage.list_file_names(settings.resume_folder)


@router.get("/test-connection", response_model=ConnectionTestResponse)
@log_api_call("test-connection")
async def check_connection(
    settings: AppSettings = Depends(get_app_settings),
    ai_client: AzureOpenAIClient = Depends(get_ai_client),
):
    """Send one small chat request to the configured deployment and report the raw answer"""
    return await ai_client.test_connection(settings.ai.api_key)


@router.get("/download/{file_name}")
async def download(
    file_name: str,
    settings: AppSettings = Depends(get_app_settings),
    storage: LocalStorage = Depends(get_storage),
):
    path = storage.resolve(settings.resume_folder, file_name)
    if not path.is_file():
        raise HTTPException(status_code=404, detail="File not found.")
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return FileResponse(str(path), media_type=content_type, filename=path.name)


@router.get("/{file_name}", response_model=ParseOutcome)
@log_api_call("parse")
async def parse_file(
    file_name: str,
    settings: AppSettings = Depends(get_app_settings),
    parser: ResumeParser = Depends(get_parser),
    storage: LocalStorage = Depends(get_storage),
):
    path = storage.resolve(settings.resume_folder, file_name)
    if not path.is_file():
        raise HTTPException(status_code=404, detail="File not found.")
    outcome = await parser.parse_one(str(path))
    if not outcome.success:
        raise HTTPException(status_code=500, detail=outcome.error_message)
    return outcome


@router.delete("/{file_name}", response_model=FileDeleteResponse)
async def delete_file(
    file_name: str,
    settings: AppSettings = Depends(get_app_settings),
    storage: LocalStorage = Depends(get_storage),
):
    if not storage.delete_file_if_exists(settings.resume_folder, file_name):
        raise HTTPException(status_code=404, detail="File not found.")
    return FileDeleteResponse(success=True, message="File deleted successfully.")

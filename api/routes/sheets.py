"""
Spreadsheet CSV proxy endpoint and the static backup document.
"""
import logging
import os
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse, JSONResponse, Response

from ..config import config
from ..dependencies import get_proxy
from ..proxy import SheetsProxy

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["sheets"])
backup_router = APIRouter(tags=["sheets"])

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"

@router.get("/sheets")
async def get_sheet_csv(proxy: SheetsProxy = Depends(get_proxy)):
    """Serve the listings sheet as CSV, tagged with the tier that produced it."""
    try:
        csv_text, source = await proxy.get_csv()
    except Exception as e:
        logger.error(f"Sheet proxy failed on every tier: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Google Sheets 데이터를 가져오지 못했습니다.",
                "message": str(e)
            }
        )

    return Response(
        content=csv_text,
        media_type=CSV_MEDIA_TYPE,
        headers={
            "X-Data-Source": source,
            "Cache-Control": "s-maxage=300, stale-while-revalidate=600"
        }
    )

@router.options("/sheets")
async def sheet_csv_options():
    """Preflight without CORS request headers."""
    return Response(status_code=200)

@backup_router.get("/data/listings-backup.json")
async def get_backup_listings():
    """Static backup array of listing objects."""
    if not os.path.exists(config.BACKUP_JSON_PATH):
        raise HTTPException(status_code=404, detail="Backup not found")
    return FileResponse(config.BACKUP_JSON_PATH, media_type="application/json")

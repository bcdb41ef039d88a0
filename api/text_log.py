"""Text log ingestion API route."""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_current_user, get_services
from api.schemas import TextLogRequest
from ingestion.matching import find_category_mapping
from ingestion.text_log import parse_text_log

router = APIRouter(tags=["Ingestion"])


@router.post("/ingest-text-log", summary="Parse a free-text log into entries")
def ingest_text_log(
    body: TextLogRequest,
    user_id: str = Depends(get_current_user),
    services=Depends(get_services),
):
    """
    Parse each line of ``text_log`` and suggest a category pair for it.

    Nothing is saved; the entries are meant to be reviewed and sent to
    `/entries-bulk`.
    """
    if not body.text_log.strip():
        raise HTTPException(status_code=400, detail="text_log is required")

    parsed = parse_text_log(body.text_log, body.date)
    categories = services.categories.find_all(user_id)
    mappings = services.category_mappings.find_all(user_id)

    entries = []
    for entry in parsed:
        match = find_category_mapping(entry, categories, mappings)
        entries.append(
            {**entry.to_dict(), "mapping": match.to_dict() if match else None}
        )

    return {"success": True, "entries": entries, "total": len(entries)}

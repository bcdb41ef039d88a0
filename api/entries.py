"""Bulk entry API route."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from api.dependencies import get_current_user, get_services
from api.schemas import BulkEntriesRequest
from services.entries import EntryRules

router = APIRouter(tags=["Entries"])


@router.post("/entries-bulk", summary="Validate and insert a batch of entries")
def entries_bulk(
    body: BulkEntriesRequest,
    user_id: str = Depends(get_current_user),
    services=Depends(get_services),
):
    """
    Validate every entry before inserting any.

    Any invalid entry, or a day exceeding a category's daily goal, rejects
    the whole batch with 400. Valid batches are inserted in chunks that each
    commit, so a database failure (500) can leave earlier chunks saved;
    `inserted` reports how many.
    """
    if body.entries is None:
        raise HTTPException(status_code=400, detail="entries array is required")

    rules = (
        body.validation_rules.to_rules()
        if body.validation_rules is not None
        else EntryRules.from_config(services.config)
    )
    result = services.entries.process(
        user_id, [entry.to_entry() for entry in body.entries], rules
    )

    if result.success:
        return result.to_dict()

    status_code = 500 if result.insert_failed else 400
    return JSONResponse(status_code=status_code, content=result.to_dict())

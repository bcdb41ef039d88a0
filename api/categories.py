"""Category update API route."""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_current_user, get_services
from api.schemas import UpdateCategoryRequest
from services.categories import CategoryNotFoundError, CategoryValidationError
from logger import get_logger

logger = get_logger()

router = APIRouter(tags=["Categories"])


@router.post("/update-category", summary="Partially update a category")
def update_category(
    body: UpdateCategoryRequest,
    user_id: str = Depends(get_current_user),
    services=Depends(get_services),
):
    """
    Apply the fields present in the body to category ``id``.

    Returns the updated category and the names of the changed fields.
    """
    fields = body.model_dump(exclude_unset=True)
    category_id = fields.pop("id", None)
    if not category_id:
        raise HTTPException(
            status_code=400,
            detail={"error": "Validation failed", "details": ["Category ID is required"]},
        )

    try:
        category, fields_updated = services.categories.update(
            user_id, category_id, fields
        )
    except CategoryValidationError as e:
        raise HTTPException(
            status_code=400,
            detail={"error": "Validation failed", "details": e.errors},
        )
    except CategoryNotFoundError:
        raise HTTPException(
            status_code=404, detail="Category not found or access denied"
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "success": True,
        "data": category.to_dict(include_children=False),
        "fieldsUpdated": fields_updated,
    }

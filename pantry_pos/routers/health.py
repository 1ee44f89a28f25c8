"""
Liveness and readiness checks.
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pantry_pos.core.deps import get_register
from pantry_pos.core.exceptions import StorageError
from pantry_pos.db.session import get_db
from pantry_pos.services.persistence import INGREDIENTS, PRODUCTS, SALES
from pantry_pos.services.register import Register

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Process is up. Touches nothing."""
    return {"status": "ok"}


@router.get("/api/health")
def api_health_check(
    db: Session = Depends(get_db),
    register: Register = Depends(get_register),
):
    """
    Readiness: the database answers and the register's collections are readable.

    Reports how many products, ingredients and sales the register holds.
    Returns 503 when either check fails.
    """
    checks = {}
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = {"status": "ok"}
    except SQLAlchemyError as e:
        checks["database"] = {"status": "error", "message": str(e)}

    try:
        for collection in (PRODUCTS, INGREDIENTS, SALES):
            register.persistence.store.get_item(register.persistence.key_for(collection))
        checks["store"] = {
            "status": "ok",
            "products": len(register.catalog.products),
            "ingredients": len(register.catalog.ingredients),
            "sales": len(register.sales.sales),
        }
    except StorageError as e:
        checks["store"] = {"status": "error", "message": e.message}

    healthy = all(check["status"] == "ok" for check in checks.values())
    body = {"status": "ok" if healthy else "unhealthy", "services": checks}
    if not healthy:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return body

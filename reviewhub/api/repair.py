# reviewhub/api/repair.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from reviewhub.api.deps import require_identity
from reviewhub.core.db import get_db
from reviewhub.services.account_linkage import repair_account_linkage
from reviewhub.services.identity import Identity
from reviewhub.services.repository_ownership import repair_repository_ownership

router = APIRouter(prefix="/api", tags=["repair"])

NOTHING_TO_FIX = "No issues found to fix"


@router.get("/fix-auth")
def fix_auth(identity: Identity = Depends(require_identity), db: Session = Depends(get_db)):
    result = repair_account_linkage(db, identity)
    if result.error:
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fix authentication", "message": result.error, "actions": result.actions},
        )

    return {
        "fixed": result.fixed,
        "actions": result.actions or [NOTHING_TO_FIX],
        "method": identity.method,
    }


@router.get("/fix-repositories")
def fix_repositories(db: Session = Depends(get_db)):
    result = repair_repository_ownership(db)
    if result.error:
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Error fixing repositories", "details": result.error},
        )

    return {
        "success": True,
        "processed": result.processed,
        "results": [r.to_dict() for r in result.results],
    }

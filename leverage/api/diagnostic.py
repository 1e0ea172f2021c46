"""
FastAPI router module for the Sequential Leverage Diagnostic.

Key Endpoints:
- POST /diagnostic - Classify one business and return its constraint and actions
- POST /diagnostic/batch - Classify every row of a CSV upload
- GET /constraints - List every constraint with its action previews

Access Boundary:
- Previews are returned to everyone.
- Detailed action plans are returned only to callers with an account
  (X-Account-Id header). Everyone else gets details=null, detailsLocked=true.
  The diagnostic services impose no access control; this router decides.

Error Handling:
- The single-record diagnostic has no failure path: any JSON body is accepted,
  malformed values coerce to defaults and a non-object body is treated as an
  empty submission.
- Batch uploads that cannot be parsed return 400 with the list of problems.
"""

import logging
from typing import Any, List, Mapping

from fastapi import APIRouter, Body, HTTPException, Request

from leverage.core.dependencies import AccountDep
from leverage.models.enums import ConstraintLabel
from leverage.models.schemas import (
    BatchDiagnosticResponse,
    ConstraintSummary,
    DiagnosticResponse,
)
from leverage.services.action_catalog import get_action_previews
from leverage.services.batch import diagnose_csv
from leverage.services.classification import diagnose


# =============================================================================
# Module Configuration
# =============================================================================

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# POST /diagnostic - Single Business
# =============================================================================


@router.post("/diagnostic", response_model=DiagnosticResponse)
async def run_diagnostic(
    account: AccountDep,
    metrics: Any = Body(default=None),
) -> DiagnosticResponse:
    """
    Identify the constraint limiting one business's growth.

    Args:
        account: Caller's account (None for anonymous visitors).
        metrics: RawBusinessMetrics-shaped JSON object. Any field may be missing
            or malformed; a body that is not an object counts as an empty
            submission.

    Returns:
        DiagnosticResponse with constraint, derived metrics, previews, reasons,
        and details when the caller has an account.

    Example Request:
        POST /api/diagnostic
        {
            "monthlyRevenue": 10000,
            "costOfDelivery": 9000,
            "fixedExpenses": 500,
            "cashOnHand": 5000
        }

    Example Response:
        {
            "constraint": "Cash Flow",
            "derived": {"runwayMonths": 0.526..., ...},
            "previews": ["Shorten payment terms ...", ...],
            "details": null,
            "detailsLocked": true,
            "reasons": ["RUNWAY_BELOW_MINIMUM: 0.5 months of runway (min 2)"]
        }
    """
    if not isinstance(metrics, Mapping):
        metrics = None

    result = diagnose(metrics, include_details=account is not None)

    logger.info(
        f"Diagnostic classified {result.constraint.value} "
        f"({'account ' + account['id'] if account else 'anonymous'})"
    )
    return result


# =============================================================================
# POST /diagnostic/batch - CSV Upload
# =============================================================================


@router.post("/diagnostic/batch", response_model=BatchDiagnosticResponse)
async def run_batch_diagnostic(request: Request) -> BatchDiagnosticResponse:
    """
    Classify every business in a CSV upload (request body is the CSV text).

    Column headers are RawBusinessMetrics field names; unknown columns are
    ignored and missing ones take their defaults. Batch results never include
    detailed action plans.

    Raises:
        HTTPException 400: If the CSV is empty, unparseable, too large, or has
            no recognized metric columns.
    """
    content = await request.body()

    result, errors = diagnose_csv(content)
    if result is None:
        logger.warning(f"Rejected batch diagnostic upload: {errors}")
        raise HTTPException(
            status_code=400,
            detail={"message": "Invalid CSV upload", "errors": errors},
        )

    return result


# =============================================================================
# GET /constraints - Catalog Browse
# =============================================================================


@router.get("/constraints", response_model=List[ConstraintSummary])
async def list_constraints() -> List[ConstraintSummary]:
    """
    List every constraint label, in classification priority order, with its
    three action previews.
    """
    return [
        ConstraintSummary(constraint=label, previews=list(get_action_previews(label)))
        for label in ConstraintLabel
    ]

"""Profitability analysis endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, HTTPException, status

from ...data.profitability_repository import DataFetchError, fetch_operators
from ...schemas.profitability import (
    CostParametersModel,
    CostRiskAssessment,
    OperatorModel,
    ProfitabilityRequest,
    ProfitabilityResponse,
)
from ...services.profitability.service import run_profitability_analysis

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profitability", tags=["profitability"])


@router.post("/analyze", response_model=ProfitabilityResponse, status_code=status.HTTP_200_OK)
def analyze(payload: ProfitabilityRequest) -> ProfitabilityResponse:
    try:
        return run_profitability_analysis(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except DataFetchError as exc:
        logger.error(f"Profitability data fetch failed: {exc}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error computing profitability: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to compute profitability: {str(exc)}",
        ) from exc


@router.get("/defaults", status_code=status.HTTP_200_OK)
def get_defaults() -> dict:
    """Default cost parameters and risk levels for the analysis form."""
    return {
        "cost_parameters": CostParametersModel().model_dump(),
        "risk_assessment": CostRiskAssessment().model_dump(),
    }


@router.get("/operators", response_model=List[OperatorModel], status_code=status.HTTP_200_OK)
def list_operators() -> List[OperatorModel]:
    try:
        operators = fetch_operators()
    except DataFetchError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return [OperatorModel(id=operator.operator_id, name=operator.name) for operator in operators]

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from telebill.core.database import get_db
from telebill.core.exceptions import (
    PricingLookupError,
    PricingNotFoundError,
    PricingPlanNotFoundError,
)
from telebill.schemas.cost import PricingInfo
from telebill.schemas.regional_pricing import (
    MonthlyCostEstimate,
    PricingPlan,
    RegionalPricingResponse,
    RegionalTaxResult,
    UsageEstimateRequest,
)
from telebill.services.cost_calculator import CostCalculator
from telebill.services.regional_pricing import RegionalPricingService

router = APIRouter()


@router.get("/", response_model=PricingInfo)
async def get_default_pricing() -> PricingInfo:
    """Default rate table, tax rate and currency."""
    return CostCalculator().get_pricing_info()


@router.get("/{region}", response_model=RegionalPricingResponse)
async def get_regional_pricing(
    region: str,
    db: Session = Depends(get_db),
) -> RegionalPricingResponse:
    """Pricing currently in effect for a region."""
    try:
        pricing = RegionalPricingService(db).get_regional_pricing(region.upper())
    except PricingLookupError as e:
        raise HTTPException(status_code=503, detail=str(e)) from None
    if pricing is None:
        raise HTTPException(status_code=404, detail=f"No pricing found for region {region}")
    return pricing


@router.get("/{region}/tax", response_model=RegionalTaxResult)
async def get_regional_tax(
    region: str,
    subtotal: int = Query(ge=0),
    db: Session = Depends(get_db),
) -> RegionalTaxResult:
    """Tax due on a subtotal under a region's tax configuration."""
    try:
        return RegionalPricingService(db).calculate_regional_tax(subtotal, region.upper())
    except PricingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except PricingLookupError as e:
        raise HTTPException(status_code=503, detail=str(e)) from None


@router.get("/{region}/tiers", response_model=list[PricingPlan])
async def get_pricing_tiers(
    region: str,
    db: Session = Depends(get_db),
) -> list[PricingPlan]:
    """Subscription plans offered in a region."""
    return RegionalPricingService(db).get_pricing_tiers(region.upper())


@router.post("/{region}/tiers/{plan}/estimate", response_model=MonthlyCostEstimate)
async def estimate_monthly_cost(
    region: str,
    plan: str,
    usage: UsageEstimateRequest,
    db: Session = Depends(get_db),
) -> MonthlyCostEstimate:
    """Projected monthly bill for a plan and an expected usage profile."""
    try:
        return RegionalPricingService(db).estimate_monthly_cost(region.upper(), plan, usage)
    except PricingPlanNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except PricingLookupError as e:
        raise HTTPException(status_code=503, detail=str(e)) from None

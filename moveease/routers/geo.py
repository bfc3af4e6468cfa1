from typing import List

from fastapi import APIRouter, Query

from moveease.schemas import CostGridRow
from moveease.services.addresses import suggest_addresses
from moveease.services.cost_grid import DEFAULT_ORIGIN, cost_grid

router = APIRouter(prefix="/api", tags=["geo"])


@router.get("/moving-costs-map", response_model=List[CostGridRow])
async def moving_costs_map(
    origin: str = Query(DEFAULT_ORIGIN),
    home_size: str = Query("2bedroom", alias="homeSize"),
):
    return cost_grid(origin, home_size)


@router.get("/address-suggestions", response_model=List[str])
async def address_suggestions(q: str = Query("")):
    return suggest_addresses(q)

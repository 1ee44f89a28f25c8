"""
Ingredient stock router.
"""
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, Response, status
from pydantic import Field

from pantry_pos.core.deps import get_register
from pantry_pos.schemas.catalog import Ingredient, PosModel
from pantry_pos.services.register import Register
from pantry_pos.services.reports import ingredient_stock_breakdown


router = APIRouter(prefix="/ingredients", tags=["ingredients"])


# Schemas
class IngredientInput(PosModel):
    stock_unit: str = ""
    available_quantity: Decimal = Field(default=Decimal(0), ge=0)


class StockUpdate(PosModel):
    available_quantity: Decimal


class StockShareResponse(PosModel):
    name: str
    unit: str
    quantity: Decimal
    percentage: Decimal


@router.get("", response_model=List[Ingredient])
async def list_ingredients(register: Register = Depends(get_register)):
    return register.catalog.ingredients


@router.get("/breakdown", response_model=List[StockShareResponse])
async def stock_breakdown(register: Register = Depends(get_register)):
    """Each ingredient's share of total stock (pie chart data)."""
    return [
        StockShareResponse(name=s.name, unit=s.unit, quantity=s.quantity, percentage=s.percentage)
        for s in ingredient_stock_breakdown(register.catalog.ingredients)
    ]


@router.put("/{name}", response_model=Ingredient)
async def upsert_ingredient(
    name: str,
    payload: IngredientInput,
    register: Register = Depends(get_register),
):
    """Create or replace an ingredient. Product availability is refreshed."""
    ingredient = Ingredient(name=name, stock_unit=payload.stock_unit, available_quantity=payload.available_quantity)
    return register.catalog.upsert_ingredient(ingredient)


@router.patch("/{name}/stock", response_model=Ingredient)
async def set_stock(
    name: str,
    payload: StockUpdate,
    register: Register = Depends(get_register),
):
    return register.catalog.set_ingredient_stock(name, payload.available_quantity)


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ingredient(name: str, register: Register = Depends(get_register)):
    register.catalog.remove_ingredient(name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

"""
Product catalog router: CRUD, search, images and CSV import/export.
"""
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status

from pantry_pos.core.config import get_settings
from pantry_pos.core.deps import get_register
from pantry_pos.core.exceptions import ProductNotFoundError
from pantry_pos.schemas.catalog import PosModel, Product, ProductInput
from pantry_pos.services.catalog_csv import CatalogCSV
from pantry_pos.services.images import ALLOWED_IMAGE_TYPES, to_data_url
from pantry_pos.services.register import Register


router = APIRouter(prefix="/products", tags=["products"])


class ImportResponse(PosModel):
    imported: int
    skipped_rows: int
    warnings: List[str]
    products: List[Product]


@router.get("", response_model=List[Product])
async def list_products(
    q: str = "",
    category: str = "",
    available_only: bool = False,
    register: Register = Depends(get_register),
):
    """Search products by name, category or barcode."""
    return register.catalog.filter_products(query=q, category=category, available_only=available_only)


@router.get("/categories", response_model=List[str])
async def list_categories(register: Register = Depends(get_register)):
    return register.catalog.categories()


@router.get("/export.csv")
async def export_products(register: Register = Depends(get_register)):
    """Download the catalog as products.csv."""
    content = CatalogCSV().export_products(register.catalog.products)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="products.csv"'},
    )


@router.post("/import", response_model=ImportResponse, status_code=status.HTTP_201_CREATED)
async def import_products(
    file: UploadFile = File(...),
    register: Register = Depends(get_register),
):
    """
    Add every row of an uploaded catalog CSV as a new product.

    Rows without a name are skipped; bad prices and recipe quantities
    become 0. The response lists warnings for each.
    """
    content = await file.read()
    added, result = CatalogCSV().import_into(register.catalog, content)
    return ImportResponse(
        imported=len(added),
        skipped_rows=result.skipped_rows,
        warnings=result.warnings,
        products=added,
    )


@router.post("", response_model=Product, status_code=status.HTTP_201_CREATED)
async def create_product(payload: ProductInput, register: Register = Depends(get_register)):
    product = payload.to_product(register.catalog.new_product_id())
    return register.catalog.upsert_product(product)


@router.put("/{product_id}", response_model=Product)
async def update_product(
    product_id: int,
    payload: ProductInput,
    register: Register = Depends(get_register),
):
    if register.catalog.get_product(product_id) is None:
        raise ProductNotFoundError("Product not found.", details={"product_id": product_id})
    return register.catalog.upsert_product(payload.to_product(product_id))


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: int, register: Register = Depends(get_register)):
    register.catalog.remove_product(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{product_id}/image", response_model=Product)
async def upload_product_image(
    product_id: int,
    file: UploadFile = File(...),
    register: Register = Depends(get_register),
):
    """Attach an image to a product, stored inline as a data URL."""
    product = register.catalog.get_product(product_id)
    if product is None:
        raise ProductNotFoundError("Product not found.", details={"product_id": product_id})

    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported image type: {file.content_type}",
        )

    content = await file.read()
    if len(content) > get_settings().MAX_IMAGE_BYTES:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="Image is too large")

    updated = product.model_copy(update={"image_data_url": to_data_url(content, file.content_type)})
    return register.catalog.upsert_product(updated)

from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from tailorshop import crud
from tailorshop.api.deps import get_sync
from tailorshop.db.session import get_session
from tailorshop.services import catalog

router = APIRouter()


@router.get("/fabrics")
def list_fabrics(
    request: Request,
    search: Optional[str] = None,
    material: Optional[str] = None,
    color: Optional[str] = None,
    price_range: Optional[str] = None,
    featured: Optional[bool] = None,
):
    fabrics = get_sync(request, "fabrics").require_items()
    items = catalog.filter_fabrics(fabrics, search, material, color, price_range, featured)
    return {
        "items": items,
        "count": len(items),
        "materials": catalog.facets(fabrics, "material"),
        "colors": catalog.facets(fabrics, "color"),
    }


@router.get("/fabrics/{fabric_id}")
def get_fabric(fabric_id: int, session: Session = Depends(get_session)):
    return crud.get_fabric(session, fabric_id).model_dump()


@router.get("/garments")
def list_garments(request: Request, search: Optional[str] = None, category: Optional[str] = None):
    garments = get_sync(request, "garments").require_items()
    items = catalog.filter_garments(garments, search, category)
    return {"items": items, "count": len(items), "categories": catalog.facets(garments, "category")}


@router.get("/garments/{garment_id}")
def get_garment(garment_id: int, session: Session = Depends(get_session)):
    return crud.get_garment(session, garment_id).model_dump()


@router.get("/collections")
def list_collections(request: Request):
    return catalog.group_collections(get_sync(request, "garments").require_items())


@router.get("/collections/{collection_id}")
def get_collection(collection_id: str, request: Request):
    return catalog.find_collection(get_sync(request, "garments").require_items(), collection_id)

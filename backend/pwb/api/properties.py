"""Property listing routes: public search and site-admin management."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from pwb.core.database import get_db
from pwb.core.i18n import get_locale, translate
from pwb.core.security import require_website_admin
from pwb.core.tenant import for_website
from pwb.core.tokens import urlsafe_token
from pwb.middleware.tenant import get_current_website, request_host
from pwb.models.prop import Feature, Prop
from pwb.models.user import User
from pwb.models.website import Website
from pwb.schemas.prop import PropCreate, PropResponse, PropUpdate, SearchResponse
from pwb.services.enquiries import find_prop
from pwb.services.property_search import DEFAULT_PER_PAGE, MAX_PER_PAGE, PropertySearch
from pwb.services.search_params import canonical_url, from_url_params

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()

LISTING_PATHS = {"for_sale": "buy", "for_rent": "rent"}


def sync_search_price(prop: Prop) -> None:
    """Monthly rent indexed for search, whichever rental term is offered."""
    prop.price_rental_monthly_for_search_cents = (
        (prop.price_rental_monthly_current_cents or 0) if prop.for_rent else 0
    )


def set_features(db: Session, prop: Prop, keys: List[str]) -> None:
    wanted = {k.strip() for k in keys if k and k.strip()}
    for feature in list(prop.features):
        if feature.feature_key not in wanted:
            prop.features.remove(feature)
            db.delete(feature)
    existing = {f.feature_key for f in prop.features}
    for key in sorted(wanted - existing):
        prop.features.append(Feature(feature_key=key))


def ensure_game_token(prop: Prop) -> None:
    if prop.game_enabled and not prop.game_token:
        prop.game_token = urlsafe_token(12)


def _not_found(locale: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=translate("property_not_found", locale))


# Public

@router.get("/properties", response_model=SearchResponse)
async def search_properties(
    request: Request,
    operation: str = Query("for_sale", description="for_sale or for_rent"),
    per_page: int = Query(DEFAULT_PER_PAGE, ge=1, le=MAX_PER_PAGE),
    facets: bool = Query(True),
    website: Website = Depends(get_current_website),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    """
    Search visible listings.

    Accepts the friendly params (type, state, bedrooms, price_min, features=a,b,
    any_features, without_features...) and the legacy ``search[...]`` form.
    """
    criteria = from_url_params(request.query_params)
    result = PropertySearch(db, website).search(criteria, operation, per_page=per_page, with_facets=facets)
    result["criteria"] = criteria
    result["canonical_url"] = canonical_url(
        criteria, locale, LISTING_PATHS[result["operation"]], host=request_host(request)
    )
    return result


@router.get("/properties/{id_or_slug}", response_model=PropResponse)
async def get_property(
    id_or_slug: str,
    website: Website = Depends(get_current_website),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    prop = find_prop(db, website, id_or_slug)
    if prop is None or not prop.visible:
        raise _not_found(locale)
    return prop


# Site admin

@admin_router.get("/props", response_model=List[PropResponse])
async def list_props(
    visible: Optional[bool] = Query(None),
    q: Optional[str] = Query(None, description="Match reference or title"),
    skip: int = 0,
    limit: int = Query(100, le=500),
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
):
    query = for_website(db, Prop, website.id)
    if visible is not None:
        query = query.filter(Prop.visible.is_(visible))
    if q:
        pattern = f"%{q.strip()}%"
        query = query.filter(Prop.reference.ilike(pattern) | Prop.title.ilike(pattern))
    return query.order_by(Prop.created_at.desc(), Prop.id.desc()).offset(skip).limit(limit).all()


@admin_router.post("/props", response_model=PropResponse, status_code=status.HTTP_201_CREATED)
async def create_prop(
    payload: PropCreate,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
):
    data = payload.model_dump(exclude={"features"})
    for field in ("price_sale_current_currency", "price_rental_monthly_current_currency"):
        data[field] = (data.get(field) or website.default_currency).upper()

    prop = Prop(website_id=website.id, **data)
    set_features(db, prop, payload.features)
    sync_search_price(prop)
    ensure_game_token(prop)
    db.add(prop)
    db.commit()
    db.refresh(prop)

    logger.info(f"Created property {prop.id} on website {website.id}")
    return prop


@admin_router.get("/props/{prop_id}", response_model=PropResponse)
async def get_prop(
    prop_id: int,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    prop = for_website(db, Prop, website.id).filter(Prop.id == prop_id).first()
    if prop is None:
        raise _not_found(locale)
    return prop


@admin_router.put("/props/{prop_id}", response_model=PropResponse)
async def update_prop(
    prop_id: int,
    payload: PropUpdate,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    prop = for_website(db, Prop, website.id).filter(Prop.id == prop_id).first()
    if prop is None:
        raise _not_found(locale)

    changes = payload.model_dump(exclude_unset=True)
    features = changes.pop("features", None)
    for field, value in changes.items():
        setattr(prop, field, value)
    if features is not None:
        set_features(db, prop, features)
    sync_search_price(prop)
    ensure_game_token(prop)

    db.commit()
    db.refresh(prop)
    return prop


@admin_router.delete("/props/{prop_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_prop(
    prop_id: int,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    prop = for_website(db, Prop, website.id).filter(Prop.id == prop_id).first()
    if prop is None:
        raise _not_found(locale)
    db.delete(prop)
    db.commit()
    logger.info(f"Deleted property {prop_id} from website {website.id}")
    return None

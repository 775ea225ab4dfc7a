from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from .auth.dependencies import require_user
from .auth.users import authenticate, register_user
from .catalog.aggregation import get_top_stores
from .catalog.data_store import DocumentStore, get_document_store
from .catalog.hearts import toggle_heart
from .catalog.models import (
    LoginRequest,
    RegisterRequest,
    ReviewIn,
    ReviewOut,
    SearchResult,
    StoreDetail,
    StoreIn,
    StoreOut,
    StorePage,
    StoreSummary,
    TagsResponse,
    TopStore,
    UserOut,
)
from .catalog.pagination import paginate_stores
from .catalog.reviews import add_review
from .catalog.search import map_stores, search_stores
from .catalog.stores import (
    assert_owner,
    create_store,
    get_store,
    get_store_by_slug,
    hearted_stores,
    stores_by_tag,
    update_store,
)
from .config import DEFAULT_APP_CONFIG
from .errors import CatalogError, NotFound

logging.basicConfig(level=DEFAULT_APP_CONFIG.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Store Directory API", version="1.0.0")
app.add_middleware(SessionMiddleware, secret_key=DEFAULT_APP_CONFIG.session_secret)


@app.exception_handler(CatalogError)
def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/register")
def register(
    body: RegisterRequest,
    request: Request,
    db: DocumentStore = Depends(get_document_store),
) -> dict:
    user = register_user(db, body.name, body.email, body.password)
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/login")
def login(
    body: LoginRequest,
    request: Request,
    db: DocumentStore = Depends(get_document_store),
) -> dict:
    user = authenticate(db, body.email, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Failed login!")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me", response_model=UserOut)
def auth_me(
    user: dict = Depends(require_user),
    db: DocumentStore = Depends(get_document_store),
) -> UserOut:
    record = db.users.find_by_id(user["id"])
    if record is None:
        raise NotFound("No user found with that id.")
    return UserOut.model_validate(record)


# ── Stores ───────────────────────────────────────────────────────────────


@app.get("/stores", response_model=StorePage)
@app.get("/stores/page/{page}", response_model=StorePage)
def list_stores(page: int = 1, db: DocumentStore = Depends(get_document_store)):
    result = paginate_stores(db, page, DEFAULT_APP_CONFIG.page_size)
    if result.redirect_to is not None:
        return RedirectResponse(url=f"/stores/page/{result.redirect_to}", status_code=302)
    return result


@app.post("/stores", response_model=StoreOut)
def add_store(
    body: StoreIn,
    user: dict = Depends(require_user),
    db: DocumentStore = Depends(get_document_store),
) -> StoreOut:
    return create_store(db, body, user["id"])


@app.get("/stores/{store_id}/edit", response_model=StoreOut)
def edit_store(
    store_id: str,
    user: dict = Depends(require_user),
    db: DocumentStore = Depends(get_document_store),
) -> StoreOut:
    store = get_store(db, store_id)
    assert_owner(store, user)
    return StoreOut.model_validate(store)


@app.post("/stores/{store_id}", response_model=StoreOut)
def edit_store_submit(
    store_id: str,
    body: StoreIn,
    user: dict = Depends(require_user),
    db: DocumentStore = Depends(get_document_store),
) -> StoreOut:
    return update_store(db, store_id, body, user)


@app.get("/store/{slug}", response_model=StoreDetail)
def store_by_slug(slug: str, db: DocumentStore = Depends(get_document_store)) -> StoreDetail:
    return get_store_by_slug(db, slug)


@app.post("/reviews/{store_id}", response_model=ReviewOut)
def review_store(
    store_id: str,
    body: ReviewIn,
    user: dict = Depends(require_user),
    db: DocumentStore = Depends(get_document_store),
) -> ReviewOut:
    return add_review(db, store_id, user["id"], body)


# ── Aggregates ───────────────────────────────────────────────────────────


@app.get("/tags", response_model=TagsResponse)
@app.get("/tags/{tag}", response_model=TagsResponse)
def tags(tag: str | None = None, db: DocumentStore = Depends(get_document_store)) -> TagsResponse:
    return stores_by_tag(db, tag)


@app.get("/top", response_model=list[TopStore])
def top_stores(db: DocumentStore = Depends(get_document_store)) -> list[TopStore]:
    return get_top_stores(db)


@app.get("/hearts", response_model=list[StoreOut])
def hearts(
    user: dict = Depends(require_user),
    db: DocumentStore = Depends(get_document_store),
) -> list[StoreOut]:
    return hearted_stores(db, user["id"])


# ── JSON API ─────────────────────────────────────────────────────────────


@app.get("/api/search", response_model=list[SearchResult])
def api_search(q: str = "", db: DocumentStore = Depends(get_document_store)) -> list[SearchResult]:
    return search_stores(db, q)


@app.get("/api/stores/near", response_model=list[StoreSummary])
def api_near(
    lng: str | None = None,
    lat: str | None = None,
    db: DocumentStore = Depends(get_document_store),
) -> list[StoreSummary]:
    return map_stores(db, lng, lat)


@app.post("/api/stores/{store_id}/heart", response_model=UserOut)
def api_heart(
    store_id: str,
    user: dict = Depends(require_user),
    db: DocumentStore = Depends(get_document_store),
) -> UserOut:
    return toggle_heart(db, user["id"], store_id)

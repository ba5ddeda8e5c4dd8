"""Registry router: register, read, update and verify content."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from creg.errors import ERROR_MESSAGES, RegistryOperationError
from creg.registry.content_registry import ContentRegistry
from creg.registry.models import RegistryError
from creg.registry.snapshot import save_snapshot
from creg.web.schemas import (
    AuthorityRequest,
    ConfigResponse,
    ConfigValueRequest,
    ContentRegistrationRequest,
    ContentResponse,
    ContentUpdateRequest,
    ContentUpdateResponse,
    CountResponse,
    OwnershipResponse,
    RegistrationResponse,
)

router = APIRouter(prefix="/api/registry", tags=["registry"])

_STATUS_BY_ERROR: dict[RegistryError, int] = {
    RegistryError.NOT_AUTHORIZED: status.HTTP_403_FORBIDDEN,
    RegistryError.CONTENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    RegistryError.CONTENT_ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    RegistryError.MAX_CONTENTS_EXCEEDED: status.HTTP_409_CONFLICT,
    RegistryError.AUTHORITY_NOT_VERIFIED: status.HTTP_409_CONFLICT,
    RegistryError.TRANSFER_FAILED: status.HTTP_402_PAYMENT_REQUIRED,
}


def get_registry(request: Request) -> ContentRegistry:
    """Return the registry attached to the running application."""
    return request.app.state.registry


def get_caller(x_caller: Optional[str] = Header(None, alias="X-Caller")) -> str:
    """FastAPI dependency extracting the invoking identity.

    Raises ``401 Unauthorized`` when no ``X-Caller`` header is present.
    """
    if not x_caller:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Caller header",
        )
    return x_caller


async def registry_error_handler(request: Request, exc: RegistryOperationError) -> JSONResponse:
    """Translate a rejected registry operation into its HTTP status."""
    error = exc.error
    return JSONResponse(
        status_code=_STATUS_BY_ERROR.get(error, status.HTTP_400_BAD_REQUEST),
        content={
            "detail": {"code": error.value, "error": error.label, "detail": ERROR_MESSAGES[error]}
        },
    )


def _parse_hash(value: str) -> bytes:
    try:
        return bytes.fromhex(value)
    except ValueError:
        raise RegistryOperationError(RegistryError.INVALID_HASH)


def _persist(request: Request, registry: ContentRegistry) -> None:
    # Called from sync handlers, which FastAPI runs in its threadpool.
    path = getattr(request.app.state, "snapshot_path", None)
    if path is not None:
        save_snapshot(registry, path)


# ---------------------------------------------------------------------------
# Governance
# ---------------------------------------------------------------------------


@router.get("/config", response_model=ConfigResponse, summary="Show configuration")
def show_config(registry: ContentRegistry = Depends(get_registry)):
    cfg = registry.config
    return ConfigResponse(
        authority=cfg.authority,
        max_contents=cfg.max_contents,
        registration_fee=cfg.registration_fee,
        next_content_id=cfg.next_content_id,
    )


@router.post("/authority", summary="Set the registry authority")
def set_authority(
    body: AuthorityRequest,
    request: Request,
    caller: str = Depends(get_caller),
    registry: ContentRegistry = Depends(get_registry),
):
    """Assign the governing authority. Only the first call can succeed."""
    registry.set_authority(caller, body.authority).unwrap()
    _persist(request, registry)
    return {"authority": body.authority}


@router.put("/config/max-contents", summary="Set the capacity ceiling")
def set_max_contents(
    body: ConfigValueRequest,
    request: Request,
    caller: str = Depends(get_caller),
    registry: ContentRegistry = Depends(get_registry),
):
    registry.set_max_contents(caller, body.value).unwrap()
    _persist(request, registry)
    return {"max_contents": body.value}


@router.put("/config/fee", summary="Set the registration fee")
def set_registration_fee(
    body: ConfigValueRequest,
    request: Request,
    caller: str = Depends(get_caller),
    registry: ContentRegistry = Depends(get_registry),
):
    registry.set_registration_fee(caller, body.value).unwrap()
    _persist(request, registry)
    return {"registration_fee": body.value}


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


@router.get("/contents", response_model=list[ContentResponse], summary="List content")
def list_contents(
    offset: int = Query(0, ge=0),
    limit: int = Query(100, ge=0, le=1000),
    registry: ContentRegistry = Depends(get_registry),
):
    page = registry.list_contents(offset, limit).unwrap()
    return [ContentResponse.from_record(cid, record) for cid, record in page]


@router.post(
    "/contents",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register content",
)
def register_content(
    body: ContentRegistrationRequest,
    request: Request,
    caller: str = Depends(get_caller),
    registry: ContentRegistry = Depends(get_registry),
):
    """Register a content hash as owned by the caller.

    The registration fee is charged to the caller before the record is stored.
    """
    content_id = registry.register(
        caller,
        _parse_hash(body.hash),
        body.title,
        body.description,
        body.category,
        body.tags,
        body.price,
        body.royalty_rate,
        body.currency,
    ).unwrap()
    _persist(request, registry)
    return RegistrationResponse(id=content_id)


@router.get("/contents/count", response_model=CountResponse, summary="Count content")
def count_contents(registry: ContentRegistry = Depends(get_registry)):
    return CountResponse(count=registry.count().unwrap())


@router.get("/contents/{content_id}", response_model=ContentResponse, summary="Get content")
def get_content(content_id: int, registry: ContentRegistry = Depends(get_registry)):
    record = registry.get(content_id).unwrap()
    return ContentResponse.from_record(content_id, record)


@router.put("/contents/{content_id}", summary="Update content")
def update_content(
    content_id: int,
    body: ContentUpdateRequest,
    request: Request,
    caller: str = Depends(get_caller),
    registry: ContentRegistry = Depends(get_registry),
):
    """Replace title and description. Only the creator may update."""
    registry.update(caller, content_id, body.title, body.description).unwrap()
    _persist(request, registry)
    return {"updated": True}


@router.get(
    "/contents/{content_id}/last-update",
    response_model=ContentUpdateResponse,
    summary="Get the latest edit",
)
def get_last_update(content_id: int, registry: ContentRegistry = Depends(get_registry)):
    return ContentUpdateResponse.from_update(registry.get_update(content_id).unwrap())


@router.get("/hashes/{content_hash}", response_model=ContentResponse, summary="Look up by hash")
def get_by_hash(content_hash: str, registry: ContentRegistry = Depends(get_registry)):
    content_id = registry.get_by_hash(_parse_hash(content_hash)).unwrap()
    return ContentResponse.from_record(content_id, registry.get(content_id).unwrap())


@router.get("/verify", response_model=OwnershipResponse, summary="Verify ownership")
def verify_ownership(
    content_hash: str = Query(..., alias="hash"),
    identity: str = Query(...),
    registry: ContentRegistry = Depends(get_registry),
):
    """Answer whether *identity* registered *hash*. Unknown hashes are not owned."""
    try:
        key = bytes.fromhex(content_hash)
    except ValueError:
        key = b""
    verified = registry.verify_ownership(key, identity).unwrap()
    return OwnershipResponse(hash=content_hash, identity=identity, verified=verified)

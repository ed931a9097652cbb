"""Integration management routes. Configs are encrypted at rest.

List and create never return the config; fetching a single integration
returns it decrypted so it can be edited. Every route is scoped to the user
named by the ``X-User-Id`` header.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from flowrun.api.schemas import (
    IntegrationCreateRequest,
    IntegrationDetailResponse,
    IntegrationResponse,
    IntegrationUpdateRequest,
)
from flowrun.exceptions import CredentialError, CredentialNotFound
from flowrun.types import IntegrationType

logger = logging.getLogger(__name__)
router = APIRouter(tags=["integrations"])


# ── Dependencies ──────────────────────────────────────────────────────────────

def _get_user(x_user_id: Optional[str] = Header(default=None)) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="X-User-Id header is required.")
    return x_user_id


def _get_store(request: Request):
    return request.app.state.runtime.integrations


# ── Routes ────────────────────────────────────────────────────────────────────

@router.get("/integrations", response_model=list[IntegrationResponse])
async def list_integrations(
    type: Optional[IntegrationType] = None,
    user_id: str = Depends(_get_user),
    store=Depends(_get_store),
):
    return [IntegrationResponse.from_record(r) for r in store.list(user_id, integration_type=type)]


@router.post("/integrations", status_code=201, response_model=IntegrationResponse)
async def create_integration(
    body: IntegrationCreateRequest,
    user_id: str = Depends(_get_user),
    store=Depends(_get_store),
):
    try:
        record = store.create(user_id=user_id, name=body.name, integration_type=body.type, config=body.config)
    except CredentialError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    logger.info(f"[api] Created {record.type.value} integration {record.id}")
    return IntegrationResponse.from_record(record)


@router.get("/integrations/{integration_id}", response_model=IntegrationDetailResponse)
async def get_integration(
    integration_id: str,
    user_id: str = Depends(_get_user),
    store=Depends(_get_store),
):
    try:
        record, config = store.get(integration_id, user_id)
    except CredentialNotFound:
        raise HTTPException(status_code=404, detail="Integration not found")
    return IntegrationDetailResponse(**IntegrationResponse.from_record(record).model_dump(), config=config)


@router.api_route("/integrations/{integration_id}", methods=["PUT", "PATCH"], response_model=IntegrationResponse)
async def update_integration(
    integration_id: str,
    body: IntegrationUpdateRequest,
    user_id: str = Depends(_get_user),
    store=Depends(_get_store),
):
    """Rename and/or replace the config. Omitted fields are left unchanged."""
    try:
        record = store.update(integration_id, user_id, name=body.name, config=body.config)
    except CredentialNotFound:
        raise HTTPException(status_code=404, detail="Integration not found")
    return IntegrationResponse.from_record(record)


@router.delete("/integrations/{integration_id}")
async def delete_integration(
    integration_id: str,
    user_id: str = Depends(_get_user),
    store=Depends(_get_store),
):
    try:
        store.delete(integration_id, user_id)
    except CredentialNotFound:
        raise HTTPException(status_code=404, detail="Integration not found")
    return {"deleted": True}

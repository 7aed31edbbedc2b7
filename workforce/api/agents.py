"""
Agent endpoints, scoped to the session's current organization.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.core.auth import AuthContext, require_org_context, require_permission
from workforce.core.database import get_session
from workforce.services import agents as agent_service
from workforce_shared.schemas.agents import (
    AgentCreateRequest,
    AgentResponse,
    AgentStatusRequest,
    AgentUpdateRequest,
)
from workforce_shared.schemas.common import Permission

router = APIRouter()


@router.get("")
async def list_agents(
    auth: AuthContext = Depends(require_org_context),
    session: AsyncSession = Depends(get_session),
):
    agents = await agent_service.list_agents(auth.org_id, session)
    return {"success": True, "data": [AgentResponse.model_validate(a) for a in agents]}


@router.post("", status_code=201)
async def create_agent(
    body: AgentCreateRequest,
    auth: AuthContext = Depends(require_permission(Permission.CREATE)),
    session: AsyncSession = Depends(get_session),
):
    agent = await agent_service.create_agent(auth.org_id, body, auth.user_id, session)
    return {"success": True, "data": AgentResponse.model_validate(agent)}


@router.get("/{agent_id}")
async def get_agent(
    agent_id: uuid.UUID,
    auth: AuthContext = Depends(require_org_context),
    session: AsyncSession = Depends(get_session),
):
    agent = await agent_service.get_agent(auth.org_id, agent_id, session)
    return {"success": True, "data": AgentResponse.model_validate(agent)}


@router.patch("/{agent_id}")
async def update_agent(
    agent_id: uuid.UUID,
    body: AgentUpdateRequest,
    auth: AuthContext = Depends(require_permission(Permission.UPDATE)),
    session: AsyncSession = Depends(get_session),
):
    agent = await agent_service.get_agent(auth.org_id, agent_id, session)
    agent = await agent_service.update_agent(agent, body, session)
    return {"success": True, "data": AgentResponse.model_validate(agent)}


@router.post("/{agent_id}/status")
async def set_agent_status(
    agent_id: uuid.UUID,
    body: AgentStatusRequest,
    auth: AuthContext = Depends(require_permission(Permission.UPDATE)),
    session: AsyncSession = Depends(get_session),
):
    agent = await agent_service.get_agent(auth.org_id, agent_id, session)
    agent = await agent_service.set_agent_status(agent, body.status, session)
    return {"success": True, "data": AgentResponse.model_validate(agent)}

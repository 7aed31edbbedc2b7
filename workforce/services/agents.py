"""
Agent service: per-organization instances of subscribed catalog services.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from workforce.core.errors import NotFoundError, ValidationError
from workforce.models.agent import Agent
from workforce.models.base import utcnow
from workforce.services.catalog import get_service, is_subscribed
from workforce_shared.schemas.agents import (
    AgentCreateRequest,
    AgentStatus,
    AgentUpdateRequest,
)

log = structlog.get_logger()


async def list_agents(org_id: uuid.UUID, session: AsyncSession) -> list[Agent]:
    result = await session.execute(
        select(Agent).where(Agent.org_id == org_id).order_by(Agent.created_at.desc())
    )
    return list(result.scalars().all())


async def get_agent(org_id: uuid.UUID, agent_id: uuid.UUID, session: AsyncSession) -> Agent:
    """Get an agent of this org; agents of other orgs are reported as missing."""
    agent = await session.get(Agent, agent_id)
    if agent is None or agent.org_id != org_id:
        raise NotFoundError("Agent not found", code="AGENT_NOT_FOUND")
    return agent


async def create_agent(
    org_id: uuid.UUID,
    req: AgentCreateRequest,
    creator_id: uuid.UUID,
    session: AsyncSession,
) -> Agent:
    """Create an agent for a service the org is subscribed to."""
    service = await get_service(str(req.service_id), session)
    if not await is_subscribed(service.id, org_id, session):
        raise ValidationError(
            "Organization is not subscribed to this service",
            code="SERVICE_NOT_SUBSCRIBED",
        )

    agent = Agent(
        org_id=org_id,
        service_id=service.id,
        agent_name=req.agent_name,
        description=req.description,
        status=AgentStatus.CONFIGURING.value,
        configuration=dict(req.configuration),
        created_by=creator_id,
    )
    session.add(agent)
    await session.flush()

    log.info("agent.created", agent_id=str(agent.id), org_id=str(org_id), service_id=str(service.id))
    return agent


async def update_agent(agent: Agent, req: AgentUpdateRequest, session: AsyncSession) -> Agent:
    if req.agent_name is not None:
        agent.agent_name = req.agent_name
    if req.description is not None:
        agent.description = req.description
    if req.configuration is not None:
        agent.configuration = dict(req.configuration)

    agent.updated_at = utcnow()
    session.add(agent)
    await session.flush()

    log.info("agent.updated", agent_id=str(agent.id))
    return agent


async def set_agent_status(agent: Agent, status: AgentStatus, session: AsyncSession) -> Agent:
    previous = agent.status
    agent.status = status.value
    agent.last_activity = utcnow()
    agent.updated_at = agent.last_activity
    session.add(agent)
    await session.flush()

    log.info("agent.status_changed", agent_id=str(agent.id), previous=previous, status=agent.status)
    return agent

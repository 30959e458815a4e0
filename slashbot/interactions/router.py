from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import partial

from slashbot.commands import render
from slashbot.commands.registry import CommandRegistry
from slashbot.commands.types import CommandContext, CommandMode
from slashbot.core.ids import IdGenerator
from slashbot.core.timeutil import Clock
from slashbot.deferred.job import DeferredJob
from slashbot.deferred.manager import Work
from slashbot.services.errors import ServiceError

from .errors import UnknownInteractionType
from .model import Interaction, InteractionType
from .responses import DEFERRED_ACK, PONG, Response

logger = logging.getLogger(__name__)

HANDSHAKE = "HANDSHAKE"
DISPATCHED = "DISPATCHED"
UNKNOWN_COMMAND = "UNKNOWN_COMMAND"


@dataclass(frozen=True)
class Dispatch:
    outcome: str
    response: Response
    job: DeferredJob | None = None
    work: Work | None = None


class InteractionRouter:
    def __init__(
        self,
        *,
        registry: CommandRegistry,
        context: CommandContext,
        clock: Clock,
        immediate_timeout_seconds: float,
        ids: IdGenerator | None = None,
    ):
        self._registry = registry
        self._context = context
        self._clock = clock
        self._immediate_timeout = immediate_timeout_seconds
        self._ids = ids or IdGenerator()

    async def route(self, interaction: Interaction) -> Dispatch:
        kind = interaction.kind
        if kind is InteractionType.PING:
            return Dispatch(outcome=HANDSHAKE, response=PONG)
        if kind is not InteractionType.APPLICATION_COMMAND or interaction.command is None:
            raise UnknownInteractionType(
                code="UNKNOWN_INTERACTION_TYPE", message=f"unsupported interaction type: {interaction.type}"
            )

        invocation = interaction.command
        descriptor = self._registry.get(invocation.name)
        if descriptor is None:
            logger.info("unknown command /%s", invocation.name)
            return Dispatch(outcome=UNKNOWN_COMMAND, response=render.unknown_command(invocation.name))

        if descriptor.mode is CommandMode.DEFERRED:
            now = self._clock.now()
            job = DeferredJob(
                job_id=self._ids.new_job_id(now),
                application_id=str(interaction.application_id),
                token=str(interaction.token),
                command_name=descriptor.name,
                started_at=now,
            )
            work = partial(descriptor.handler, invocation.options, self._context)
            return Dispatch(outcome=DISPATCHED, response=DEFERRED_ACK, job=job, work=work)

        try:
            message = await asyncio.wait_for(
                descriptor.handler(invocation.options, self._context), timeout=self._immediate_timeout
            )
        except asyncio.TimeoutError:
            logger.warning("/%s exceeded the immediate reply budget", descriptor.name)
            message = render.immediate_timeout(descriptor.name)
        except ServiceError as e:
            logger.warning("/%s upstream failure: %s", descriptor.name, e.code)
            message = render.service_error(e)
        except Exception:
            logger.exception("/%s handler raised", descriptor.name)
            message = render.internal_error(descriptor.name)
        return Dispatch(outcome=DISPATCHED, response=message)


from __future__ import annotations

import logging
import random
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from slashbot.commands.builtin import build_default_registry
from slashbot.commands.registry import CommandRegistry
from slashbot.commands.types import CommandContext, CommandSettings
from slashbot.core.config import AppConfig
from slashbot.core.ids import IdGenerator
from slashbot.core.logsetup import request_id_var
from slashbot.core.schema import SchemaRegistry
from slashbot.core.timeutil import Clock
from slashbot.deferred.followup import FollowupClient, FollowupSender
from slashbot.deferred.manager import DeferredResponseManager
from slashbot.services.client import ExternalServiceClient, HttpServiceClient

from .errors import AuthenticationFailure, MalformedPayload, UnknownInteractionType
from .model import parse_interaction
from .responses import to_wire
from .router import InteractionRouter
from .signature import SIGNATURE_HEADER, TIMESTAMP_HEADER, SignatureVerifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppContext:
    config: AppConfig
    verifier: SignatureVerifier
    schemas: SchemaRegistry
    router: InteractionRouter
    deferred: DeferredResponseManager
    ids: IdGenerator
    http: httpx.AsyncClient | None = None


def build_context(
    config: AppConfig,
    *,
    registry: CommandRegistry | None = None,
    services: ExternalServiceClient | None = None,
    followup: FollowupSender | None = None,
    clock: Clock | None = None,
    rng: random.Random | None = None,
) -> AppContext:
    clock = clock or Clock()
    ids = IdGenerator()
    http = None
    if services is None or followup is None:
        http = httpx.AsyncClient(timeout=config.http_timeout_seconds)
    if services is None:
        services = HttpServiceClient(
            http=http,
            completion_base_url=config.completion_base_url,
            api_key=config.completion_api_key,
            model=config.completion_model,
            timeout_seconds=config.http_timeout_seconds,
        )
    if followup is None:
        followup = FollowupClient(
            http=http, api_base_url=config.api_base_url, timeout_seconds=config.http_timeout_seconds
        )

    command_ctx = CommandContext(
        services=services,
        settings=CommandSettings(
            max_tokens=config.completion_max_tokens,
            facts_url=config.facts_url,
            cat_image_url=config.cat_image_url,
            lookup_timeout_seconds=config.lookup_timeout_seconds,
        ),
        rng=rng or random.Random(),
    )
    return AppContext(
        config=config,
        verifier=SignatureVerifier(config.public_key),
        schemas=SchemaRegistry(),
        router=InteractionRouter(
            registry=registry or build_default_registry(),
            context=command_ctx,
            clock=clock,
            immediate_timeout_seconds=config.immediate_timeout_seconds,
            ids=ids,
        ),
        deferred=DeferredResponseManager(
            sender=followup,
            clock=clock,
            deferred_timeout_seconds=config.deferred_timeout_seconds,
            followup_window_seconds=config.followup_window_seconds,
        ),
        ids=ids,
        http=http,
    )


def _authenticate(ctx: AppContext, request: Request, raw_body: bytes) -> None:
    signature = request.headers.get(SIGNATURE_HEADER)
    timestamp = request.headers.get(TIMESTAMP_HEADER)
    if not signature or not timestamp:
        raise AuthenticationFailure(code="MISSING_SIGNATURE", message="signature headers missing")
    if not ctx.verifier.verify(raw_body, signature, timestamp):
        raise AuthenticationFailure(code="BAD_SIGNATURE", message="signature mismatch")


def create_app(ctx: AppContext) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await ctx.deferred.shutdown()
        if ctx.http is not None:
            await ctx.http.aclose()

    app = FastAPI(title="slashbot interactions", version="0.1.0", lifespan=lifespan)

    @app.get("/interactions", response_class=PlainTextResponse)
    def interactions_check() -> str:
        return "OK"

    @app.post("/interactions")
    async def interactions(request: Request, background_tasks: BackgroundTasks):
        token = request_id_var.set(ctx.ids.new_request_id())
        try:
            raw_body = await request.body()
            try:
                _authenticate(ctx, request, raw_body)
            except AuthenticationFailure as e:
                logger.info("rejected interaction: %s", e.code)
                return PlainTextResponse("invalid request signature", status_code=401)

            try:
                interaction = parse_interaction(raw_body, ctx.schemas)
                dispatch = await ctx.router.route(interaction)
            except MalformedPayload as e:
                logger.info("malformed interaction: %s", e.message)
                return JSONResponse({"error": "malformed payload"}, status_code=400)
            except UnknownInteractionType as e:
                logger.info("%s", e.message)
                return JSONResponse({"error": e.message}, status_code=400)

            if dispatch.job is not None and dispatch.work is not None:
                ctx.deferred.begin(dispatch.job, dispatch.work, launcher=background_tasks.add_task)
            logger.info("interaction handled: %s", dispatch.outcome)
            return JSONResponse(to_wire(dispatch.response))
        finally:
            request_id_var.reset(token)

    return app

#!/usr/bin/env python3
"""
FastAPI Application for the CodeForge AI Router

This FastAPI application exposes the multi-provider AI router as REST
APIs for the editor front-end and other services.

Endpoints:
- POST /api/generate/code: Generate code through the routed provider
- POST /api/generate/code/stream: Same, streamed as plain text
- POST /api/projects: Create a project and generate its DNA document
- GET /api/usage: Usage statistics and records
- DELETE /api/usage: Clear usage records
- GET /api/providers: Provider configuration and model catalogs
- POST /api/route: Preview the routing decision for a task
- GET /health: Health check endpoint
"""

import json
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional, Dict, Any, List

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field
import uvicorn

from main import AppContext, load_config, create_app_context
from core.data_models import TaskDescriptor, TaskType, QualityTier
from core.exceptions import LLMRouterError
from llm_providers.base_provider import ChatMessage, ChatRequest
from project_dna import ProjectSetupForm

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"
BASE_SYSTEM_PROMPT = "You are an expert software engineer. Generate clean, production-ready code."


# Pydantic Models for API Request/Response
class GenerateCodeRequest(BaseModel):
    """Request model for code generation"""
    prompt: Optional[str] = Field(None, description="What to generate")
    task_type: str = Field(TaskType.CODE_GENERATION.value, description="Task type used for routing")
    quality_level: str = Field(QualityTier.STANDARD.value, description="Quality tier used for routing")
    project_dna: Optional[Dict[str, Any]] = Field(None, description="Project DNA document for context")
    max_tokens: Optional[int] = Field(None, description="Override default max tokens", ge=1)
    temperature: Optional[float] = Field(None, description="Override default temperature", ge=0.0, le=2.0)


class UsageSummary(BaseModel):
    input_tokens: int
    output_tokens: int
    cost: float


class GenerateCodeResponse(BaseModel):
    """Response model for code generation"""
    success: bool = True
    code: str
    usage: UsageSummary
    model: str
    provider: str


class ProjectSetupRequest(BaseModel):
    """Request model for project creation"""
    name: Optional[str] = None
    description: Optional[str] = None
    type: str = "fullstack"
    framework: str = ""
    styling: str = ""
    database: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    template: Optional[str] = None


class RouteRequest(BaseModel):
    """Request model for the routing preview"""
    task_type: str = TaskType.CODE_GENERATION.value
    quality_level: str = QualityTier.STANDARD.value
    preferred_provider: Optional[str] = None
    preferred_model: Optional[str] = None
    max_cost: Optional[float] = Field(None, ge=0.0)
    max_latency_ms: Optional[int] = Field(None, ge=0)


class HealthResponse(BaseModel):
    """Response model for health endpoint"""
    status: str
    timestamp: str
    version: str = API_VERSION
    providers_configured: List[str]


def build_system_prompt(project_dna: Optional[Dict[str, Any]]) -> str:
    """System prompt for code generation, specialised by project DNA when given"""
    if not project_dna:
        return BASE_SYSTEM_PROMPT

    frontend = (project_dna.get("techStack") or {}).get("frontend") or {}
    architecture = project_dna.get("architecture") or {}
    standards = project_dna.get("codingStandards") or {}

    return (
        "You are an expert software engineer. Generate high-quality code following these project standards:\n\n"
        "**Tech Stack:**\n"
        f"- Framework: {frontend.get('framework', 'unspecified')}\n"
        f"- Language: {frontend.get('language', 'unspecified')}\n"
        f"- Styling: {frontend.get('styling', 'unspecified')}\n\n"
        "**Coding Standards:**\n"
        f"- Naming conventions: {json.dumps(architecture.get('namingConventions', {}))}\n"
        f"- Code style: {json.dumps(standards.get('codeStyle', {}))}\n\n"
        "Generate clean, production-ready code that follows these standards."
    )


def error_response(status_code: int, error: str, details: Optional[str] = None,
                   classification: Optional[str] = None) -> JSONResponse:
    content: Dict[str, Any] = {"error": error}
    if details is not None:
        content["details"] = details
    if classification is not None:
        content["classification"] = classification
    return JSONResponse(status_code=status_code, content=content)


def _task_and_request(body: GenerateCodeRequest):
    task = TaskDescriptor(task_type=body.task_type, quality_tier=body.quality_level)
    request = ChatRequest(
        messages=[
            ChatMessage(role="system", content=build_system_prompt(body.project_dna)),
            ChatMessage(role="user", content=body.prompt),
        ],
        max_output_tokens=body.max_tokens,
        temperature=body.temperature,
    )
    return task, request


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        context: Pre-built application context. When omitted, one is built
            from config.ini and the environment at startup and closed at
            shutdown.
    """

    # Application lifecycle management
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting AI Router service...")
        owns_context = app.state.context is None
        if owns_context:
            app.state.context = create_app_context(load_config())

        yield

        logger.info("Shutting down AI Router service...")
        if owns_context:
            await app.state.context.aclose()

    app = FastAPI(
        title="CodeForge AI Router API",
        description="Multi-provider LLM routing with usage tracking",
        version=API_VERSION,
        lifespan=lifespan,
    )
    app.state.context = context

    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request):
        """Health check endpoint"""
        ctx = get_context(request)
        return HealthResponse(
            status="healthy",
            timestamp=time.strftime("%Y-%m-%d %H:%M:%S UTC", time.gmtime()),
            providers_configured=ctx.ai_router.get_available_providers(),
        )

    @app.post("/api/generate/code", response_model=GenerateCodeResponse)
    async def generate_code(body: GenerateCodeRequest, request: Request):
        """Generate code with the routed provider"""
        if not body.prompt:
            return error_response(400, "Prompt is required")

        ctx = get_context(request)
        task, chat_request = _task_and_request(body)
        logger.info(f"Code generation request ({task.task_type_value}/{task.quality_tier_value}): {body.prompt[:100]}")

        try:
            response = await ctx.ai_router.chat(task, chat_request)
        except LLMRouterError as e:
            logger.error(f"Code generation failed: {e.detail}")
            return error_response(500, "Failed to generate code", e.detail, e.classification)
        except Exception as e:
            logger.exception("Unexpected error during code generation")
            return error_response(500, "Failed to generate code", str(e))

        return GenerateCodeResponse(
            code=response.text,
            usage=UsageSummary(
                input_tokens=response.input_token_count,
                output_tokens=response.output_token_count,
                cost=response.cost_estimate,
            ),
            model=response.model_id,
            provider=response.provider,
        )

    @app.post("/api/generate/code/stream")
    async def generate_code_stream(body: GenerateCodeRequest, request: Request):
        """Generate code and stream fragments as plain text"""
        if not body.prompt:
            return error_response(400, "Prompt is required")

        ctx = get_context(request)
        task, chat_request = _task_and_request(body)

        try:
            stream = await ctx.ai_router.stream_chat(task, chat_request)
        except LLMRouterError as e:
            logger.error(f"Streaming code generation failed: {e.detail}")
            return error_response(500, "Failed to generate code", e.detail, e.classification)

        async def body_iterator():
            # Closing the stream releases the vendor connection when the client disconnects
            async with stream:
                try:
                    async for fragment in stream:
                        yield fragment
                except LLMRouterError as e:
                    logger.error(f"Stream from {stream.provider}/{stream.model_id} aborted: {e.detail}")

        return StreamingResponse(
            body_iterator(),
            media_type="text/plain; charset=utf-8",
            headers={"X-Provider": stream.provider, "X-Model": stream.model_id},
        )

    @app.post("/api/projects")
    async def create_project(body: ProjectSetupRequest, request: Request):
        """Create a project and generate its DNA document"""
        if not body.name:
            return error_response(400, "Project name is required")

        ctx = get_context(request)
        form = ProjectSetupForm(
            name=body.name,
            description=body.description,
            type=body.type,
            framework=body.framework,
            styling=body.styling,
            database=body.database,
            features=list(body.features),
            template=body.template,
        )

        try:
            dna = await ctx.dna_generator.generate_project_dna(form)
        except LLMRouterError as e:
            logger.error(f"Project creation failed: {e.detail}")
            return error_response(500, "Failed to create project", e.detail, e.classification)
        except Exception as e:
            logger.exception("Unexpected error during project creation")
            return error_response(500, "Failed to create project", str(e))

        return {
            "success": True,
            "project": {
                "id": dna["projectId"],
                "name": body.name,
                "description": body.description,
                "dna": dna,
            },
            "message": "Project DNA generated successfully",
        }

    @app.get("/api/usage")
    async def get_usage(request: Request, start: Optional[float] = None, end: Optional[float] = None):
        """Usage statistics, optionally with records limited to a time range"""
        tracker = get_context(request).usage_tracker
        if start is not None or end is not None:
            records = tracker.get_records_in_range(
                start if start is not None else 0.0,
                end if end is not None else time.time(),
            )
        else:
            records = tracker.records
        return {
            "stats": tracker.get_stats(),
            "records": [record.to_dict() for record in records],
        }

    @app.delete("/api/usage")
    async def clear_usage(request: Request):
        get_context(request).usage_tracker.clear_records()
        return {"success": True}

    @app.get("/api/providers")
    async def get_providers(request: Request):
        """Provider configuration status and model catalogs"""
        ctx = get_context(request)
        return {
            "available": ctx.ai_router.get_available_providers(),
            "providers": ctx.provider_manager.describe(),
        }

    @app.post("/api/route")
    async def preview_route(body: RouteRequest, request: Request):
        """Show which provider and model a task would be routed to"""
        ctx = get_context(request)
        task = TaskDescriptor(
            task_type=body.task_type,
            quality_tier=body.quality_level,
            preferred_provider=body.preferred_provider,
            preferred_model=body.preferred_model,
            max_cost=body.max_cost,
            max_latency_ms=body.max_latency_ms,
        )
        try:
            decision = ctx.ai_router.route_task(task)
        except LLMRouterError as e:
            return error_response(500, "Failed to route task", e.detail, e.classification)
        return decision.to_dict()

    return app


app = create_app()


if __name__ == "__main__":
    import os
    import sys

    # Enable debug mode if DEBUG environment variable is set
    debug_mode = os.getenv("DEBUG", "false").lower() == "true"
    if debug_mode:
        # Set logging level to DEBUG for more verbose output
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug mode enabled")
        logger.debug(f"Python path: {sys.executable}")
        logger.debug(f"Working directory: {os.getcwd()}")

    # Run with uvicorn for development
    uvicorn.run(
        "fastapi_app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="debug" if debug_mode else "info",
        access_log=True
    )

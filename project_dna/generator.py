"""
Project DNA generation.

A project DNA document is a JSON description of a project's tech stack,
architecture, design system and coding standards. It is generated by the
AI router as a complex-reasoning task; when the model output cannot be
decoded a template document built from the setup form is used instead.
"""

import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from core.data_models import TaskDescriptor, TaskType, QualityTier
from core.exceptions import DecodeError
from llm_providers.base_provider import ChatMessage, ChatRequest

logger = logging.getLogger(__name__)

DNA_VERSION = "1.0.0"
DNA_MAX_COST = 0.5
DNA_TEMPERATURE = 0.7

DNA_SYSTEM_PROMPT = (
    "You are an expert software architect. Generate a comprehensive Project DNA document in JSON format.\n"
    "The DNA should include complete tech stack decisions, architecture patterns, naming conventions, "
    "design system,\ncoding standards, and all necessary configuration. Be specific and detailed. "
    "Output ONLY valid JSON, no markdown, no explanation."
)

PROJECT_TYPES = ("fullstack", "frontend", "backend", "mobile", "api")


@dataclass
class ProjectSetupForm:
    """Answers collected when a new project is created"""
    name: str
    description: Optional[str] = None
    type: str = "fullstack"
    framework: str = ""
    styling: str = ""
    database: Optional[str] = None
    features: List[str] = field(default_factory=list)
    template: Optional[str] = None


def generate_project_id() -> str:
    return f"proj_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences wrapped around a model's JSON output"""
    text = text.strip()
    if text.startswith("```"):
        text = text.replace("```json\n", "").replace("```json", "")
        text = text.replace("```\n", "").replace("```", "")
    return text.strip()


def parse_dna_document(text: str) -> Dict[str, Any]:
    """
    Decode a DNA document.

    Raises:
        DecodeError: If the text is not a JSON object
    """
    try:
        document = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise DecodeError(f"Project DNA is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise DecodeError(f"Project DNA must be a JSON object, got {type(document).__name__}")
    return document


def serialize_dna(dna: Dict[str, Any]) -> str:
    """Minified JSON form for storage or transmission"""
    return json.dumps(dna, separators=(",", ":"))


def build_dna_prompt(form: ProjectSetupForm) -> str:
    lines = [
        "Generate a Project DNA for the following project:",
        "",
        "**Project Details:**",
        f"- Name: {form.name}",
        f"- Description: {form.description or 'Not provided'}",
        f"- Type: {form.type}",
        f"- Framework: {form.framework}",
        f"- Styling: {form.styling}",
    ]
    if form.database:
        lines.append(f"- Database: {form.database}")
    lines.append(f"- Features: {', '.join(form.features)}")
    lines.extend([
        "",
        "**Requirements:**",
        "1. Choose appropriate tech stack based on the framework and project type",
        "2. Define a clear architecture pattern",
        "3. Establish naming conventions for files, variables, components, and constants",
        "4. Create a comprehensive folder structure",
        "5. Define a cohesive design system (colors, typography, spacing)",
        "6. Set coding standards (linter, formatter, testing framework)",
        "7. List necessary dependencies",
        "8. Set environment requirements",
        "",
        "Generate a complete ProjectDNA JSON object with all these details. Be specific and production-ready.",
    ])
    return "\n".join(lines)


def build_fallback_dna(form: ProjectSetupForm) -> Dict[str, Any]:
    """Template DNA document derived only from the setup form"""
    now = _now_iso()
    return {
        "projectId": generate_project_id(),
        "techStack": {
            "frontend": {
                "framework": form.framework or "React",
                "language": "TypeScript",
                "styling": form.styling or "Tailwind CSS",
                "uiLibrary": "shadcn/ui",
            },
            "backend": {
                "runtime": "Node.js",
                "framework": "Next.js API" if form.type == "fullstack" else "Express",
                "language": "TypeScript",
            },
            "database": {
                "primary": form.database or "PostgreSQL",
                "orm": "Prisma",
                "cache": "Redis",
            },
        },
        "architecture": {
            "structure": "monorepo",
            "pattern": "Feature-based",
            "namingConventions": {
                "files": "kebab-case",
                "variables": "camelCase",
                "components": "PascalCase",
                "constants": "UPPER_SNAKE_CASE",
            },
            "folderStructure": [
                "src/app",
                "src/components/ui",
                "src/components/features",
                "src/lib",
                "src/hooks",
                "src/types",
                "src/store",
                "prisma",
                "public",
                "tests",
            ],
        },
        "features": list(form.features),
        "designSystem": {
            "colors": {
                "primary": "#3b82f6",
                "secondary": "#8b5cf6",
                "accent": "#f59e0b",
                "background": "#ffffff",
                "foreground": "#0a0a0a",
                "muted": "#f1f5f9",
                "border": "#e2e8f0",
            },
            "typography": {
                "fontFamily": "Inter, system-ui, sans-serif",
                "fontSize": {"xs": "0.75rem", "sm": "0.875rem", "base": "1rem", "lg": "1.125rem", "xl": "1.25rem"},
            },
            "spacing": "8px",
            "borderRadius": "8px",
        },
        "codingStandards": {
            "linter": "ESLint",
            "formatter": "Prettier",
            "testing": "Vitest",
            "commitStyle": "Conventional Commits",
            "codeStyle": {
                "maxLineLength": 100,
                "semicolons": True,
                "quotes": "single",
                "trailingComma": "all",
                "tabWidth": 2,
                "useTabs": False,
            },
        },
        "dependencies": {
            "production": {
                "react": "^18.3.0",
                "next": "^14.0.0",
                "@prisma/client": "^5.0.0",
                "zustand": "^4.0.0",
            },
            "development": {
                "typescript": "^5.0.0",
                "@types/react": "^18.0.0",
                "@types/node": "^20.0.0",
                "prettier": "^3.0.0",
                "eslint": "^8.0.0",
            },
        },
        "environment": {"nodeVersion": "20.x", "packageManager": "npm"},
        "createdAt": now,
        "updatedAt": now,
        "version": DNA_VERSION,
    }


class DNAGenerator:
    """Generates project DNA documents through the AI router"""

    def __init__(self, ai_router):
        self.ai_router = ai_router

    async def generate_project_dna(self, form: ProjectSetupForm) -> Dict[str, Any]:
        """
        Generate a DNA document for a new project.

        Routing and provider errors propagate. A response that cannot be
        decoded is replaced by the template document, with a warning.

        Args:
            form: Project setup answers

        Returns:
            Dict[str, Any]: DNA document with projectId, timestamps and version set
        """
        task = TaskDescriptor(
            task_type=TaskType.COMPLEX_REASONING,
            quality_tier=QualityTier.STANDARD,
            max_cost=DNA_MAX_COST,
        )
        request = ChatRequest(
            messages=[
                ChatMessage(role="system", content=DNA_SYSTEM_PROMPT),
                ChatMessage(role="user", content=build_dna_prompt(form)),
            ],
            temperature=DNA_TEMPERATURE,
        )

        response = await self.ai_router.chat(task, request)

        try:
            dna = parse_dna_document(response.text)
        except DecodeError as e:
            logger.warning(f"Falling back to template DNA for project '{form.name}': {e.detail}")
            return build_fallback_dna(form)

        now = _now_iso()
        if not dna.get("projectId"):
            dna["projectId"] = generate_project_id()
        if not dna.get("createdAt"):
            dna["createdAt"] = now
        if not dna.get("updatedAt"):
            dna["updatedAt"] = now
        if not dna.get("version"):
            dna["version"] = DNA_VERSION
        return dna

"""Architecture sketching for plans.

Produces the tech stack, directory structure and data models attached to a
:class:`~src.core.task.models.Plan`.  Everything starts from a fixed baseline;
additions are gated by the prompt, the detected objectives and (optionally)
an existing repository's context.
"""

from __future__ import annotations

import re

from src.core.planning.classifier import Objective
from src.core.planning.repository import RepositoryContext
from src.core.task.models import Architecture, DataField, DataModel, Relationship
from src.utils.logging import get_logger

logger = get_logger("planning.architecture")


BASELINE_STACK = ["React 18", "TypeScript", "Tailwind CSS", "Vite"]
UI_STACK = ["shadcn/ui", "Radix UI"]
TEST_STACK = ["Vitest", "Playwright"]

# (prompt pattern, stack additions); applied in order.
_CONDITIONAL_STACK: list[tuple[str, list[str]]] = [
    (r"\bmulti-page\b|\brouting\b", ["Wouter"]),
    (r"\bcomplex state\b|\bredux\b", ["TanStack Query"]),
    (r"\bapis?\b|\bbackend\b", ["Express.js", "PostgreSQL", "Drizzle ORM"]),
    (r"\bauth\w*|\blog ?in\b", ["Session-based Auth"]),
]

# Manifest dependency name -> stack entry, for repositories that already exist.
_MANIFEST_STACK: dict[str, str] = {
    "express": "Express.js",
    "drizzle-orm": "Drizzle ORM",
    "pg": "PostgreSQL",
    "wouter": "Wouter",
    "@tanstack/react-query": "TanStack Query",
    "next": "Next.js",
    "vitest": "Vitest",
    "playwright": "Playwright",
}

_BASE_STRUCTURE: dict[str, list[str]] = {
    "client/src/pages": [],
    "client/src/components": [],
    "client/src/lib": ["utils.ts"],
    "client/src/hooks": [],
}

# Objective key -> (directory, file) additions.
_OBJECTIVE_FILES: dict[str, list[tuple[str, str]]] = {
    "content": [
        ("client/src/pages", "blog.tsx"),
        ("client/src/pages", "post.tsx"),
        ("client/src/components", "PostCard.tsx"),
        ("client/src/components", "PostList.tsx"),
    ],
    "dashboard": [
        ("client/src/pages", "dashboard.tsx"),
        ("client/src/components", "StatsCard.tsx"),
        ("client/src/components", "Chart.tsx"),
    ],
    "identity": [
        ("client/src/pages", "login.tsx"),
        ("client/src/hooks", "useAuth.ts"),
    ],
    "theming": [
        ("client/src/components", "ThemeToggle.tsx"),
    ],
    "forms": [
        ("client/src/components", "ContactForm.tsx"),
    ],
}


class ArchitectureDesigner:
    """Builds the :class:`Architecture` section of a plan.

    Parameters
    ----------
    include_data_models:
        When ``False`` no data models are emitted regardless of objectives.
    """

    def __init__(self, include_data_models: bool = True):
        self.include_data_models = include_data_models

    def design(
        self,
        prompt: str,
        objectives: list[Objective],
        repo_context: RepositoryContext | None = None,
    ) -> Architecture:
        text = (prompt or "").lower()
        keys = {o.key for o in objectives}

        tech_stack = self.tech_stack(text, repo_context)
        structure = self.structure(keys, tech_stack, repo_context)
        data_models = self.data_models(keys) if self.include_data_models else []

        logger.debug(
            "architecture_designed",
            stack_size=len(tech_stack),
            directories=len(structure),
            data_models=[m.name for m in data_models],
        )
        return Architecture(
            tech_stack=tech_stack,
            structure=structure,
            data_models=data_models,
        )

    # ----- Tech stack -------------------------------------------------------

    @staticmethod
    def tech_stack(
        text: str,
        repo_context: RepositoryContext | None = None,
    ) -> list[str]:
        stack: list[str] = list(BASELINE_STACK)

        for pattern, additions in _CONDITIONAL_STACK:
            if re.search(pattern, text):
                stack.extend(a for a in additions if a not in stack)

        if repo_context is not None:
            for dependency in repo_context.dependency_names():
                entry = _MANIFEST_STACK.get(dependency)
                if entry and entry not in stack:
                    stack.append(entry)

        stack.extend(s for s in UI_STACK if s not in stack)
        stack.extend(s for s in TEST_STACK if s not in stack)
        return stack

    # ----- Directory structure ----------------------------------------------

    @staticmethod
    def structure(
        keys: set[str],
        tech_stack: list[str],
        repo_context: RepositoryContext | None = None,
    ) -> dict[str, list[str]]:
        structure = {d: list(files) for d, files in _BASE_STRUCTURE.items()}

        for key, entries in _OBJECTIVE_FILES.items():
            if key not in keys:
                continue
            for directory, filename in entries:
                bucket = structure.setdefault(directory, [])
                if filename not in bucket:
                    bucket.append(filename)

        pages = structure["client/src/pages"]
        if "index.tsx" not in pages:
            pages.insert(0, "index.tsx")

        if "Express.js" in tech_stack:
            structure["server/routes"] = ["api.ts"]
            structure["server/services"] = []
            structure["shared"] = ["schema.ts"]

        if repo_context is not None:
            for directory, files in repo_context.structure.items():
                bucket = structure.setdefault(directory, [])
                bucket.extend(f for f in files if f not in bucket)

        return structure

    # ----- Data models ------------------------------------------------------

    @staticmethod
    def data_models(keys: set[str]) -> list[DataModel]:
        models: list[DataModel] = []

        if "content" in keys:
            post = DataModel(
                name="Post",
                fields=[
                    DataField(name="id", type="string", description="Unique identifier"),
                    DataField(name="title", type="string", description="Post title"),
                    DataField(name="content", type="text", description="Post content"),
                    DataField(name="author", type="string", description="Author name"),
                    DataField(name="publishedAt", type="date", description="Publication date"),
                    DataField(name="tags", type="string[]", required=False, description="Post tags"),
                ],
            )
            models.append(post)

        if "identity" in keys:
            user = DataModel(
                name="User",
                fields=[
                    DataField(name="id", type="string", description="Unique identifier"),
                    DataField(name="email", type="string", description="User email"),
                    DataField(name="username", type="string", description="Username"),
                    DataField(name="passwordHash", type="string", description="Hashed password"),
                    DataField(name="createdAt", type="date", description="Account creation date"),
                ],
            )
            if "content" in keys:
                user.relationships.append(Relationship(type="one-to-many", target="Post"))
            models.append(user)

        if "forms" in keys:
            models.append(
                DataModel(
                    name="ContactMessage",
                    fields=[
                        DataField(name="id", type="string", description="Unique identifier"),
                        DataField(name="name", type="string", description="Sender name"),
                        DataField(name="email", type="string", description="Sender email"),
                        DataField(name="message", type="text", description="Message body"),
                        DataField(name="createdAt", type="date", description="Submission date"),
                    ],
                )
            )

        return models

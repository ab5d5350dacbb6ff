"""Deterministic, offline generation backend built on Jinja2 templates.

Used whenever no LLM provider is configured.  The same request always
yields the same files, which keeps automation runs reproducible.
"""

from __future__ import annotations

import json
import re

from jinja2 import Environment, StrictUndefined

from src.core.task.models import TaskType
from src.engines.base import GenerationBackend
from src.engines.models import (
    ExecutionError,
    GeneratedFile,
    GenerationRequest,
    GenerationResponse,
)
from src.utils.logging import get_logger

logger = get_logger("engines.template")

_env = Environment(keep_trailing_newline=True, undefined=StrictUndefined)


# ------------------------------------------------------------------ #
#  Jinja2 string templates
# ------------------------------------------------------------------ #

INDEX_HTML = """\
<!doctype html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>{{ title }}</title>
  </head>
  <body>
    <div id="root"></div>
    <script type="module" src="/src/main.tsx"></script>
  </body>
</html>
"""

MAIN_TSX = """\
import React from 'react'
import ReactDOM from 'react-dom/client'
import App from './App'
import './index.css'

ReactDOM.createRoot(document.getElementById('root')!).render(
  <React.StrictMode>
    <App />
  </React.StrictMode>,
)
"""

APP_TSX = """\
{% if use_tokens %}import { designTokens } from './styles/tokens'

{% endif %}export default function App(): JSX.Element {
  return (
    <div className="min-h-screen bg-gray-50">
      <header className="bg-white shadow">
        <h1 className="text-3xl font-bold text-gray-900">{{ title }}</h1>
      </header>
      <main className="max-w-7xl mx-auto py-6 px-4">
        <p className="text-gray-600"{% if use_tokens %} style={designTokens.text}{% endif %}>
          Welcome to your generated application!
        </p>
      </main>
    </div>
  )
}
"""

TOKENS_TS = """\
export const designTokens = {
  text: { color: 'hsl(220 9% 46%)' },
  surface: { backgroundColor: 'hsl(0 0% 100%)' },
}
"""

VITE_CONFIG = """\
import { defineConfig } from 'vite'
import react from '@vitejs/plugin-react'

export default defineConfig({
  plugins: [react()],
})
"""

TAILWIND_CONFIG = """\
import type { Config } from 'tailwindcss'

export default {
  content: ['./index.html', './src/**/*.{js,ts,jsx,tsx}'],
  theme: {
    extend: {},
  },
  plugins: [],
} satisfies Config
"""

BLOG_PAGE = """\
import { useMemo } from 'react'
import { PostCard, type Post } from '../components/PostCard'

export default function BlogPage({ posts }: { posts: Post[] }): JSX.Element {
  const cards = useMemo(
    () => posts.map((post) => <PostCard key={post.id} post={post} />),
    [posts],
  )

  return (
    <main className="container mx-auto px-4 py-8">
      <h1 className="text-4xl font-bold mb-8">Blog</h1>
      <section className="grid gap-6 md:grid-cols-2">{cards}</section>
    </main>
  )
}
"""

POST_CARD = """\
export interface Post {
  id: string
  title: string
  excerpt: string
  date: string
}

export function PostCard({ post }: { post: Post }): JSX.Element {
  return (
    <article className="bg-white rounded-lg shadow-md p-6">
      <h2 className="text-2xl font-bold mb-2">{post.title}</h2>
      <p className="text-gray-600 mb-4">{post.excerpt}</p>
      <time className="text-sm text-gray-500">{post.date}</time>
    </article>
  )
}
"""

LOGIN_PAGE = """\
import { useState, type FormEvent } from 'react'

export default function LoginPage({ onLogin }: { onLogin: (email: string, password: string) => void }): JSX.Element {
  const [email, setEmail] = useState('')
  const [password, setPassword] = useState('')

  const submit = (event: FormEvent): void => {
    event.preventDefault()
    onLogin(email, password)
  }

  return (
    <main className="container mx-auto px-4 py-8">
      <h1 className="text-3xl font-bold mb-6">Sign in</h1>
      <form onSubmit={submit} className="space-y-4">
        <label htmlFor="email">Email</label>
        <input id="email" type="email" value={email} onChange={(e) => setEmail(e.target.value)} />
        <label htmlFor="password">Password</label>
        <input id="password" type="password" value={password} onChange={(e) => setPassword(e.target.value)} />
        <button type="submit">Sign in</button>
      </form>
    </main>
  )
}
"""

FEATURE_PAGE = """\
export default function {{ component }}(): JSX.Element {
  return (
    <main className="container mx-auto px-4 py-8">
      <h1 className="text-3xl font-bold mb-6">{{ heading }}</h1>
      <section>
        <p className="text-gray-600">{{ description }}</p>
      </section>
    </main>
  )
}
"""

APP_TEST = """\
import { describe, it, expect } from 'vitest'
import { render, screen } from '@testing-library/react'
import App from './App'

describe('App', () => {
  it('renders the application title', () => {
    render(<App />)
    expect(screen.getByText(/{{ title }}/i)).toBeInTheDocument()
  })
})
"""

README = """\
# {{ title }}

{{ description }}

## Getting Started

```bash
npm install
npm run dev
```

## Testing

```bash
npm test
```
{% if tech_stack %}
## Tech Stack

{% for item in tech_stack %}- {{ item }}
{% endfor %}{% endif %}
"""

NOTES = """\
# {{ heading }}

{{ description }}
{% if feedback %}
## Reviewer feedback

{% for line in feedback %}- {{ line }}
{% endfor %}{% endif %}
"""


def _render(template: str, **context) -> str:
    return _env.from_string(template).render(**context)


def _slug(text: str, limit: int = 40) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug[:limit].rstrip("-") or "task"


def _component_name(text: str) -> str:
    words = re.findall(r"[A-Za-z0-9]+", text)[:4]
    name = "".join(w.capitalize() for w in words) or "Feature"
    if name[0].isdigit():
        name = "Feature" + name
    return name + "Page"


def _language(path: str) -> str:
    if path.endswith((".ts", ".tsx")):
        return "typescript"
    if path.endswith(".json"):
        return "json"
    if path.endswith(".html"):
        return "html"
    if path.endswith(".md"):
        return "markdown"
    return "text"


def _file(path: str, content: str) -> GeneratedFile:
    return GeneratedFile(path=path, content=content, language=_language(path))


class TemplateBackend(GenerationBackend):
    """Renders a fixed set of files per task type.

    Recognised ``style_context`` keys:

    ``title``
        Application name used in headings and the README.
    ``use_design_tokens``
        Import design tokens in ``App.tsx`` (default ``True``).
    ``tech_stack``
        Listed in the generated README.
    ``feedback``
        Reviewer messages from a previous pass; echoed into note files.
    """

    name = "template"

    async def invoke(self, request: GenerationRequest) -> GenerationResponse:
        ctx = request.style_context
        try:
            files = self._generate(request.task_type, request.description, ctx)
        except Exception as exc:
            logger.error("template_render_error", task_type=request.task_type.value, error=str(exc))
            return GenerationResponse(
                errors=[ExecutionError(kind="runtime", message=f"Template rendering failed: {exc}")],
            )

        warnings: list[str] = []
        if not files:
            warnings.append(f"No files produced for: {request.description}")
        logger.debug(
            "template_rendered",
            task_type=request.task_type.value,
            files=[f.path for f in files],
        )
        return GenerationResponse(
            files=files,
            warnings=warnings,
            metadata={"backend": self.name, "feedback_items": len(ctx.get("feedback") or [])},
        )

    # ----- Per task type ----------------------------------------------------

    def _generate(self, task_type: TaskType, description: str, ctx: dict) -> list[GeneratedFile]:
        title = ctx.get("title") or "Generated App"
        if task_type == TaskType.SCAFFOLD:
            return self._scaffold(title, bool(ctx.get("use_design_tokens", True)))
        if task_type == TaskType.IMPLEMENT:
            return self._implement(description)
        if task_type == TaskType.TEST_GEN:
            return [_file("src/App.test.tsx", _render(APP_TEST, title=title))]
        if task_type == TaskType.DOCS:
            return [
                _file(
                    "README.md",
                    _render(
                        README,
                        title=title,
                        description=ctx.get("summary") or description,
                        tech_stack=ctx.get("tech_stack") or [],
                    ),
                ),
            ]
        # refactor, plan, validate, reasoning, quick-fix: a notes document
        return [
            _file(
                f"notes/{task_type.value}-{_slug(description)}.md",
                _render(
                    NOTES,
                    heading=description,
                    description=f"{task_type.value} notes for: {description}",
                    feedback=ctx.get("feedback") or [],
                ),
            ),
        ]

    @staticmethod
    def _scaffold(title: str, use_tokens: bool) -> list[GeneratedFile]:
        package = {
            "name": _slug(title),
            "version": "0.1.0",
            "type": "module",
            "scripts": {
                "dev": "vite",
                "build": "tsc && vite build",
                "test": "vitest",
            },
            "dependencies": {"react": "^18.3.1", "react-dom": "^18.3.1"},
            "devDependencies": {
                "@vitejs/plugin-react": "^4.7.0",
                "typescript": "^5.6.3",
                "vite": "^6.3.6",
                "vitest": "^3.2.4",
                "tailwindcss": "^3.4.17",
            },
        }
        tsconfig = {
            "compilerOptions": {
                "target": "ES2020",
                "module": "ESNext",
                "moduleResolution": "bundler",
                "jsx": "react-jsx",
                "strict": True,
                "noEmit": True,
            },
            "include": ["src"],
        }
        files = [
            _file("package.json", json.dumps(package, indent=2) + "\n"),
            _file("tsconfig.json", json.dumps(tsconfig, indent=2) + "\n"),
            _file("vite.config.ts", VITE_CONFIG),
            _file("tailwind.config.ts", TAILWIND_CONFIG),
            _file("index.html", _render(INDEX_HTML, title=title)),
            _file("src/main.tsx", MAIN_TSX),
            _file("src/App.tsx", _render(APP_TSX, title=title, use_tokens=use_tokens)),
        ]
        if use_tokens:
            files.append(_file("src/styles/tokens.ts", TOKENS_TS))
        return files

    @staticmethod
    def _implement(description: str) -> list[GeneratedFile]:
        lowered = description.lower()
        files: list[GeneratedFile] = []
        if "blog" in lowered:
            files.append(_file("client/src/pages/blog.tsx", BLOG_PAGE))
            files.append(_file("client/src/components/PostCard.tsx", POST_CARD))
        if "auth" in lowered or "login" in lowered:
            files.append(_file("client/src/pages/login.tsx", LOGIN_PAGE))
        if not files:
            component = _component_name(description)
            files.append(
                _file(
                    f"client/src/pages/{_slug(description)}.tsx",
                    _render(
                        FEATURE_PAGE,
                        component=component,
                        heading=description,
                        description=description,
                    ),
                ),
            )
        return files

"""Prompt templates for language-aware code review requests."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LanguageTemplate:
    role: str
    language_name: str
    file_extensions: tuple[str, ...]
    naming_convention: str
    async_pattern: str
    best_practices: str


LANGUAGE_TEMPLATES: dict[str, LanguageTemplate] = {
    "NET": LanguageTemplate(
        role="senior .NET developer",
        language_name=".NET",
        file_extensions=(".cs", ".vb"),
        naming_convention="PascalCase for public members, camelCase for local variables",
        async_pattern="async/await",
        best_practices="SOLID principles, dependency injection, proper exception handling",
    ),
    "PYTHON": LanguageTemplate(
        role="senior Python developer",
        language_name="Python",
        file_extensions=(".py",),
        naming_convention="snake_case for variables and functions",
        async_pattern="async/await with asyncio",
        best_practices="PEP 8 standards, type hints, proper exception handling",
    ),
}

DEFAULT_LANGUAGE = "NET"

_RESPONSE_FORMAT = """Respond using EXACTLY this structure:

📊 SUMMARY: One or two sentences describing the overall quality.

🚨 CRITICAL ISSUES
- Issue: [what is wrong]
  File: [file name]:[line]
  Fix: [specific fix]

⚠️ WARNINGS
- Issue: [what is wrong]
  File: [file name]:[line]
  Fix: [specific fix]

💡 IMPROVEMENTS
- Issue: [what could be better]
  File: [file name]:[line]
  Better: [suggested change]

Write "None" under a heading with nothing to report.
Categories to consider: Security, Performance, Error Handling, Architecture, Style.
Naming convention: {naming_convention}. Async pattern: {async_pattern}. Best practices: {best_practices}."""

DIFF_PROMPT_TEMPLATE = (
    """Review this {language_name} code diff.

CODING STANDARDS:
{standards_text}

REQUIREMENTS:
{requirements}

DIFF:
{content}

"""
    + _RESPONSE_FORMAT
)

SINGLE_FILE_PROMPT_TEMPLATE = (
    """Review this complete {language_name} source file.

CODING STANDARDS:
{standards_text}

REQUIREMENTS:
{requirements}

FILE CONTENT:
{content}

Include the line number for every issue you report.

"""
    + _RESPONSE_FORMAT
)


def resolve_language(language: str | None) -> LanguageTemplate:
    """Look up a template by language key, falling back to .NET for unknown keys."""

    key = (language or DEFAULT_LANGUAGE).strip().upper().lstrip(".")
    return LANGUAGE_TEMPLATES.get(key, LANGUAGE_TEMPLATES[DEFAULT_LANGUAGE])


def system_prompt(template: LanguageTemplate) -> str:
    return f"You are a {template.role} reviewing code changes. Provide concise, actionable feedback."


def build_prompt(
    content: str,
    standards: list[str],
    requirements: str | None,
    language: str | None,
    is_file_content: bool = False,
) -> str:
    template = resolve_language(language)
    standards_text = "\n".join(standards) if standards else f"Follow general {template.language_name} best practices"
    prompt_template = SINGLE_FILE_PROMPT_TEMPLATE if is_file_content else DIFF_PROMPT_TEMPLATE
    return prompt_template.format(
        language_name=template.language_name,
        standards_text=standards_text,
        requirements=requirements or "No requirements provided",
        content=content,
        naming_convention=template.naming_convention,
        async_pattern=template.async_pattern,
        best_practices=template.best_practices,
    )

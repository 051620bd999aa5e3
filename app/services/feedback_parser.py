"""Parsing of free-form AI review text into structured feedback items."""

from __future__ import annotations

import logging
import re

from app.models.domain import Category, FeedbackItem, Severity

_logger = logging.getLogger(__name__)

# Structured response layout requested by the prompt templates.
_SUMMARY_MARKER = "SUMMARY:"
_CRITICAL_MARKER = "CRITICAL ISSUES"
_WARNINGS_MARKER = "WARNINGS"
_IMPROVEMENTS_MARKER = "IMPROVEMENTS"
_SECTION_MARKER_PATTERN = r"^[^\w\n]*{marker}\b[^\n]*$"

_ITEM_LEAD_PATTERN = re.compile(r"^(?:[-•*]|\d+[.)]|🚨|⚠️?|💡)\s*")
_FILE_FIELD_PATTERN = re.compile(r"^File:\s*([^\n:]+)(?::(\d+))?", re.IGNORECASE)
_MESSAGE_FIELD_PATTERN = re.compile(r"^Issue:\s*(.*)$", re.IGNORECASE)
_SUGGESTION_FIELD_PATTERN = re.compile(r"^(?:Fix|Suggestion|Better):\s*(.*)$", re.IGNORECASE)
_IGNORED_FIELD_PATTERN = re.compile(r"^(?:Impact|Benefit|Code):", re.IGNORECASE)
_EMPTY_SECTION_TEXT = ("", "none", "none found", "n/a")

# Delimiter styles, tried in order; the first yielding more than one match wins.
_SPLIT_PATTERNS = (
    re.compile(r"^[ \t]*\d+\.\s+(.+?)(?=^[ \t]*\d+\.\s+|\n[ \t]*\n|\Z)", re.MULTILINE | re.DOTALL),
    re.compile(r"^[ \t]*[-•]\s+(.+?)(?=^[ \t]*[-•]\s+|\n[ \t]*\n|\Z)", re.MULTILINE | re.DOTALL),
    re.compile(r"^[ \t]*\*\s+(.+?)(?=^[ \t]*\*\s+|\n[ \t]*\n|\Z)", re.MULTILINE | re.DOTALL),
    re.compile(r"(?:\A|\n[ \t]*\n)\s*(.+?)(?=\n[ \t]*\n|\Z)", re.DOTALL),
)

_SEVERITY_KEYWORDS = (
    (Severity.CRITICAL, re.compile(r"critical|error|must fix|security|vulnerability|injection")),
    (Severity.WARNING, re.compile(r"warning|should|performance|potential|consider|recommend")),
    (Severity.STYLE, re.compile(r"style|formatting|naming|convention")),
)

_CATEGORY_KEYWORDS = (
    (Category.SECURITY, ("security", "vulnerability", "injection")),
    (Category.PERFORMANCE, ("performance", "slow", "optimization")),
    (Category.STYLE, ("naming", "style", "formatting", "convention")),
    (Category.ERROR_HANDLING, ("error handling", "exception", "validation")),
)

_SUGGESTION_PATTERNS = (
    re.compile(r"\b(suggestion|consider|try|you could|it would be better)\b:?\s*(.+)", re.IGNORECASE | re.DOTALL),
    re.compile(r"\b(to fix this|to resolve this|solution)\b:?\s*(.+)", re.IGNORECASE | re.DOTALL),
)

_SOURCE_EXTENSIONS = r"cs|vb|py|js|jsx|ts|tsx|java|go|rb|php|cpp|c|h|html|css|json|xml|yml|yaml|config"
_FILE_PATH_PATTERNS = (
    re.compile(r"([A-Za-z]:\\[^:\n\s]+)"),
    re.compile(rf"((?:[A-Za-z0-9_.\-]+[/\\])+[A-Za-z0-9_\-]+\.(?:{_SOURCE_EXTENSIONS}))\b", re.IGNORECASE),
    re.compile(r"(\./[^:\n\s]+)"),
    re.compile(rf"\b([A-Za-z0-9_\-]+\.(?:{_SOURCE_EXTENSIONS}))\b", re.IGNORECASE),
)

_LINE_NUMBER_PATTERNS = (
    re.compile(r"\bline (\d+)", re.IGNORECASE),
    re.compile(r"\bline:\s*(\d+)", re.IGNORECASE),
    re.compile(r"\bL(\d+)\b"),
    re.compile(r":(\d+):"),
    re.compile(r"\blines? (\d+)\s*-\s*\d+", re.IGNORECASE),
)

_KEYWORD_PREFIX_PATTERNS = (
    (Severity.CRITICAL, re.compile(r"(?:critical|error|must fix|security issue):\s*(.+?)(?:\n|$)", re.IGNORECASE)),
    (Severity.WARNING, re.compile(r"(?:warning|should|performance issue|potential problem):\s*(.+?)(?:\n|$)", re.IGNORECASE)),
    (Severity.SUGGESTION, re.compile(r"(?:suggestion|consider|recommend|improvement):\s*(.+?)(?:\n|$)", re.IGNORECASE)),
    (Severity.STYLE, re.compile(r"(?:style|formatting|naming|convention):\s*(.+?)(?:\n|$)", re.IGNORECASE)),
)


def parse_ai_response(raw_response: str | None) -> list[FeedbackItem]:
    """Turn raw AI review text into feedback items.

    Never raises: unexpected parsing failures degrade to a single general item
    wrapping the whole response. Empty input yields an empty list.
    """

    if not raw_response:
        return []

    try:
        structured = _parse_structured_sections(raw_response)
        if structured:
            return structured

        feedback = [item for item in map(_parse_issue, _split_into_issues(raw_response)) if item is not None]
        if not feedback:
            feedback = _extract_by_keyword_prefix(raw_response)
        if not feedback and raw_response.strip():
            feedback = [_general_item(raw_response)]

        _logger.debug("Parsed %d feedback items from AI response", len(feedback))
        return feedback
    except Exception:
        _logger.exception("Error parsing AI response into structured feedback")
        return [_general_item(raw_response)] if raw_response.strip() else []


def determine_severity(text: str) -> Severity:
    lowered = text.lower()
    for severity, pattern in _SEVERITY_KEYWORDS:
        if pattern.search(lowered):
            return severity
    return Severity.SUGGESTION


def determine_category(text: str) -> Category:
    lowered = text.lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return Category.GENERAL


def extract_file_path(text: str) -> str | None:
    for pattern in _FILE_PATH_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).rstrip(".,;)")
    return None


def extract_line_number(text: str) -> int | None:
    for pattern in _LINE_NUMBER_PATTERNS:
        for match in pattern.finditer(text):
            value = int(match.group(1))
            if value >= 1:
                return value
    return None


def split_message_and_suggestion(text: str) -> tuple[str, str | None]:
    for pattern in _SUGGESTION_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        suggestion = _clean_suggestion(match.group(2))
        if not suggestion:
            continue
        message = text[: match.start()].strip()
        return message or text.strip(), suggestion
    return text.strip(), None


def _clean_suggestion(text: str) -> str:
    return text.strip().rstrip(".!;").strip()


def _split_into_issues(response: str) -> list[str]:
    issues: list[str] = []
    for pattern in _SPLIT_PATTERNS:
        matches = [match.group(1).strip() for match in pattern.finditer(response)]
        if len(matches) > 1:
            issues = matches
            break
    if not issues:
        issues = [response]
    return [issue for issue in issues if issue.strip()]


def _parse_issue(issue: str) -> FeedbackItem | None:
    if not issue.strip():
        return None
    message, suggestion = split_message_and_suggestion(issue)
    return FeedbackItem(
        severity=determine_severity(issue),
        category=determine_category(issue),
        message=message,
        suggestion=suggestion,
        file_path=extract_file_path(issue),
        line_number=extract_line_number(issue),
    )


def _extract_by_keyword_prefix(response: str) -> list[FeedbackItem]:
    feedback: list[FeedbackItem] = []
    for severity, pattern in _KEYWORD_PREFIX_PATTERNS:
        for match in pattern.finditer(response):
            issue = match.group(1).strip()
            if not issue:
                continue
            message, suggestion = split_message_and_suggestion(issue)
            feedback.append(
                FeedbackItem(
                    severity=severity,
                    category=determine_category(issue),
                    message=message,
                    suggestion=suggestion,
                    file_path=extract_file_path(issue),
                    line_number=extract_line_number(issue),
                )
            )
    return feedback


def _general_item(response: str) -> FeedbackItem:
    return FeedbackItem(
        severity=Severity.SUGGESTION,
        category=Category.GENERAL,
        message=response.strip(),
    )


def _parse_structured_sections(response: str) -> list[FeedbackItem]:
    if _SUMMARY_MARKER not in response and _CRITICAL_MARKER not in response:
        return []

    sections = (
        (_CRITICAL_MARKER, _WARNINGS_MARKER, Severity.CRITICAL),
        (_WARNINGS_MARKER, _IMPROVEMENTS_MARKER, Severity.WARNING),
        (_IMPROVEMENTS_MARKER, None, Severity.SUGGESTION),
    )
    feedback: list[FeedbackItem] = []
    for start_marker, end_marker, severity in sections:
        section = _extract_section(response, start_marker, end_marker)
        feedback.extend(_parse_section(section, severity))
    return feedback


def _find_marker_line(response: str, marker: str, start: int = 0) -> re.Match | None:
    pattern = re.compile(_SECTION_MARKER_PATTERN.format(marker=re.escape(marker)), re.MULTILINE)
    return pattern.search(response, start)


def _extract_section(response: str, start_marker: str, end_marker: str | None) -> str:
    start = _find_marker_line(response, start_marker)
    if start is None:
        return ""
    end = _find_marker_line(response, end_marker, start.end()) if end_marker else None
    return response[start.end() : end.start() if end else len(response)]


def _parse_section(section: str, severity: Severity) -> list[FeedbackItem]:
    items: list[FeedbackItem] = []
    current: dict | None = None

    def flush() -> None:
        if current and current.get("message"):
            text = " ".join(filter(None, (current["message"], current.get("suggestion"))))
            items.append(
                FeedbackItem(
                    severity=severity,
                    category=determine_category(text),
                    message=current["message"],
                    suggestion=current.get("suggestion"),
                    file_path=current.get("file_path"),
                    line_number=current.get("line_number"),
                )
            )

    for raw_line in section.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        lead = _ITEM_LEAD_PATTERN.match(line)
        body = line[lead.end() :].strip().lstrip("\ufe0f").strip() if lead else line
        if body.lower() in _EMPTY_SECTION_TEXT:
            continue
        if lead:
            flush()
            current = {}
        if current is None:
            continue

        file_match = _FILE_FIELD_PATTERN.match(body)
        if file_match:
            current["file_path"] = file_match.group(1).strip()
            if file_match.group(2):
                current["line_number"] = int(file_match.group(2)) or None
            elif current.get("line_number") is None:
                current["line_number"] = extract_line_number(body)
            continue
        message_match = _MESSAGE_FIELD_PATTERN.match(body)
        if message_match:
            current["message"] = message_match.group(1).strip() or current.get("message")
            continue
        suggestion_match = _SUGGESTION_FIELD_PATTERN.match(body)
        if suggestion_match:
            current["suggestion"] = suggestion_match.group(1).strip() or None
            continue
        if _IGNORED_FIELD_PATTERN.match(body):
            continue
        if lead:
            current["message"] = body

    flush()
    return items

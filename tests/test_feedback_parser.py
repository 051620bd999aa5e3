from app.models.domain import Category, Severity
from app.services import feedback_parser
from app.services.feedback_parser import (
    determine_category,
    determine_severity,
    extract_file_path,
    extract_line_number,
    parse_ai_response,
    split_message_and_suggestion,
)


def test_empty_response_yields_no_items():
    assert parse_ai_response("") == []
    assert parse_ai_response(None) == []


def test_numbered_list_is_split_into_items():
    raw = "1. Critical: SQL injection in file.cs line 10. Suggestion: fix it.\n2. Warning: slow loop."

    items = parse_ai_response(raw)

    assert len(items) == 2
    first, second = items
    assert first.severity is Severity.CRITICAL
    assert first.category is Category.SECURITY
    assert first.file_path == "file.cs"
    assert first.line_number == 10
    assert first.suggestion == "fix it"
    assert second.severity is Severity.WARNING


def test_bulleted_list_uses_keywords_per_item():
    raw = "- Naming of variable tmp is unclear\n- Add a docstring to the helper"

    items = parse_ai_response(raw)

    assert [item.severity for item in items] == [Severity.STYLE, Severity.SUGGESTION]
    assert items[0].category is Category.STYLE
    assert items[1].suggestion is None


def test_plain_text_becomes_single_general_item():
    items = parse_ai_response("  This is a general feedback.  ")

    assert len(items) == 1
    item = items[0]
    assert item.severity is Severity.SUGGESTION
    assert item.category is Category.GENERAL
    assert item.message == "This is a general feedback."


def test_structured_sections_are_parsed_with_section_severity():
    raw = """📊 SUMMARY: Mostly fine, one serious problem.

🚨 CRITICAL ISSUES
- Issue: Password is logged in plain text
  File: Services/AuthService.cs:42
  Fix: Remove the password from the log message

⚠️ WARNINGS
- Issue: Exception is swallowed without logging
  File: Controllers/HomeController.cs
  Fix: Log the exception before returning

💡 IMPROVEMENTS
None
"""

    items = parse_ai_response(raw)

    assert len(items) == 2
    critical, warning = items
    assert critical.severity is Severity.CRITICAL
    assert critical.message == "Password is logged in plain text"
    assert critical.file_path == "Services/AuthService.cs"
    assert critical.line_number == 42
    assert critical.suggestion == "Remove the password from the log message"
    assert warning.severity is Severity.WARNING
    assert warning.category is Category.ERROR_HANDLING
    assert warning.file_path == "Controllers/HomeController.cs"
    assert warning.line_number is None


def test_structured_improvements_accept_better_field():
    raw = """📊 SUMMARY: Small cleanups only.
🚨 CRITICAL ISSUES
None
⚠️ WARNINGS
None
💡 IMPROVEMENTS
- Issue: Loop can use a comprehension
  File: app/util.py:7
  Better: Build the list with a comprehension
"""

    items = parse_ai_response(raw)

    assert len(items) == 1
    assert items[0].severity is Severity.SUGGESTION
    assert items[0].suggestion == "Build the list with a comprehension"
    assert items[0].line_number == 7


def test_unlisted_text_is_classified_as_one_issue():
    raw = "Overview first.\nCritical: Hardcoded secret in config.py"

    items = parse_ai_response(raw)

    assert len(items) == 1
    assert items[0].severity is Severity.CRITICAL
    assert items[0].file_path == "config.py"


def test_keyword_prefixed_lines_are_extracted_in_severity_order():
    raw = "Style: rename foo\nCritical: Hardcoded secret in config.py"

    items = feedback_parser._extract_by_keyword_prefix(raw)

    assert [item.severity for item in items] == [Severity.CRITICAL, Severity.STYLE]
    assert items[0].message == "Hardcoded secret in config.py"
    assert items[1].message == "rename foo"


def test_determine_severity_priority_order():
    assert determine_severity("This should be fixed, it is a security hole") is Severity.CRITICAL
    assert determine_severity("Consider caching") is Severity.WARNING
    assert determine_severity("Formatting is inconsistent") is Severity.STYLE
    assert determine_severity("Nice work") is Severity.SUGGESTION


def test_determine_category_priority_order():
    assert determine_category("Performance of the injection check") is Category.SECURITY
    assert determine_category("Slow query") is Category.PERFORMANCE
    assert determine_category("Missing validation of input") is Category.ERROR_HANDLING
    assert determine_category("Looks good") is Category.GENERAL


def test_extract_file_path_variants():
    assert extract_file_path(r"See C:\src\app\Program.cs for details") == r"C:\src\app\Program.cs"
    assert extract_file_path("In src/services/orders.py the loop") == "src/services/orders.py"
    assert extract_file_path("Check ./build.sh output") == "./build.sh"
    assert extract_file_path("Problem in Startup.cs, line 3") == "Startup.cs"
    assert extract_file_path("No path mentioned") is None


def test_extract_line_number_variants():
    assert extract_line_number("Error at line 12") == 12
    assert extract_line_number("Line: 7 has a typo") == 7
    assert extract_line_number("See L44") == 44
    assert extract_line_number("orders.py:19: unused import") == 19
    assert extract_line_number("line 0 is invalid") is None
    assert extract_line_number("nothing here") is None


def test_split_message_and_suggestion():
    message, suggestion = split_message_and_suggestion("Query is built by concatenation. To fix this: use parameters.")
    assert message == "Query is built by concatenation."
    assert suggestion == "use parameters"

    message, suggestion = split_message_and_suggestion("Plain statement")
    assert message == "Plain statement"
    assert suggestion is None

from __future__ import annotations

from pathlib import Path

import pytest

from app.models.domain import AnalysisEnvironment, AnalysisRequest, AnalysisType
from app.services.validation import AnalysisValidationError, RequestValidator


class FakeDiffSource:
    def __init__(self, valid=True, staged=True, explode=False):
        self.valid = valid
        self.staged = staged
        self.explode = explode

    def validate_repository(self, repository_path):
        if self.explode:
            raise RuntimeError("permission denied")
        if self.valid:
            return True, None
        return False, "No valid git repository found at the specified path. Please select a valid git repository."

    def has_staged_changes(self, repository_path):
        return self.staged


@pytest.fixture
def environment(tmp_path: Path) -> AnalysisEnvironment:
    return AnalysisEnvironment(api_key="sk-test", default_model="qwen/qwen3-coder", repository_path=str(tmp_path))


def _request(**overrides) -> AnalysisRequest:
    values = {"selected_documents": ["security"]}
    values.update(overrides)
    return AnalysisRequest(**values)


def _error(validator: RequestValidator, request: AnalysisRequest, environment: AnalysisEnvironment) -> str:
    with pytest.raises(AnalysisValidationError) as exc_info:
        validator.validate(request, environment)
    return str(exc_info.value)


def test_missing_api_key_is_rejected(environment):
    blank = AnalysisEnvironment(api_key="  ", default_model="m")

    assert _error(RequestValidator(FakeDiffSource()), _request(), blank) == "API key not configured"


def test_documents_are_required(environment):
    message = _error(RequestValidator(FakeDiffSource()), _request(selected_documents=[]), environment)

    assert message == "No coding standards selected"


def test_git_scope_uses_environment_repository(environment):
    validated = RequestValidator(FakeDiffSource()).validate(_request(), environment)

    assert validated.repository_path == environment.repository_path
    assert validated.resolved_file_path is None


def test_invalid_repository_message_is_passed_through(environment):
    message = _error(RequestValidator(FakeDiffSource(valid=False)), _request(repository_path="/nowhere"), environment)

    assert message.startswith("No valid git repository found")


def test_commit_scope_requires_commit_id(environment):
    message = _error(RequestValidator(FakeDiffSource()), _request(analysis_type=AnalysisType.COMMIT), environment)

    assert message == "Commit ID is required for commit analysis"


def test_staged_scope_requires_staged_changes(environment):
    validator = RequestValidator(FakeDiffSource(staged=False))

    message = _error(validator, _request(analysis_type=AnalysisType.STAGED), environment)

    assert message == "No staged changes found. Use 'git add' to stage files for analysis."


def test_single_file_requires_path(environment):
    message = _error(RequestValidator(FakeDiffSource()), _request(analysis_type=AnalysisType.SINGLE_FILE), environment)

    assert message == "File path is required for single file analysis"


def test_inline_content_skips_filesystem_checks(environment):
    request = _request(analysis_type=AnalysisType.SINGLE_FILE, file_path="Nowhere.rb", file_content="puts 1")

    validated = RequestValidator(FakeDiffSource(valid=False)).validate(request, environment)

    assert validated.resolved_file_path == "Nowhere.rb"


def test_bare_file_name_is_found_in_subdirectory(environment, tmp_path: Path):
    (tmp_path / "Services").mkdir()
    target = tmp_path / "Services" / "OrderService.cs"
    target.write_text("class OrderService {}", encoding="utf-8")

    validated = RequestValidator(FakeDiffSource()).validate(
        _request(analysis_type=AnalysisType.SINGLE_FILE, file_path="OrderService.cs"), environment
    )

    assert Path(validated.resolved_file_path) == target


def test_relative_path_is_resolved_against_repository(environment, tmp_path: Path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "main.py").write_text("print(1)", encoding="utf-8")

    validated = RequestValidator(FakeDiffSource()).validate(
        _request(analysis_type=AnalysisType.SINGLE_FILE, file_path="src/main.py"), environment
    )

    assert validated.resolved_file_path == str(tmp_path / "src" / "main.py")


def test_missing_files_report_how_they_were_looked_up(environment):
    validator = RequestValidator(FakeDiffSource())

    bare = _error(validator, _request(analysis_type=AnalysisType.SINGLE_FILE, file_path="Ghost.cs"), environment)
    nested = _error(validator, _request(analysis_type=AnalysisType.SINGLE_FILE, file_path="src/Ghost.cs"), environment)

    assert bare.startswith("File 'Ghost.cs' not found.")
    assert nested.startswith("File not found: src/Ghost.cs.")


def test_unsupported_extension_is_rejected(environment, tmp_path: Path):
    (tmp_path / "script.rb").write_text("puts 1", encoding="utf-8")

    message = _error(
        RequestValidator(FakeDiffSource()),
        _request(analysis_type=AnalysisType.SINGLE_FILE, file_path=str(tmp_path / "script.rb")),
        environment,
    )

    assert message == "Unsupported file type '.rb'. Allowed extensions: .cs, .js, .py"


def test_unexpected_errors_are_wrapped(environment):
    message = _error(RequestValidator(FakeDiffSource(explode=True)), _request(), environment)

    assert message == "Validation error: permission denied"

from app.services.prompts import LANGUAGE_TEMPLATES, build_prompt, resolve_language, system_prompt


def test_language_lookup_is_case_insensitive_and_defaults_to_dotnet():
    assert resolve_language("python") is LANGUAGE_TEMPLATES["PYTHON"]
    assert resolve_language(".net") is LANGUAGE_TEMPLATES["NET"]
    assert resolve_language(None) is LANGUAGE_TEMPLATES["NET"]
    assert resolve_language("cobol") is LANGUAGE_TEMPLATES["NET"]


def test_diff_prompt_embeds_standards_requirements_and_diff():
    prompt = build_prompt(
        "+ var x = 1;",
        ["Standard A", "Standard B"],
        "Keep methods short",
        "NET",
    )

    assert prompt.startswith("Review this .NET code diff.")
    assert "Standard A\nStandard B" in prompt
    assert "Keep methods short" in prompt
    assert "+ var x = 1;" in prompt
    assert "🚨 CRITICAL ISSUES" in prompt
    assert "PascalCase" in prompt


def test_file_prompt_asks_for_line_numbers_and_tolerates_braces():
    prompt = build_prompt("def f():\n    return {'a': 1}\n", [], None, "PYTHON", is_file_content=True)

    assert "complete Python source file" in prompt
    assert "Include the line number for every issue" in prompt
    assert "Follow general Python best practices" in prompt
    assert "No requirements provided" in prompt
    assert "{'a': 1}" in prompt


def test_system_prompt_names_the_reviewer_role():
    assert "senior Python developer" in system_prompt(LANGUAGE_TEMPLATES["PYTHON"])

import json
import sys

import scripts.generate_openapi as generator


def test_generate_openapi(tmp_path, monkeypatch):
    output = tmp_path / "schema.json"
    monkeypatch.setattr(sys, "argv", ["generate_openapi", "--output", str(output)])
    generator.main()
    assert output.exists()
    schema = json.loads(output.read_text(encoding="utf-8"))
    assert schema["info"]["title"] == "AI Code Reviewer"
    assert "/v1/analysis" in schema["paths"]
    assert "/v1/feedback/parse" in schema["paths"]
    assert schema["servers"] == [{"url": "http://localhost:8000"}]

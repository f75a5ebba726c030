"""Unit tests for prompt rendering."""

from pathlib import Path

import pytest

from sdk_codegen_cli.domain.models import Diagnostic, DiagnosticKind
from sdk_codegen_cli.infrastructure.sdk.prompt_builder import (
    MAX_BUILD_OUTPUT_CHARS,
    PromptBuilder,
    TRUNCATION_MARKER,
    service_hint,
    truncate_output,
)


def _errors(count: int):
    return [
        Diagnostic(DiagnosticKind.ERROR, f"src/File{i}.cs", i, 1, "CS0103", f"missing name {i}")
        for i in range(1, count + 1)
    ]


@pytest.fixture
def builder():
    return PromptBuilder()


class TestFixRequest:
    """Tests for the bounded fix request."""

    def test_lists_errors_verbatim(self, builder):
        prompt = builder.fix_request(_errors(2), "build log")

        assert "- src/File1.cs(1,1): error CS0103: missing name 1" in prompt
        assert "- src/File2.cs(2,1): error CS0103: missing name 2" in prompt
        assert "more errors" not in prompt
        assert "build log" in prompt

    def test_caps_errors_at_ten(self, builder):
        prompt = builder.fix_request(_errors(12), "")

        assert "missing name 10" in prompt
        assert "missing name 11" not in prompt
        assert "- ... and 2 more errors (fix the above first)" in prompt

    def test_truncates_build_output(self, builder):
        prompt = builder.fix_request(_errors(1), "x" * (MAX_BUILD_OUTPUT_CHARS + 500))

        assert "x" * MAX_BUILD_OUTPUT_CHARS + TRUNCATION_MARKER in prompt
        assert "x" * (MAX_BUILD_OUTPUT_CHARS + 1) not in prompt

    def test_generics_are_not_escaped(self, builder):
        errors = [Diagnostic(DiagnosticKind.ERROR, "a.cs", 1, 1, "CS0029", "cannot convert 'List<int>' to 'int'")]

        prompt = builder.fix_request(errors, "<Project>")

        assert "List<int>" in prompt
        assert "<Project>" in prompt

    def test_reminds_about_generated_folder(self, builder):
        assert "Do NOT edit any file in a 'Generated' folder" in builder.fix_request(_errors(1), "")


class TestSystemPrompts:
    """Tests for the system prompts."""

    def test_fix_system_prompt_names_project(self, builder):
        prompt = builder.fix_system_prompt(Path("/work/sdk/foo"))

        assert "/work/sdk/foo" in prompt
        assert "Generated" in prompt

    def test_spec_search_prompts(self, builder):
        system = builder.spec_search_system_prompt("Azure", "azure-rest-api-specs")
        request = builder.spec_search_request(
            "Azure", "azure-rest-api-specs", "specification/widget/data-plane/Widget"
        )

        assert "Azure/azure-rest-api-specs" in system
        assert "'specification/widget/data-plane/Widget'" in request
        assert "related to: widget, Widget" in request
        assert '{"path": "new/path/here", "commit": "sha_here"}' in request


def test_truncate_output_leaves_short_text():
    assert truncate_output("short") == "short"


def test_service_hint_drops_structural_segments():
    assert service_hint("specification/ai/resource-manager/Microsoft.Foo") == "ai, Microsoft.Foo"

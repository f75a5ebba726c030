"""Unit tests for the diagnostic parser."""

from sdk_codegen_cli.application.services.diagnostic_parser import parse_diagnostics
from sdk_codegen_cli.domain.models import Diagnostic, DiagnosticKind


MSBUILD_OUTPUT = """\
  Determining projects to restore...
  All projects are up-to-date for restore.
/repo/src/Custom/Client.cs(12,9): error CS0103: The name '_pipeline' does not exist in the current context [/repo/src/Azure.Foo.csproj]
/repo/src/Generated/Models/Widget.cs(40,22): warning CS0618: 'Widget.Old' is obsolete [/repo/src/Azure.Foo.csproj]
/repo/src/Custom/Widget.cs(7,5): error CS0246: The type or namespace name 'CodeGenModelAttribute' could not be found [/repo/src/Azure.Foo.csproj]

Build FAILED.
"""


class TestParseDiagnostics:
    """Tests for parse_diagnostics."""

    def test_single_error_line(self):
        """A single error line parses into one structured error."""
        errors, warnings = parse_diagnostics("a.cs(10,5): error CS1002: ; expected")

        assert errors == [
            Diagnostic(
                kind=DiagnosticKind.ERROR,
                file_path="a.cs",
                line=10,
                column=5,
                code="CS1002",
                message="; expected",
            )
        ]
        assert warnings == []

    def test_mixed_output_preserves_order(self):
        """Errors and warnings are split and keep their order of appearance."""
        errors, warnings = parse_diagnostics(MSBUILD_OUTPUT)

        assert [e.code for e in errors] == ["CS0103", "CS0246"]
        assert [w.code for w in warnings] == ["CS0618"]
        assert errors[0].file_path == "/repo/src/Custom/Client.cs"
        assert errors[0].line == 12
        assert errors[0].column == 9

    def test_empty_output(self):
        """A clean build yields no diagnostics and does not raise."""
        assert parse_diagnostics("") == ([], [])
        assert parse_diagnostics("Build succeeded.\n    0 Warning(s)\n    0 Error(s)\n") == ([], [])

    def test_keywords_are_case_sensitive(self):
        """Only lowercase 'error'/'warning' keywords are recognised."""
        errors, warnings = parse_diagnostics("a.cs(1,1): ERROR CS0001: shouting")
        assert errors == []
        assert warnings == []

    def test_file_and_message_are_trimmed(self):
        """Leading indentation and trailing whitespace are stripped."""
        errors, _ = parse_diagnostics("    src/a.cs(3,4): error CS0001: message   \n")

        assert errors[0].file_path == "src/a.cs"
        assert errors[0].message == "message"

    def test_parse_is_idempotent(self):
        """Parsing the same text twice yields identical sequences."""
        assert parse_diagnostics(MSBUILD_OUTPUT) == parse_diagnostics(MSBUILD_OUTPUT)

    def test_duplicates_are_kept(self):
        """MSBuild repeats diagnostics in its summary; both copies are kept."""
        line = "a.cs(1,2): error CS0001: boom\n"
        errors, _ = parse_diagnostics(line + line)
        assert len(errors) == 2

    def test_structured_fields_round_trip(self):
        """Rendering a parsed diagnostic and parsing it again gives the same fields."""
        errors, _ = parse_diagnostics(MSBUILD_OUTPUT)
        for error in errors:
            reparsed, _ = parse_diagnostics(str(error))
            assert reparsed == [error]

    def test_crlf_line_endings(self):
        """Windows line endings do not leak into messages."""
        errors, _ = parse_diagnostics("a.cs(1,2): error CS0001: boom\r\nb.cs(3,4): error CS0002: bang\r\n")

        assert [e.message for e in errors] == ["boom", "bang"]

"""Tests for the Pocket output envelope and secret masking."""

import io
import json

import pytest
from rich.console import Console


def _writer(verbose=False, terminal=False):
    from pocket_cli.registry.output import OutputWriter

    stdout = io.StringIO()
    stderr = io.StringIO()
    console = Console(file=stderr, force_terminal=terminal, width=200)
    return OutputWriter(verbose=verbose, stream=stdout, console=console), stdout, stderr


class TestRedactValue:
    """Test single value redaction."""

    @pytest.mark.parametrize("value,expected", [
        ("", "(not set)"),
        ("abc", "****"),
        ("12345678", "****"),
        ("123456789", "1234****6789"),
        ("ghp_abcdefghijklmnop", "ghp_****mnop"),
    ])
    def test_rule(self, value, expected):
        """Short values are fully hidden, long ones keep four chars each side."""
        from pocket_cli.registry.output import redact_value

        assert redact_value(value) == expected


class TestMaskSecrets:
    """Test secret masking in free text."""

    def test_mask_key_value(self):
        """token=... pairs are masked."""
        from pocket_cli.registry.output import mask_secrets

        result = mask_secrets("token=abc123 user=bob")
        assert "abc123" not in result
        assert "user=bob" in result

    def test_mask_known_formats(self):
        """Well-known token formats are masked anywhere."""
        from pocket_cli.registry.output import mask_secrets

        text = "using ghp_aaaaaaaaaaaaaaaaaaaaaaaa and xoxb-123-456"
        result = mask_secrets(text)
        assert "ghp_aaaaaaaaaaaaaaaaaaaaaaaa" not in result
        assert "xoxb-123-456" not in result

    def test_empty(self):
        """Empty text is returned unchanged."""
        from pocket_cli.registry.output import mask_secrets

        assert mask_secrets("") == ""


class TestOutputWriter:
    """Test envelope rendering."""

    def test_success_envelope(self):
        """Success wraps data and is compact by default."""
        writer, stdout, _ = _writer()
        writer.success({"path": "/tmp/x"})

        text = stdout.getvalue()
        assert text.count("\n") == 1
        assert json.loads(text) == {"success": True, "data": {"path": "/tmp/x"}}

    def test_verbose_indents(self):
        """Verbose mode pretty-prints."""
        writer, stdout, _ = _writer(verbose=True)
        writer.success([1, 2])

        text = stdout.getvalue()
        assert text.startswith("{\n  ")
        assert json.loads(text)["data"] == [1, 2]

    def test_error_envelope(self):
        """Errors carry success=false and the error body."""
        from pocket_cli.registry.exceptions import UnknownServiceError

        writer, stdout, stderr = _writer()
        writer.error(UnknownServiceError("nope").to_dict())

        document = json.loads(stdout.getvalue())
        assert document["success"] is False
        assert document["error"]["code"] == "unknown_service"
        assert "data" not in document
        assert stderr.getvalue() == ""

    def test_error_hint_on_terminal(self):
        """A human on a terminal also gets the remediation on stderr."""
        from pocket_cli.registry.exceptions import MissingCredentialError

        writer, stdout, stderr = _writer(terminal=True)
        writer.error(MissingCredentialError("github_token", ["github"]).to_dict())

        assert json.loads(stdout.getvalue())["error"]["code"] == "missing_credential"
        hint = stderr.getvalue()
        assert "config key not set: github_token" in hint
        assert "pocket setup show github" in hint

    def test_envelope_helpers(self):
        """Envelope builders produce exactly one of data or error."""
        from pocket_cli.registry.output import error_envelope, success_envelope

        assert success_envelope([]) == {"success": True, "data": []}
        assert error_envelope({"code": "x", "message": "y"}) == {
            "success": False,
            "error": {"code": "x", "message": "y"},
        }

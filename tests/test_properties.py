"""Test suite for rendering and writing resolved properties.

This test suite validates:
- Fixed key order in every output form
- Java properties escaping (line breaks, backslashes, non-ASCII)
- Rejection of line breaks in environment assignments
- Atomic, owner-only output files
"""
import os
import stat

import pytest

from liquibase_secrets.secrets.domains.errors import UnsafeValue
from liquibase_secrets.secrets.domains.models import ResolvedPropertySet, build_bindings
from liquibase_secrets.secrets.domains.properties import (
    render,
    render_env_lines,
    render_properties,
    write_output_file,
)


def _resolved(**overrides):
    values = {
        "liquibase-license-key": "L",
        "dev-liquibase-db-url": "jdbc:postgresql://db:5432/app?ssl=true",
        "dev-liquibase-db-username": "u",
        "dev-liquibase-db-password": "p=ss:word",
        "changelog-file": "c.xml",
    }
    values.update(overrides)
    return ResolvedPropertySet(
        vault_name="LiquibaseSCT",
        environment="dev",
        bindings=build_bindings("dev"),
        values=values,
    )


def _unescape_properties_value(line):
    """Decode a rendered value the way java.util.Properties.load reads it."""
    raw = line.encode("utf-8").decode("iso-8859-1").split("=", 1)[1]
    return raw.encode("latin-1").decode("unicode_escape").encode("utf-16", "surrogatepass").decode("utf-16")


class TestRenderProperties:
    """Test suite for the key=value properties form."""

    def test_fixed_key_order(self):
        """Test that keys appear in the fixed schema order, values unescaped when plain."""
        assert render_properties(_resolved()) == (
            "liquibaseProLicenseKey=L\n"
            "url=jdbc:postgresql://db:5432/app?ssl=true\n"
            "username=u\n"
            "password=p=ss:word\n"
            "changeLogFile=c.xml\n"
        )

    def test_escapes_line_breaks_and_backslashes(self):
        """Test that a multi-line value stays on one line."""
        content = render_properties(_resolved(**{"liquibase-license-key": "line1\nline2\\end"}))

        assert content.splitlines()[0] == "liquibaseProLicenseKey=line1\\nline2\\\\end"
        assert len(content.splitlines()) == 5

    def test_preserves_leading_space(self):
        """Test that a leading space is escaped so readers do not strip it."""
        content = render_properties(_resolved(**{"dev-liquibase-db-password": " padded"}))

        assert "password=\\ padded\n" in content

    def test_non_ascii_value_is_unicode_escaped(self):
        """Test that characters above 0x7E are written as \\uXXXX."""
        content = render_properties(_resolved(**{"dev-liquibase-db-password": "pässwörd"}))

        assert "password=p\\u00E4ssw\\u00F6rd\n" in content
        assert content.isascii()

    def test_non_ascii_value_survives_iso_8859_1_reader(self):
        """Test that reading the file as ISO-8859-1 and unescaping restores the value."""
        content = render_properties(_resolved(**{"dev-liquibase-db-password": "pässwörd€"}))

        password_line = content.splitlines()[3]
        assert _unescape_properties_value(password_line) == "pässwörd€"

    def test_astral_character_uses_surrogate_pair(self):
        """Test that characters outside the BMP become two UTF-16 escapes."""
        content = render_properties(_resolved(**{"dev-liquibase-db-password": "key\U0001F511"}))

        assert "password=key\\uD83D\\uDD11\n" in content

    def test_optional_absent_value_is_omitted(self):
        """Test that a None value drops the line instead of writing a placeholder."""
        content = render_properties(_resolved(**{"changelog-file": None}))

        assert "changeLogFile" not in content
        assert len(content.splitlines()) == 4


class TestRenderEnvLines:
    """Test suite for the NAME=value and export forms."""

    def test_plain_assignments(self):
        """Test that variable names follow the fixed order and values are verbatim."""
        lines = render_env_lines(_resolved()).splitlines()

        assert [line.split("=", 1)[0] for line in lines] == [
            "LIQUIBASE_LICENSE_KEY",
            "LIQUIBASE_COMMAND_URL",
            "LIQUIBASE_COMMAND_USERNAME",
            "LIQUIBASE_COMMAND_PASSWORD",
            "LIQUIBASE_COMMAND_CHANGELOG_FILE",
        ]
        assert lines[3] == "LIQUIBASE_COMMAND_PASSWORD=p=ss:word"

    @pytest.mark.parametrize("value", ["a\nb", "a\r\nb", "trailing\n"])
    def test_line_break_is_rejected_without_echoing_value(self, value):
        """Test that a line break fails with the variable name, not the value."""
        with pytest.raises(UnsafeValue) as exc_info:
            render_env_lines(_resolved(**{"dev-liquibase-db-password": value}))

        assert "LIQUIBASE_COMMAND_PASSWORD" in str(exc_info.value)
        assert value.strip() not in str(exc_info.value)

    def test_export_form_quotes_values(self):
        """Test that export lines shell-quote values for eval."""
        lines = render_env_lines(
            _resolved(**{"dev-liquibase-db-password": "it's $secret"}), export=True
        ).splitlines()

        assert lines[0] == "export LIQUIBASE_LICENSE_KEY=L"
        assert lines[3] == "export LIQUIBASE_COMMAND_PASSWORD='it'\"'\"'s $secret'"

    def test_render_dispatch(self):
        """Test that render selects the form by name and rejects unknown formats."""
        resolved = _resolved()

        assert render(resolved, "env") == render_env_lines(resolved)
        assert render(resolved, "export") == render_env_lines(resolved, export=True)
        assert render(resolved, "properties") == render_properties(resolved)
        with pytest.raises(ValueError):
            render(resolved, "yaml")


class TestWriteOutputFile:
    """Test suite for write_output_file."""

    def test_writes_owner_only_file(self, tmp_path):
        """Test that the file is created with mode 0600."""
        target = tmp_path / "liquibase-dev.properties"

        written = write_output_file("url=jdbc:x\n", target)

        assert written == target.resolve()
        assert target.read_text() == "url=jdbc:x\n"
        assert stat.S_IMODE(os.stat(target).st_mode) == 0o600

    def test_replaces_existing_file_and_leaves_no_temp_files(self, tmp_path):
        """Test that an existing file is replaced and the temporary file is gone."""
        target = tmp_path / "liquibase.properties"
        target.write_text("stale=1\n")

        write_output_file("fresh=1\n", target)

        assert target.read_text() == "fresh=1\n"
        assert [p.name for p in tmp_path.iterdir()] == ["liquibase.properties"]

    def test_creates_parent_directories(self, tmp_path):
        """Test that missing parent directories are created."""
        target = tmp_path / "out" / "nested" / "liquibase.properties"

        write_output_file("url=jdbc:x\n", target)

        assert target.exists()

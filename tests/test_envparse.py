"""Tests for integrator.lib.envparse."""

import pytest

from integrator.lib.envparse import load_env, parse_env_text


class TestParseEnvText:

    def test_parses_keys_and_strips_quotes(self):
        env = parse_env_text('PUSH_URL="ssh://example.org/next.git"\nTRACK=head\nBRANCH=\'next\'\n')
        assert env == {"PUSH_URL": "ssh://example.org/next.git", "TRACK": "head", "BRANCH": "next"}

    def test_skips_comments_and_blanks(self):
        assert parse_env_text("# settings\n\n   \nBASELINE=linus\n") == {"BASELINE": "linus"}

    def test_tolerates_export(self):
        assert parse_env_text("export BRANCH=next\n") == {"BRANCH": "next"}

    def test_missing_equals(self):
        with pytest.raises(ValueError, match="no '='"):
            parse_env_text("BRANCH next\n", source="integrator.env")

    def test_invalid_key(self):
        with pytest.raises(ValueError, match="invalid key 'branch'"):
            parse_env_text("branch=next\n")

    @pytest.mark.parametrize("value", ["`id`", "$(id)", "${HOME}", "a;b", "a && b", "a || b", "a | b"])
    def test_rejects_shell_metacharacters(self, value):
        with pytest.raises(ValueError, match="forbidden pattern"):
            parse_env_text(f"PUSH_URL={value}\n")

    def test_error_names_source_and_line(self):
        with pytest.raises(ValueError, match=r"^settings\.env:2:"):
            parse_env_text("BRANCH=next\nnonsense\n", source="settings.env")


class TestLoadEnv:

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_env(tmp_path / "nope.env")

    def test_reads_file(self, tmp_path):
        path = tmp_path / "integrator.env"
        path.write_text("RERERE_URL=https://example.org/rr-cache.git\n")
        assert load_env(path) == {"RERERE_URL": "https://example.org/rr-cache.git"}

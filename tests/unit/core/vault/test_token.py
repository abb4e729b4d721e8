"""Tests for TokenMaterialProvider."""

from __future__ import annotations

from pathlib import Path

import pytest

from vault_token_injector.core.exceptions import SessionError
from vault_token_injector.core.vault.token import TokenMaterialProvider


class TestTokenMaterialProvider:
    def test_reads_environment(self) -> None:
        provider = TokenMaterialProvider(environ={"VAULT_TOKEN": " s.env \n"})
        assert provider.read() == "s.env"

    def test_missing_everywhere_is_empty(self) -> None:
        assert TokenMaterialProvider(environ={}).read() == ""

    def test_file_takes_precedence(self, tmp_path: Path) -> None:
        token_file = tmp_path / "token"
        token_file.write_text("s.file\n")
        provider = TokenMaterialProvider(token_file, environ={"VAULT_TOKEN": "s.env"})
        assert provider.read() == "s.file"

    def test_file_reread_each_time(self, tmp_path: Path) -> None:
        token_file = tmp_path / "token"
        token_file.write_text("s.first")
        provider = TokenMaterialProvider(str(token_file), environ={})
        assert provider.read() == "s.first"
        token_file.write_text("s.second")
        assert provider.read() == "s.second"

    def test_unreadable_file_is_session_error(self, tmp_path: Path) -> None:
        provider = TokenMaterialProvider(tmp_path / "missing", environ={"VAULT_TOKEN": "s.env"})
        with pytest.raises(SessionError, match="could not be read"):
            provider.read()

    def test_undecodable_file_is_session_error(self, tmp_path: Path) -> None:
        token_file = tmp_path / "token"
        token_file.write_bytes(b"\xff\xfe\x00s.tok")
        provider = TokenMaterialProvider(token_file, environ={})

        with pytest.raises(SessionError, match="could not be read") as excinfo:
            provider.read()

        assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)

    def test_uses_process_environment_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VAULT_TOKEN", "s.process")
        assert TokenMaterialProvider().read() == "s.process"

"""Tests for the local setup wizard helpers."""

from urllib.parse import parse_qs, urlparse

from httpx import Response

from trello_mcp.scripts import setup_auth


class TestBuildAuthorizeUrl:
    """Test the Trello authorize URL."""

    def test_never_expiring_token_url(self):
        url = setup_auth.build_authorize_url("abc123")
        parsed = urlparse(url)
        query = parse_qs(parsed.query)

        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == "https://trello.com/1/authorize"
        assert query["key"] == ["abc123"]
        assert query["expiration"] == ["never"]
        assert query["response_type"] == ["token"]
        assert query["scope"] == ["read"]
        assert query["name"] == ["Trello MCP"]


class TestEnsureEnvFile:
    """Test .env bootstrapping."""

    def test_copies_example(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env.example").write_text("TRELLO_API_KEY=your_api_key_here\n")

        env_path = setup_auth._ensure_env_file()

        assert env_path == tmp_path / ".env"
        assert env_path.read_text() == "TRELLO_API_KEY=your_api_key_here\n"

    def test_creates_empty_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        env_path = setup_auth._ensure_env_file()

        assert env_path.exists()
        assert env_path.read_text() == ""

    def test_prompt_optional_keeps_default(self, monkeypatch):
        monkeypatch.setattr("builtins.input", lambda prompt: "")

        assert setup_auth._prompt_optional("Default board ID", "board1") == "board1"


class TestWizardVerification:
    """Test the credential check at the end of the wizard."""

    def _answer_prompts(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("builtins.input", lambda prompt: "key123")
        monkeypatch.setattr(setup_auth, "getpass", lambda prompt: "tok456")

    def test_unexpected_boards_payload_is_reported(self, respx_mock, tmp_path, monkeypatch, capsys):
        self._answer_prompts(monkeypatch, tmp_path)
        respx_mock.get("/members/me/boards").mock(
            return_value=Response(200, json={"message": "not a board list"})
        )

        setup_auth.main()

        output = capsys.readouterr().out
        assert "Could not verify credentials" in output
        assert "TRELLO_TOKEN='tok456'" in (tmp_path / ".env").read_text()

    def test_rejected_token_is_reported(self, respx_mock, tmp_path, monkeypatch, capsys):
        self._answer_prompts(monkeypatch, tmp_path)
        respx_mock.get("/members/me/boards").mock(return_value=Response(401, text="invalid token"))

        setup_auth.main()

        assert "Could not verify credentials" in capsys.readouterr().out

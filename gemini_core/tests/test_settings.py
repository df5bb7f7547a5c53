from gemini_core.config.settings import Settings


def test_settings_accepts_google_api_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("GOOGLE_API_KEY", "google-key")
    cfg = Settings(_env_file=None)
    assert cfg.gemini_api_key == "google-key"


def test_settings_defaults(monkeypatch):
    for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "GEMINI_BACKEND_MODE", "GEMINI_MODEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GEMINI_CONFIG_FILE", "/nonexistent/config.yaml")
    cfg = Settings(_env_file=None)
    assert cfg.gemini_backend_mode == "direct"
    assert cfg.gemini_api_version == "v1beta"
    assert cfg.gemini_api_key is None


def test_settings_reads_yaml(monkeypatch, tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("gemini_model: gemini-2.5-pro\ngemini_top_k: 20\n", encoding="utf-8")
    monkeypatch.setenv("GEMINI_CONFIG_FILE", str(path))
    monkeypatch.delenv("GEMINI_MODEL", raising=False)
    monkeypatch.delenv("GEMINI_TOP_K", raising=False)
    cfg = Settings(_env_file=None)
    assert cfg.gemini_model == "gemini-2.5-pro"
    assert cfg.gemini_top_k == 20

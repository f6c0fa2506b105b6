from __future__ import annotations

import importlib
import json

import dotenv


def test_config_path_from_dotenv(tmp_path, monkeypatch) -> None:
    config_path = tmp_path / "custom.json"
    config_path.write_text(
        json.dumps({"database": {"path": str(tmp_path / "other.db")}, "feed": {"page_size": 7}}),
        encoding="utf-8",
    )
    monkeypatch.delenv("GUESTBOOK_CONFIG", raising=False)
    monkeypatch.delenv("CREATOR_USERNAME", raising=False)

    def fake_load_dotenv(*args, **kwargs) -> bool:
        monkeypatch.setenv("GUESTBOOK_CONFIG", str(config_path))
        return True

    monkeypatch.setattr(dotenv, "load_dotenv", fake_load_dotenv)

    import settings

    settings = importlib.reload(settings)

    assert settings.CONFIG_PATH == str(config_path)
    assert settings.DB_PATH == str(tmp_path / "other.db")
    assert settings.PAGE_SIZE == 7
    assert settings.ROOT_MAX_LENGTH == 200

"""Tests for loading admin configuration."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from adminforge.config import AdminConfig, load_config
from adminforge.core.errors import ConfigurationError


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "admin.toml"
    path.write_text(text)
    return path


class TestAdminConfig:
    def test_defaults(self) -> None:
        config = AdminConfig()
        assert config.path == "/admin"
        assert config.database == ":memory:"
        assert config.title == "Admin"
        assert config.foreign_key_suffix == "Id"

    @pytest.mark.parametrize(("path", "root"), [("/admin", "/admin"), ("/admin/", "/admin"), ("/", "")])
    def test_root(self, path: str, root: str) -> None:
        assert AdminConfig(path=path).root == root

    def test_frozen(self) -> None:
        config = AdminConfig()
        with pytest.raises(ValidationError):
            config.title = "Other"  # type: ignore[misc]

    def test_password_not_in_repr(self) -> None:
        assert "hunter2" not in repr(AdminConfig(username="root", password="hunter2"))


class TestLoadConfig:
    def test_reads_admin_table(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            """
[admin]
path = "/backoffice"
title = "Back Office"
username = "root"
password = "hunter2"
database = "site.db"
""",
        )
        config = load_config(path, environ={})
        assert config.path == "/backoffice"
        assert config.title == "Back Office"
        assert config.username == "root"
        assert config.database == "site.db"

    def test_missing_table_uses_defaults(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, "[other]\nx = 1\n"), environ={})
        assert config == AdminConfig()

    def test_environment_overrides(self, tmp_path: Path) -> None:
        path = _write(tmp_path, '[admin]\nusername = "root"\npassword = "hunter2"\n')
        config = load_config(
            path,
            environ={
                "ADMINFORGE_USERNAME": "ops",
                "ADMINFORGE_PASSWORD": "s3cret",
                "ADMINFORGE_DATABASE": "/var/lib/site.db",
            },
        )
        assert config.username == "ops"
        assert config.password == "s3cret"
        assert config.database == "/var/lib/site.db"

    def test_empty_environment_value_ignored(self, tmp_path: Path) -> None:
        path = _write(tmp_path, '[admin]\nusername = "root"\n')
        config = load_config(path, environ={"ADMINFORGE_USERNAME": ""})
        assert config.username == "root"

    def test_templates_dir_relative_to_file(self, tmp_path: Path) -> None:
        path = _write(tmp_path, '[admin]\ntemplates_dir = "templates"\n')
        assert load_config(path, environ={}).templates_dir == tmp_path / "templates"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "nope.toml", environ={})

    def test_invalid_toml(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            load_config(_write(tmp_path, "[admin\n"), environ={})

    @pytest.mark.parametrize(
        "body",
        [
            "session_ttl_seconds = 0",
            'foreign_key_suffix = ""',
            "title = 3",
        ],
    )
    def test_invalid_values(self, tmp_path: Path, body: str) -> None:
        with pytest.raises(ConfigurationError, match=r"Invalid \[admin\] config"):
            load_config(_write(tmp_path, f"[admin]\n{body}\n"), environ={})

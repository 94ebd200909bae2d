"""Tests for the Admin registry and setup."""

from __future__ import annotations

import io
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import pytest

from adminforge import Admin, AdminConfig, setup
from adminforge.core.errors import ConfigurationError, DuplicateSlugError, RegistrationError
from adminforge.core.introspect import Tag
from adminforge.core.strings import snake_case


@dataclass
class Author:
    name: Annotated[str, Tag("list")]


@dataclass
class BlogPost:
    title: Annotated[str, Tag("list")]
    author: Author


@dataclass
class Blogpost:
    """Slugifies the same as BlogPost."""

    body: str


@dataclass
class Broken:
    title: Annotated[str, Tag("list,,label=x")]


class TestSetup:
    def test_returns_ready_admin(self, admin_config: AdminConfig) -> None:
        admin = setup(admin_config)
        try:
            assert admin.ready
            assert admin.storage is not None
            assert admin.title == "Test Admin"
        finally:
            admin.close()

    @pytest.mark.parametrize(
        "overrides", [{"username": ""}, {"password": ""}, {"username": "", "password": ""}]
    )
    def test_missing_credentials(self, admin_config: AdminConfig, overrides: dict[str, str]) -> None:
        with pytest.raises(ConfigurationError, match="Username and/or password"):
            setup(admin_config.model_copy(update=overrides))

    def test_default_title(self, admin_config: AdminConfig) -> None:
        admin = setup(admin_config.model_copy(update={"title": ""}))
        try:
            assert admin.title == "Admin"
        finally:
            admin.close()

    def test_unopenable_database(self, admin_config: AdminConfig, tmp_path: Path) -> None:
        bad = str(tmp_path / "missing" / "dir" / "db.sqlite")
        with pytest.raises(ConfigurationError):
            setup(admin_config.model_copy(update={"database": bad}))

    def test_missing_templates_dir(self, admin_config: AdminConfig, tmp_path: Path) -> None:
        config = admin_config.model_copy(update={"templates_dir": tmp_path / "nope"})
        with pytest.raises(ConfigurationError, match="Templates directory"):
            setup(config)

    def test_broken_override_template(self, admin_config: AdminConfig, tmp_path: Path) -> None:
        (tmp_path / "index.html").write_text("{% if %}")
        config = admin_config.model_copy(update={"templates_dir": tmp_path})
        with pytest.raises(ConfigurationError, match="index.html"):
            setup(config)

    def test_override_template_used(self, admin_config: AdminConfig, tmp_path: Path) -> None:
        fields_dir = tmp_path / "fields"
        fields_dir.mkdir()
        (fields_dir / "cell.html").write_text("<td>custom {{ text }}</td>")
        admin = setup(admin_config.model_copy(update={"templates_dir": tmp_path}))
        try:
            group = admin.group("Blog")
            model = group.register(Author)
            out = io.StringIO()
            model.render_row(out, ["Ann"])
            assert out.getvalue() == "<td>custom Ann</td>"
        finally:
            admin.close()

    def test_admins_keep_their_own_templates(
        self, admin_config: AdminConfig, tmp_path: Path
    ) -> None:
        first = setup(admin_config)
        fields_dir = tmp_path / "fields"
        fields_dir.mkdir()
        (fields_dir / "text.html").write_text("OVERRIDE {{ field.name }}")
        second = setup(admin_config.model_copy(update={"templates_dir": tmp_path}))
        try:
            assert first.templates is not second.templates
            model = first.group("Blog").register(Author)
            assert model.templates is first.templates
            out = io.StringIO()
            model.render_form(out)
            assert "OVERRIDE" not in out.getvalue()
            assert 'name="name"' in out.getvalue()

            other = second.group("Blog").register(Author)
            out = io.StringIO()
            other.render_form(out)
            assert out.getvalue() == "OVERRIDE name"
        finally:
            first.close()
            second.close()


class TestGroups:
    def test_group_requires_setup(self, admin_config: AdminConfig) -> None:
        admin = Admin(admin_config)
        with pytest.raises(ConfigurationError, match="setup"):
            admin.group("Blog")

    def test_group_slug_and_order(self, admin: Admin) -> None:
        first = admin.group("Blog Posts")
        second = admin.group("Users")
        assert first.slug == "blog-posts"
        assert admin.model_groups == [first, second]

    def test_register_adds_to_group_and_map(self, admin: Admin) -> None:
        group = admin.group("Blog")
        model = group.register(BlogPost)
        assert group.models == [model]
        assert admin.get_model("blogpost") is model
        assert admin.models == {"blogpost": model}

    def test_name_transform_from_setup(self, admin_config: AdminConfig) -> None:
        admin = setup(admin_config, name_transform=snake_case)
        try:
            model = admin.group("Blog").register(BlogPost)
            assert model.table_name == "blog_post"
            assert model.table_columns() == ["title", "author_id"]
        finally:
            admin.close()

    def test_foreign_key_suffix_from_config(self, admin_config: AdminConfig) -> None:
        admin = setup(admin_config.model_copy(update={"foreign_key_suffix": "_id"}))
        try:
            model = admin.group("Blog").register(BlogPost)
            assert model.field_names() == ["title", "author_id"]
        finally:
            admin.close()

    def test_unknown_slug(self, admin: Admin) -> None:
        assert admin.get_model("nope") is None


class TestDuplicateSlugs:
    def test_collision_raises(self, admin: Admin) -> None:
        group = admin.group("Blog")
        original = group.register(BlogPost)
        with pytest.raises(DuplicateSlugError) as exc_info:
            group.register(Blogpost)
        assert exc_info.value.slug == "blogpost"
        assert admin.get_model("blogpost") is original
        assert group.models == [original]

    def test_duplicate_is_a_registration_error(self, admin: Admin) -> None:
        group = admin.group("Blog")
        group.register(BlogPost)
        with pytest.raises(RegistrationError):
            group.register(BlogPost)

    def test_replace(self, admin: Admin) -> None:
        blog = admin.group("Blog")
        other = admin.group("Other")
        blog.register(BlogPost)
        replacement = other.register(Blogpost, replace=True)
        assert admin.get_model("blogpost") is replacement
        assert blog.models == []
        assert other.models == [replacement]

    def test_failed_registration_leaves_no_trace(self, admin: Admin) -> None:
        group = admin.group("Blog")
        with pytest.raises(RegistrationError):
            group.register(Broken)
        assert group.models == []
        assert admin.models == {}


class TestURLs:
    def test_model_urls(self, admin: Admin) -> None:
        admin.group("Blog").register(BlogPost)
        assert admin.model_url("blogpost") == "/admin/model/blogpost/"
        assert admin.model_url("blogpost", "new/") == "/admin/model/blogpost/new/"
        assert admin.model_url("blogpost", "edit/3/") == "/admin/model/blogpost/edit/3/"

    def test_unknown_slug_goes_to_index(self, admin: Admin) -> None:
        assert admin.model_url("nope", "new/") == "/admin/"

    def test_fixed_urls(self, admin: Admin) -> None:
        assert admin.index_url() == "/admin/"
        assert admin.login_url() == "/admin/login/"
        assert admin.logout_url() == "/admin/logout/"

    def test_root_mount(self, admin_config: AdminConfig) -> None:
        admin = setup(admin_config.model_copy(update={"path": "/"}))
        try:
            assert admin.index_url() == "/"
        finally:
            admin.close()


class TestAuthenticate:
    def test_credentials(self, admin: Admin) -> None:
        assert admin.authenticate("root", "hunter2")
        assert not admin.authenticate("root", "wrong")
        assert not admin.authenticate("other", "hunter2")
        assert not admin.authenticate("", "")


class TestConcurrentReads:
    def test_lookups_during_sessions(self, admin: Admin) -> None:
        admin.group("Blog").register(BlogPost)
        errors: list[Exception] = []

        def worker() -> None:
            try:
                for _ in range(200):
                    assert admin.get_model("blogpost") is not None
                    session = admin.sessions.create("root")
                    assert admin.sessions.get(session.id) == session
                    admin.sessions.delete(session.id)
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(admin.sessions) == 0

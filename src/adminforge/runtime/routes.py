"""
Page routes for the admin site.

Creates FastAPI routes that render admin pages with Jinja2:

- ``/``: model groups
- ``/login/``, ``/logout/``
- ``/model/{slug}/``: list view
- ``/model/{slug}/new/``: create form
- ``/model/{slug}/edit/{id}/``: edit form
- ``/model/{slug}/delete/{id}/``: delete (POST)

Every page except login requires a session cookie.
"""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from markupsafe import Markup

from adminforge.core.errors import FieldValueError
from adminforge.core.model import Model
from adminforge.runtime.template_renderer import render_page

if TYPE_CHECKING:
    from adminforge.admin import Admin

logger = logging.getLogger(__name__)

PAGE_SIZE = 50


def create_admin_router(admin: Admin) -> APIRouter:
    """
    Build the admin router. Mount it under ``admin.config.path``.

    Args:
        admin: Admin returned by ``setup``

    Returns:
        APIRouter with all admin page routes
    """
    router = APIRouter()

    def _page(template: str, request: Request, status_code: int = 200, **context: Any) -> HTMLResponse:
        html = render_page(
            admin.templates,
            template,
            title=admin.title,
            index_url=admin.index_url(),
            logout_url=admin.logout_url(),
            logged_in=_session(request) is not None,
            **context,
        )
        return HTMLResponse(content=html, status_code=status_code)

    def _session(request: Request) -> Any:
        return admin.sessions.get(request.cookies.get(admin.config.cookie_name))

    def _login_redirect() -> RedirectResponse:
        return RedirectResponse(url=admin.login_url(), status_code=303)

    def _model_or_404(slug: str) -> Model:
        model = admin.get_model(slug)
        if model is None:
            raise HTTPException(status_code=404, detail=f"Unknown model {slug!r}")
        return model

    def _clean_form(model: Model, form: Any) -> tuple[list[Any], list[Any], list[str]]:
        """Return (raw values, cleaned values, errors), each aligned with model.fields."""
        raw_values: list[Any] = []
        cleaned: list[Any] = []
        errors: list[str] = []
        for field in model.fields:
            raw = form.get(field.name)
            raw = raw if isinstance(raw, str) else None
            raw_values.append(raw)
            try:
                cleaned.append(field.clean(raw))
                errors.append("")
            except FieldValueError as exc:
                cleaned.append(None)
                errors.append(str(exc))
        return raw_values, cleaned, errors

    def _form_page(
        request: Request,
        model: Model,
        *,
        record_id: int | None,
        data: list[Any] | None = None,
        errors: list[str] | None = None,
        status_code: int = 200,
    ) -> HTMLResponse:
        out = io.StringIO()
        model.render_form(out, data, errors)
        if record_id is None:
            heading = f"New {model.name}"
            action_url = admin.model_url(model.slug, "new/")
            delete_url = None
        else:
            heading = f"Edit {model.name} #{record_id}"
            action_url = admin.model_url(model.slug, f"edit/{record_id}/")
            delete_url = admin.model_url(model.slug, f"delete/{record_id}/")
        return _page(
            "edit.html",
            request,
            status_code=status_code,
            model=model,
            heading=heading,
            form=Markup(out.getvalue()),
            action_url=action_url,
            delete_url=delete_url,
            list_url=admin.model_url(model.slug),
        )

    # -------------------------------------------------------------------------
    # Index and auth
    # -------------------------------------------------------------------------

    @router.get("/", response_class=HTMLResponse)
    async def index(request: Request) -> Response:
        if _session(request) is None:
            return _login_redirect()
        groups = [
            {
                "name": group.name,
                "slug": group.slug,
                "models": [
                    {"name": m.name, "url": admin.model_url(m.slug)} for m in list(group.models)
                ],
            }
            for group in admin.model_groups
        ]
        return _page("index.html", request, groups=groups)

    @router.get("/login/", response_class=HTMLResponse)
    async def login_form(request: Request) -> Response:
        return _page("login.html", request, login_url=admin.login_url(), username="", error="")

    @router.post("/login/", response_class=HTMLResponse)
    async def login(request: Request) -> Response:
        form = await request.form()
        username = str(form.get("username") or "")
        password = str(form.get("password") or "")
        if not admin.authenticate(username, password):
            logger.warning("Failed admin login for %r", username)
            return _page(
                "login.html",
                request,
                status_code=401,
                login_url=admin.login_url(),
                username=username,
                error="Invalid username or password",
            )

        session = admin.sessions.create(username)
        response = RedirectResponse(url=admin.index_url(), status_code=303)
        response.set_cookie(
            admin.config.cookie_name,
            session.id,
            max_age=admin.config.session_ttl_seconds,
            httponly=True,
            samesite="lax",
        )
        return response

    @router.get("/logout/")
    async def logout(request: Request) -> Response:
        admin.sessions.delete(request.cookies.get(admin.config.cookie_name))
        response = _login_redirect()
        response.delete_cookie(admin.config.cookie_name)
        return response

    # -------------------------------------------------------------------------
    # Model pages
    # -------------------------------------------------------------------------

    @router.get("/model/{slug}/", response_class=HTMLResponse)
    async def list_view(request: Request, slug: str, page: int = 1) -> Response:
        if _session(request) is None:
            return _login_redirect()
        model = _model_or_404(slug)
        page = max(page, 1)

        repo = admin.repository(model)
        total = repo.count()
        rows = []
        for row in repo.list(limit=PAGE_SIZE, offset=(page - 1) * PAGE_SIZE):
            out = io.StringIO()
            model.render_row(out, row.values)
            rows.append(
                {
                    "id": row.id,
                    "url": admin.model_url(slug, f"edit/{row.id}/"),
                    "cells": Markup(out.getvalue()),
                }
            )

        base = admin.model_url(slug)
        return _page(
            "list.html",
            request,
            model=model,
            labels=model.list_labels(),
            rows=rows,
            new_url=admin.model_url(slug, "new/"),
            prev_url=f"{base}?page={page - 1}" if page > 1 else None,
            next_url=f"{base}?page={page + 1}" if page * PAGE_SIZE < total else None,
        )

    @router.get("/model/{slug}/new/", response_class=HTMLResponse)
    async def new_form(request: Request, slug: str) -> Response:
        if _session(request) is None:
            return _login_redirect()
        return _form_page(request, _model_or_404(slug), record_id=None)

    @router.post("/model/{slug}/new/", response_class=HTMLResponse)
    async def create(request: Request, slug: str) -> Response:
        if _session(request) is None:
            return _login_redirect()
        model = _model_or_404(slug)
        raw, cleaned, errors = _clean_form(model, await request.form())
        if any(errors):
            return _form_page(
                request, model, record_id=None, data=raw, errors=errors, status_code=422
            )

        record_id = admin.repository(model).create(cleaned)
        logger.info("Created %s #%s", model.name, record_id)
        return RedirectResponse(url=admin.model_url(slug), status_code=303)

    @router.get("/model/{slug}/edit/{record_id}/", response_class=HTMLResponse)
    async def edit_form(request: Request, slug: str, record_id: int) -> Response:
        if _session(request) is None:
            return _login_redirect()
        model = _model_or_404(slug)
        values = admin.repository(model).get(record_id)
        if values is None:
            raise HTTPException(status_code=404, detail=f"{model.name} #{record_id} not found")
        return _form_page(request, model, record_id=record_id, data=values)

    @router.post("/model/{slug}/edit/{record_id}/", response_class=HTMLResponse)
    async def update(request: Request, slug: str, record_id: int) -> Response:
        if _session(request) is None:
            return _login_redirect()
        model = _model_or_404(slug)
        raw, cleaned, errors = _clean_form(model, await request.form())
        if any(errors):
            return _form_page(
                request, model, record_id=record_id, data=raw, errors=errors, status_code=422
            )

        if not admin.repository(model).update(record_id, cleaned):
            raise HTTPException(status_code=404, detail=f"{model.name} #{record_id} not found")
        logger.info("Updated %s #%s", model.name, record_id)
        return RedirectResponse(url=admin.model_url(slug), status_code=303)

    @router.post("/model/{slug}/delete/{record_id}/")
    async def delete(request: Request, slug: str, record_id: int) -> Response:
        if _session(request) is None:
            return _login_redirect()
        model = _model_or_404(slug)
        if not admin.repository(model).delete(record_id):
            raise HTTPException(status_code=404, detail=f"{model.name} #{record_id} not found")
        logger.info("Deleted %s #%s", model.name, record_id)
        return RedirectResponse(url=admin.model_url(slug), status_code=303)

    return router


def create_admin_app(admin: Admin) -> FastAPI:
    """Standalone FastAPI app serving the admin under ``admin.config.path``."""
    app = FastAPI(title=admin.title)
    app.include_router(create_admin_router(admin), prefix=admin.config.root)
    return app

"""
Admin registry.

Holds every registered model (by slug) and model group, the storage
connection, and the session store. Created by ``setup``; lives for the
lifetime of the process.
"""

from __future__ import annotations

import hmac
import logging
import threading
from datetime import timedelta

from jinja2 import Environment

from adminforge.config import AdminConfig
from adminforge.core.errors import ConfigurationError, DuplicateSlugError, StorageError
from adminforge.core.model import Model, ModelGroup
from adminforge.core.registration import NameTransform
from adminforge.core.strings import slugify
from adminforge.runtime.sessions import SessionStore
from adminforge.runtime.storage import Repository, Storage
from adminforge.runtime.template_renderer import configure_templates, create_jinja_env

logger = logging.getLogger(__name__)


class Admin:
    """
    Registry of models and model groups for one admin site.

    Model registration is start-up work. After that, models are read
    concurrently by request handlers; the slug map is guarded by a lock.
    """

    def __init__(
        self,
        config: AdminConfig,
        *,
        name_transform: NameTransform | None = None,
        templates: Environment | None = None,
    ):
        self.config = config
        self.name_transform = name_transform
        self.templates = templates if templates is not None else create_jinja_env(config.templates_dir)
        self.sessions = SessionStore(ttl=timedelta(seconds=config.session_ttl_seconds))
        self.storage: Storage | None = None

        self._models: dict[str, Model] = {}
        self._model_groups: list[ModelGroup] = []
        self._lock = threading.RLock()
        self._ready = False

    def __repr__(self) -> str:
        return f"<Admin {self.config.title!r} at {self.config.path!r}>"

    @property
    def title(self) -> str:
        return self.config.title

    @property
    def ready(self) -> bool:
        return self._ready

    # =========================================================================
    # Groups and Models
    # =========================================================================

    def group(self, name: str) -> ModelGroup:
        """
        Add a model group to the admin front page.

        Use groups to organize models.

        Raises:
            ConfigurationError: setup() has not been run
        """
        if not self._ready:
            raise ConfigurationError("Must call setup() before adding groups and registering models")

        group = ModelGroup(admin=self, name=name, slug=slugify(name))
        with self._lock:
            self._model_groups.append(group)
        return group

    def add_model(self, group: ModelGroup, model: Model, *, replace: bool = False) -> None:
        """
        Insert a model under its slug and append it to ``group``.

        Raises:
            DuplicateSlugError: the slug is taken and ``replace`` is False
        """
        with self._lock:
            existing = self._models.get(model.slug)
            if existing is not None:
                if not replace:
                    raise DuplicateSlugError(model.slug, model.name)
                for g in self._model_groups:
                    g.models[:] = [m for m in g.models if m is not existing]
                logger.info("Replacing model %s at slug %r", existing.name, model.slug)

            self._models[model.slug] = model
            group.models.append(model)

        logger.info(
            "Registered model %s in group %s (%d fields)", model.name, group.name, len(model.fields)
        )

    def get_model(self, slug: str) -> Model | None:
        """Look up a model by slug; None if unknown."""
        with self._lock:
            return self._models.get(slug)

    @property
    def models(self) -> dict[str, Model]:
        """Snapshot of the slug map."""
        with self._lock:
            return dict(self._models)

    @property
    def model_groups(self) -> list[ModelGroup]:
        """Snapshot of the groups in creation order."""
        with self._lock:
            return list(self._model_groups)

    def repository(self, model: Model) -> Repository:
        if self.storage is None:
            raise ConfigurationError("Storage is not open; call setup() first")
        return Repository(self.storage, model)

    # =========================================================================
    # URLs
    # =========================================================================

    def index_url(self) -> str:
        return f"{self.config.root}/"

    def login_url(self) -> str:
        return f"{self.config.root}/login/"

    def logout_url(self) -> str:
        return f"{self.config.root}/logout/"

    def model_url(self, slug: str, action: str = "") -> str:
        """
        URL of a model page, e.g. ``model_url("post", "new/")``.

        Unknown slugs give the admin index URL.
        """
        if self.get_model(slug) is None:
            return self.index_url()
        return f"{self.config.root}/model/{slug}/{action}"

    # =========================================================================
    # Auth
    # =========================================================================

    def authenticate(self, username: str, password: str) -> bool:
        """Check credentials against the configured username and password."""
        user_ok = hmac.compare_digest(username.encode(), self.config.username.encode())
        password_ok = hmac.compare_digest(password.encode(), self.config.password.encode())
        return user_ok and password_ok

    def close(self) -> None:
        if self.storage is not None:
            self.storage.close()
            self.storage = None


def setup(
    config: AdminConfig | None = None,
    *,
    name_transform: NameTransform | None = None,
    storage: Storage | None = None,
) -> Admin:
    """
    Validate configuration, open storage, load templates.

    Args:
        config: Admin settings (default: AdminConfig())
        name_transform: Maps class and attribute names to table and column names
        storage: Already-open storage to use instead of opening ``config.database``

    Returns:
        Admin ready for groups and model registration

    Raises:
        ConfigurationError: credentials missing, database cannot be opened,
            or templates fail to load
    """
    config = config or AdminConfig()
    if not config.title:
        config = config.model_copy(update={"title": "Admin"})

    if not config.username or not config.password:
        raise ConfigurationError("Username and/or password is missing")

    templates = configure_templates(config.templates_dir)

    admin = Admin(config, name_transform=name_transform, templates=templates)
    if storage is None:
        try:
            storage = Storage.open(config.database)
        except StorageError as exc:
            raise ConfigurationError(exc.message) from exc
    admin.storage = storage
    admin._ready = True

    logger.info("Admin %r set up at %s (database %s)", config.title, admin.index_url(), config.database)
    return admin

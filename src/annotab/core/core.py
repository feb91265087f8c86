from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, cast

from annotab.config import Config
from annotab.core.lark import LarkRecordStore
from annotab.core.locks import KeyedLock
from annotab.core.store import RecordStore

if TYPE_CHECKING:
    from annotab.core.modules.comment.service import CommentService
    from annotab.core.modules.project.service import ProjectService


class Service:
    """Base class for services with direct record store access."""

    def __init__(self, store: RecordStore, config: Config) -> None:
        self.store = store
        self.config = config
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    project: ProjectService
    comment: CommentService

    def __init__(self, store: RecordStore, config: Config) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []

        # Service configuration: (attribute_name, module_path, class_name)
        service_configs = [
            ("project", "annotab.core.modules.project.service", "ProjectService"),
            ("comment", "annotab.core.modules.comment.service", "CommentService"),
        ]

        # Dynamically import and instantiate services
        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(store, config)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services that have cleanup logic."""
        for service in self._services:
            await service.on_stop()


class Core:
    """Container providing config, record store, entity locks and all service instances."""

    config: Config
    store: RecordStore
    locks: KeyedLock
    services: Services

    def __init__(self, config: Config, store: RecordStore | None = None) -> None:
        """Initialize core with config and record store, and auto-register services."""
        self.config = config
        self.store = store if store is not None else LarkRecordStore(config)
        self.locks = KeyedLock()
        self.services = Services(self.store, config)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Start all services on application startup."""
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close the record store transport on shutdown."""
        await self.services.stop_all()
        await self.store.aclose()

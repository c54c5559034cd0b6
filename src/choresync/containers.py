"""Dependency Injection container for ChoreSync.

This module provides a centralized DI container using dependency-injector.
Each component is built once per container, so the application root owns a
single cache, queue and connection state and passes them by reference.

The container manages:
- Settings (Singleton)
- Platform adapters: durable store, network signal, HTTP transport
- Offline queue, connection monitor, response cache, request executor
- The API service facade
"""

from __future__ import annotations

from dependency_injector import containers, providers

from choresync.config.loader import load_settings
from choresync.services import (
    AiohttpTransport,
    ApiService,
    ConnectionMonitor,
    JsonFileStore,
    ManualNetworkSignal,
    OfflineActionQueue,
    RequestExecutor,
    ResponseCache,
)


class Container(containers.DeclarativeContainer):
    """Dependency Injection container for ChoreSync services.

    Tests and the CLI override the platform providers (``durable_store``,
    ``network_signal``, ``transport``) and leave the rest alone.

    Example:
        >>> container = Container()
        >>> container.network_signal.override(providers.Object(ManualNetworkSignal(online=False)))
        >>> api = container.api_service()
        >>> await api.tasks.toggle(3, 1)  # queued
    """

    # Configuration
    config = providers.Singleton(load_settings)

    # Platform adapters
    durable_store = providers.Singleton(
        JsonFileStore,
        path=providers.Callable(lambda config: config.queue.store_path, config=config),
    )

    network_signal = providers.Singleton(ManualNetworkSignal, online=True)

    transport = providers.Singleton(
        AiohttpTransport,
        base_url=providers.Callable(lambda config: config.api.base_url, config=config),
    )

    # Core services
    offline_queue = providers.Singleton(
        OfflineActionQueue,
        store=durable_store,
        storage_key=providers.Callable(
            lambda config: config.queue.storage_key,
            config=config,
        ),
    )

    connection_monitor = providers.Singleton(
        ConnectionMonitor,
        signal=network_signal,
        queue=offline_queue,
        replay_debounce=providers.Callable(
            lambda config: config.queue.replay_debounce,
            config=config,
        ),
    )

    response_cache = providers.Singleton(
        ResponseCache,
        ttl=providers.Callable(lambda config: config.cache.ttl, config=config),
        enabled=providers.Callable(lambda config: config.cache.enabled, config=config),
    )

    request_executor = providers.Singleton(
        RequestExecutor.from_settings,
        transport=transport,
        monitor=connection_monitor,
        settings=providers.Callable(lambda config: config.api, config=config),
    )

    # Facade
    api_service = providers.Singleton(
        ApiService,
        executor=request_executor,
        cache=response_cache,
        queue=offline_queue,
        ranking_max_age=providers.Callable(
            lambda config: config.cache.ranking_max_age,
            config=config,
        ),
        language=providers.Callable(lambda config: config.app.language, config=config),
    )

"""
Dependency Injection Container

Manages service lifecycles and dependency resolution.
"""

import logging
import threading
from typing import Any, Callable, Dict, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DependencyNotFoundError(Exception):
    """Raised when attempting to resolve an unregistered dependency."""

    pass


class DependencyContainer:
    """
    Dependency injection container for managing service lifecycles.

    Supports singleton (single instance) and transient (factory-created)
    registration patterns. Thread-safe for concurrent access; Flask request
    threads, the sweep timer thread and Celery workers all resolve from it.
    """

    def __init__(self):
        """Initialize the dependency container."""
        self._singletons: Dict[Type, Any] = {}
        self._transients: Dict[Type, Callable[[], Any]] = {}
        self._overrides: Dict[Type, Any] = {}
        self._lazy: Dict[Type, Callable[[], Any]] = {}
        self._lock = threading.Lock()

        logger.debug("DependencyContainer initialized")

    def register_singleton(self, interface: Type[T], implementation: T) -> None:
        """
        Register a singleton service (single instance shared across all resolutions).

        Example:
            container.register_singleton(FileManager, file_manager)
        """
        with self._lock:
            self._singletons[interface] = implementation
            logger.debug(f"Registered singleton: {interface.__name__}")

    def register_transient(self, interface: Type[T], factory: Callable[[], T]) -> None:
        """
        Register a transient service (new instance created on each resolution).

        Example:
            container.register_transient(
                OrphanReconciler,
                lambda: OrphanReconciler(record_repo, blob_store)
            )
        """
        with self._lock:
            self._transients[interface] = factory
            logger.debug(f"Registered transient: {interface.__name__}")

    def register_lazy_singleton(self, interface: Type[T], factory: Callable[[], T]) -> None:
        """
        Register a singleton built on first resolution.

        Used for services that open connections, so building the app does not
        require Redis to be reachable.
        """
        with self._lock:
            self._lazy[interface] = factory
            logger.debug(f"Registered lazy singleton: {interface.__name__}")

    def resolve(self, interface: Type[T]) -> T:
        """
        Resolve a registered service.

        Raises:
            DependencyNotFoundError: If the interface is not registered
        """
        with self._lock:
            # Overrides first (for testing)
            if interface in self._overrides:
                return self._overrides[interface]

            if interface in self._singletons:
                return self._singletons[interface]

            if interface in self._lazy:
                lazy_factory = self._lazy[interface]
            elif interface in self._transients:
                lazy_factory = None
                factory = self._transients[interface]
            else:
                raise DependencyNotFoundError(
                    f"No registration found for type: {interface.__name__}"
                )

        # Factories run outside the lock so they may resolve other dependencies
        if lazy_factory is None:
            return factory()

        instance = lazy_factory()
        with self._lock:
            # First builder wins if two threads raced
            instance = self._singletons.setdefault(interface, instance)
            self._lazy.pop(interface, None)
        logger.debug(f"Built lazy singleton: {interface.__name__}")
        return instance

    def override(self, interface: Type[T], implementation: T) -> None:
        """
        Override a registered service (primarily for testing).

        Overrides take precedence over both singleton and transient registrations.
        """
        with self._lock:
            self._overrides[interface] = implementation
            logger.debug(f"Overridden: {interface.__name__}")

    def clear_overrides(self) -> None:
        with self._lock:
            self._overrides.clear()
            logger.debug("Cleared all overrides")

    def is_registered(self, interface: Type) -> bool:
        """
        Check if an interface is registered.

        Returns:
            True if registered (singleton, transient, or override)
        """
        with self._lock:
            return (
                interface in self._singletons
                or interface in self._transients
                or interface in self._lazy
                or interface in self._overrides
            )

    def get_registration_type(self, interface: Type) -> str:
        """
        Get the registration type for an interface.

        Returns:
            'singleton', 'transient', 'override', or 'not_registered'
        """
        with self._lock:
            if interface in self._overrides:
                return "override"
            if interface in self._singletons or interface in self._lazy:
                return "singleton"
            if interface in self._transients:
                return "transient"
            return "not_registered"

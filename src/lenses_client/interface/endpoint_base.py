# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base class for endpoint introspection and command dispatch.

This module provides the foundation for automatic CLI generation from
endpoint classes via method introspection. Each endpoint wraps one REST
area of the Lenses box and issues its calls through the parent's
connected LensesClient.

Components:
    BaseEndpoint: Base class with introspection capabilities.
    EndpointManager: Discovery and instantiation of endpoints.

Example:
    Define an endpoint::

        from lenses_client.interface.endpoint_base import BaseEndpoint

        class TopicsEndpoint(BaseEndpoint):
            name = "topics"

            async def list(self) -> list[dict]:
                \"\"\"List all topics.\"\"\"
                return await self.client.read_json("GET", "api/topics")

            async def live(self) -> AsyncIterator[dict]:
                \"\"\"Streaming methods are async generators.\"\"\"
                ...

Note:
    Use EndpointManager.discover() to scan entity packages and instantiate
    endpoint classes bound to the LensesBase instance.
"""

from __future__ import annotations

import importlib
import inspect
import pkgutil
import types
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Union, get_args, get_origin, get_type_hints

from pydantic import create_model

from ..errors import LensesError

if TYPE_CHECKING:
    from ..client import LensesClient
    from ..lenses_base import LensesBase


class BaseEndpoint:
    """Base class for all endpoints with introspection capabilities.

    Provides method discovery and Pydantic model generation from
    signatures for automatic CLI generation.

    Attributes:
        name: Endpoint name used for CLI groups and registry keys.
        parent: LensesBase instance owning the connection.

    Example:
        ::

            class LogsEndpoint(BaseEndpoint):
                name = "logs"

                async def info(self) -> list[dict]:
                    return await self.client.read_json("GET", "api/logs/INFO")

            endpoint = LogsEndpoint(lenses)
            async with lenses.session():
                lines = await endpoint.info()
    """

    name: str = ""

    def __init__(self, parent: LensesBase):
        """Initialize endpoint with a reference to the owning LensesBase.

        Args:
            parent: Object exposing the connected client as ``client``.
        """
        self.parent = parent

    @property
    def client(self) -> LensesClient:
        """Connected client of the parent.

        Raises:
            LensesError: If the parent is not connected.
        """
        client = getattr(self.parent, "client", None)
        if client is None:
            raise LensesError("client: not connected, use connect() or session() first")
        return client

    # =========================================================================
    # Introspection methods for CLI generation
    # =========================================================================

    # Methods excluded from CLI generation (internal use only)
    _internal_methods = {"invoke", "client", "parent"}

    def get_methods(self) -> list[tuple[str, Callable]]:
        """Return all public async methods for CLI generation.

        Returns:
            List of (method_name, method) tuples for all public coroutine
            and async-generator methods (excluding private and internal ones).
        """
        methods = []
        for method_name in dir(self):
            if method_name.startswith("_"):
                continue
            if method_name in self._internal_methods:
                continue
            method = getattr(self, method_name)
            if not callable(method):
                continue
            if inspect.iscoroutinefunction(method) or inspect.isasyncgenfunction(method):
                methods.append((method_name, method))
        return methods

    def is_streaming(self, method_name: str) -> bool:
        """True when the method is an async generator (SSE-backed)."""
        method = getattr(self, method_name, None)
        return method is not None and inspect.isasyncgenfunction(method)

    def create_request_model(self, method_name: str) -> type:
        """Create Pydantic model from method signature.

        Used by invoke() to validate and coerce raw parameters.

        Args:
            method_name: Name of the method to introspect.

        Returns:
            Dynamically created Pydantic model class.
        """
        method = getattr(self, method_name)
        sig = inspect.signature(method)
        hints = self.get_type_hints(method_name)

        fields = {}
        for param_name, param in sig.parameters.items():
            if param_name == "self":
                continue

            annotation = hints.get(param_name, param.annotation)
            if annotation is inspect.Parameter.empty:
                annotation = Any

            fields[param_name] = self._annotation_to_field(annotation, param.default)

        model_name = f"{method_name.title().replace('_', '')}Request"
        return create_model(model_name, **fields)

    def get_type_hints(self, method_name: str) -> dict[str, Any]:
        """Resolved annotations of a method, empty when they cannot be evaluated."""
        try:
            return get_type_hints(getattr(self, method_name))
        except (NameError, TypeError):
            return {}

    def is_simple_params(self, method_name: str) -> bool:
        """Check if method has only scalar params.

        Args:
            method_name: Name of the method to check.

        Returns:
            False if any parameter is list or dict (including Optional[list]).
        """
        method = getattr(self, method_name)
        hints = self.get_type_hints(method_name)

        sig = inspect.signature(method)
        for param_name, param in sig.parameters.items():
            if param_name == "self":
                continue
            ann = hints.get(param_name, param.annotation)
            if self._is_complex_type(ann):
                return False
        return True

    def _is_complex_type(self, ann: Any) -> bool:
        """Check if annotation is a complex type (list, dict, or contains them)."""
        if ann in (list, dict):
            return True

        origin = get_origin(ann)
        if origin in (list, dict):
            return True

        if origin is Union or origin is types.UnionType:
            for arg in get_args(ann):
                if arg is type(None):
                    continue
                if self._is_complex_type(arg):
                    return True

        return False

    def count_params(self, method_name: str) -> int:
        """Count non-self parameters for a method."""
        method = getattr(self, method_name)
        sig = inspect.signature(method)
        return sum(1 for p in sig.parameters if p != "self")

    def _annotation_to_field(self, annotation: Any, default: Any) -> tuple[Any, Any]:
        """Convert Python annotation to Pydantic field tuple (type, default)."""
        if default is inspect.Parameter.empty:
            return (annotation, ...)  # Required field
        return (annotation, default)

    async def invoke(self, method_name: str, params: dict[str, Any]) -> Any:
        """Validate parameters and call endpoint method.

        Single entry point for the CLI and any other generic channel.
        Validates input with Pydantic before executing the method.

        Args:
            method_name: Name of the method to call.
            params: Raw parameters dict (may contain strings from CLI).

        Returns:
            Method result, or the async iterator of a streaming method.

        Raises:
            ValidationError: If params don't match method signature.
            ValueError: If method not found.
        """
        method = getattr(self, method_name, None)
        if method is None or not callable(method) or method_name.startswith("_"):
            raise ValueError(f"Method '{method_name}' not found on {self.name}")

        model_class = self.create_request_model(method_name)
        validated = model_class.model_validate(params)
        kwargs = {key: getattr(validated, key) for key in model_class.model_fields}

        if self.is_streaming(method_name):
            return method(**kwargs)
        return await method(**kwargs)


class EndpointManager:
    """Manager for endpoint discovery and instantiation.

    Holds reference to the LensesBase instance and manages all endpoint
    instances. Provides dict-like access to endpoints by name.

    Attributes:
        lenses: Parent LensesBase instance.
        _endpoints: Internal dict of endpoint instances.
    """

    def __init__(self, parent: LensesBase):
        """Initialize manager with a LensesBase reference.

        Args:
            parent: LensesBase instance passed to every endpoint.
        """
        self.lenses = parent
        self._endpoints: dict[str, BaseEndpoint] = {}

    def discover(self, *packages: str) -> list[BaseEndpoint]:
        """Discover and instantiate endpoints from entity packages.

        Every ``<package>.<entity>.endpoint`` module is imported and its
        class ending in ``Endpoint`` is instantiated with the parent.

        Args:
            *packages: Packages to scan for endpoints.

        Returns:
            List of instantiated endpoint instances.
        """
        for package in packages:
            for module in self._find_entity_modules(package, "endpoint").values():
                endpoint_class = self._get_class_from_module(module, "Endpoint")
                if not endpoint_class:
                    continue
                self._endpoints[endpoint_class.name] = endpoint_class(self.lenses)

        return list(self._endpoints.values())

    def _find_entity_modules(self, base_package: str | None, module_name: str) -> dict[str, Any]:
        """Find entity modules in a package."""
        result: dict[str, Any] = {}
        if not base_package:
            return result
        try:
            package = importlib.import_module(base_package)
        except ModuleNotFoundError:
            return result

        package_path = getattr(package, "__path__", None)
        if not package_path:
            return result

        for _, name, is_pkg in pkgutil.iter_modules(package_path):
            if not is_pkg:
                continue
            full_module_name = f"{base_package}.{name}.{module_name}"
            try:
                module = importlib.import_module(full_module_name)
            except ModuleNotFoundError as e:
                if e.name != full_module_name:
                    raise
                continue
            result[name] = module
        return result

    def _get_class_from_module(self, module: Any, class_suffix: str) -> type | None:
        """Extract a class from module by suffix pattern."""
        for attr_name in dir(module):
            if attr_name.startswith("_"):
                continue
            obj = getattr(module, attr_name)
            if isinstance(obj, type) and attr_name.endswith(class_suffix):
                if attr_name in ("BaseEndpoint", "Endpoint"):
                    continue
                if not getattr(obj, "name", ""):
                    continue
                return obj
        return None

    def __getitem__(self, name: str) -> BaseEndpoint:
        """Get endpoint by name."""
        if name not in self._endpoints:
            raise KeyError(f"Endpoint '{name}' not found")
        return self._endpoints[name]

    def __contains__(self, name: str) -> bool:
        """Check if endpoint exists."""
        return name in self._endpoints

    def __iter__(self):
        """Iterate over endpoint names."""
        return iter(self._endpoints)

    def __len__(self) -> int:
        return len(self._endpoints)

    def values(self):
        """Return endpoint instances."""
        return self._endpoints.values()

    def items(self):
        """Return (name, endpoint) pairs."""
        return self._endpoints.items()


__all__ = ["BaseEndpoint", "EndpointManager"]

"""
Orchestration Layer Base Classes.

The orchestration layer wires together all components:
- Domain services for business logic
- Repositories for data access
- Session management for state

The ToolRegistry is the operation table: each entry maps an operation name
to its handler and the pydantic model its arguments must satisfy.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Type

from pydantic import BaseModel

logger = logging.getLogger(__name__)


@dataclass
class ToolDefinition:
    """
    Definition of an operation the gateway can dispatch.

    Wraps a handler with metadata for registration.
    """
    name: str
    description: str
    function: Callable
    arguments_model: Type[BaseModel]
    category: str = "general"


class ToolRegistry:
    """
    Registry for dispatchable operations.

    Provides a way to organize and register tools by category.
    This makes it easy to:
    - Look up a handler by the name a model emitted
    - Validate arguments against the handler's schema
    - Document available operations
    """

    def __init__(self):
        self._tools: Dict[str, ToolDefinition] = {}
        self._categories: Dict[str, List[str]] = {}

    def register(
        self,
        name: str,
        description: str,
        function: Callable,
        arguments_model: Type[BaseModel],
        category: str = "general",
    ):
        """
        Register a tool.

        Args:
            name: Unique tool name
            description: What the operation does
            function: Handler called with (arguments, session)
            arguments_model: Pydantic model the raw arguments are validated into
            category: Category for organization
        """
        if name in self._tools:
            raise ValueError(f"Tool already registered: {name}")

        self._tools[name] = ToolDefinition(
            name=name,
            description=description,
            function=function,
            arguments_model=arguments_model,
            category=category,
        )

        if category not in self._categories:
            self._categories[category] = []
        self._categories[category].append(name)
        logger.debug(f"Registered tool {name} ({category})")

    def get(self, name: str) -> Optional[ToolDefinition]:
        """Get a tool definition by name."""
        return self._tools.get(name)

    def get_tools(self, categories: Optional[List[str]] = None) -> List[ToolDefinition]:
        """
        Get tool definitions, optionally filtered by category.

        Args:
            categories: Optional list of categories to include

        Returns:
            List of tool definitions
        """
        if categories is None:
            return list(self._tools.values())

        tools = []
        for cat in categories:
            for name in self._categories.get(cat, []):
                if name in self._tools:
                    tools.append(self._tools[name])
        return tools

    def argument_models(self) -> Dict[str, Type[BaseModel]]:
        """Map of tool name to argument model."""
        return {name: tool.arguments_model for name, tool in self._tools.items()}

    def get_tool_names(self) -> List[str]:
        """Get all registered tool names."""
        return list(self._tools.keys())

    def get_categories(self) -> List[str]:
        """Get all categories."""
        return list(self._categories.keys())

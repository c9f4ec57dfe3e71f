"""
Use Cases Package.

Each use case is a self-contained module with its own domain rules,
data access and orchestration.

Available use cases:
- clinic: Dental appointment booking driven by model-emitted action tokens

Architecture:
Each use case follows the layered architecture pattern defined in core/:
- domain/: Pure business logic (policies, repositories, errors)
- data/: Document stores and the unit of work
- gateway.py: Operation dispatch built on core.orchestration.ToolRegistry
"""

from use_cases.clinic import ActionDispatchGateway, create_gateway

__all__ = [
    "ActionDispatchGateway",
    "create_gateway",
]

"""
Adapter Registry.

Central registry for CLI adapters. Maps CLI names to adapter classes.
Uses the @cli_adapter decorator for registration.
"""

from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from agent_cli_sdk.errors import ValidationError

# Global registry of all CLI adapter classes
CLI_ADAPTER_REGISTRY: Dict[str, Type[Any]] = {}

T = TypeVar("T")


def cli_adapter(name: str) -> Callable[[Type[T]], Type[T]]:
    """
    Decorator that registers a CLI adapter class.

    Usage:
        @cli_adapter("codex")
        class CodexAdapter(BaseCLIAdapter):
            cli_name = "codex"

            def build_invocation_args(self, prompt, options, existing_session_id=None):
                return ["exec", "--json", prompt]

    Adapters hold per-instance defaults, so the class is registered and
    instances are made on demand by create_adapter().
    """

    def decorator(cls: Type[T]) -> Type[T]:
        cls.name = name  # type: ignore[attr-defined]
        CLI_ADAPTER_REGISTRY[name] = cls
        return cls

    return decorator


def get_adapter_class(cli_name: str) -> Optional[Type[Any]]:
    """
    Get an adapter class by name.

    Args:
        cli_name: The CLI identifier (e.g., "claude", "gemini", "codex")

    Returns:
        The adapter class, or None if not found
    """
    return CLI_ADAPTER_REGISTRY.get(cli_name)


def create_adapter(cli_name: str, **config: Any) -> Any:
    """
    Instantiate a registered adapter.

    Args:
        cli_name: The CLI identifier
        **config: Passed to the adapter constructor (cli_path, defaults, ...)

    Raises:
        ValidationError: No adapter is registered under ``cli_name``
    """
    adapter_cls = get_adapter_class(cli_name)
    if adapter_cls is None:
        available = ", ".join(sorted(CLI_ADAPTER_REGISTRY)) or "none"
        raise ValidationError(
            f"Unknown adapter '{cli_name}'. Available adapters: {available}"
        )
    return adapter_cls(**config)


def list_adapters() -> List[str]:
    """
    List all registered adapter names.

    Returns:
        List of adapter names
    """
    return list(CLI_ADAPTER_REGISTRY.keys())

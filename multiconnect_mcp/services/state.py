"""Process-level dependency container used by tools and resources."""

from multiconnect_mcp.dependencies import Dependencies

# Global state (initialized on first access)
_deps: Dependencies | None = None


def get_deps() -> Dependencies:
    """Get or create the dependency container."""
    global _deps
    if _deps is None:
        _deps = Dependencies.create()
    return _deps


def set_deps(deps: Dependencies) -> None:
    """Set the global dependency container.

    Allows the server lifespan and tests to inject a container.

    Args:
        deps: Dependencies instance to use globally.
    """
    global _deps
    _deps = deps


def reset_state() -> None:
    """Reset global state for testing.

    Clears the container so the next access builds a fresh one. Should
    only be used in test fixtures.
    """
    global _deps
    _deps = None

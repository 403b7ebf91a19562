"""Router configuration.

One frozen dataclass carries every knob the router reads, so a table's
behavior is fixed once the ``Router`` is built.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Router configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(basepath="/app", strict_generation=True)
    """

    # Prefix stripped from request paths and prepended to generated paths
    basepath: str = ""

    # Raise on unresolved required tokens instead of leaving them literal
    strict_generation: bool = False

    # Method assumed when a request carries none
    default_method: str = "GET"

    # Logging
    logger_name: str = "routemap"

    def __post_init__(self) -> None:
        # "/app/" and "/app" are the same prefix
        object.__setattr__(self, "basepath", self.basepath.rstrip("/"))

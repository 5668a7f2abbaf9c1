from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from wfcmaze import config
from wfcmaze.types import FloatRange

if TYPE_CHECKING:
    from wfcmaze.environment.generators.maze import MazeGenerator
    from wfcmaze.util.throttle import Throttle


@dataclass
class LiveVariable:
    """A setting exposed for live inspection and modification."""

    name: str
    description: str
    getter: Callable[[], Any]
    setter: Callable[[Any], None] | None = None
    formatter: Callable[[Any], str] | None = None
    value_range: FloatRange | None = None

    def get_value(self) -> Any:
        """Return the current value using the getter."""
        return self.getter()

    def set_value(self, value: Any) -> bool:
        """Set the variable if writable.

        Returns ``True`` if the variable was set, or ``False`` if read-only.
        """
        if self.setter is None:
            return False
        self.setter(value)
        return True

    def format_value(self) -> str:
        value = self.get_value()
        if self.formatter is not None:
            return self.formatter(value)
        return str(value)

    def supports_slider(self) -> bool:
        """Return ``True`` when this variable can be controlled by a slider."""
        return self.setter is not None and self.value_range is not None


class LiveVariableRegistry:
    """Registry for all ``LiveVariable`` instances."""

    def __init__(self) -> None:
        self._variables: dict[str, LiveVariable] = {}

    def register(
        self,
        name: str,
        getter: Callable[[], Any],
        setter: Callable[[Any], None] | None = None,
        *,
        description: str = "",
        formatter: Callable[[Any], str] | None = None,
        value_range: FloatRange | None = None,
    ) -> LiveVariable:
        """Register a new live variable."""
        if name in self._variables:
            raise ValueError(f"Live variable '{name}' already registered")
        variable = LiveVariable(
            name=name,
            description=description,
            getter=getter,
            setter=setter,
            formatter=formatter,
            value_range=value_range,
        )
        self._variables[name] = variable
        return variable

    def unregister(self, name: str) -> None:
        self._variables.pop(name, None)

    def get_variable(self, name: str) -> LiveVariable | None:
        """Retrieve a registered ``LiveVariable`` by name."""
        return self._variables.get(name)

    def get_all_variables(self) -> list[LiveVariable]:
        """Return all registered variables sorted by name."""
        return sorted(self._variables.values(), key=lambda v: v.name)

    def set_value(self, name: str, value: Any) -> bool:
        """Set a registered variable by name.

        Raises:
            KeyError: If ``name`` is not registered.
        """
        var = self.get_variable(name)
        if var is None:
            raise KeyError(f"Live variable '{name}' is not registered")
        return var.set_value(value)


# Global registry instance used throughout the application
live_variable_registry = LiveVariableRegistry()


def register_generation_variables(
    maze_generator: MazeGenerator,
    maze_throttle: Throttle,
    map_throttle: Throttle,
    registry: LiveVariableRegistry = live_variable_registry,
) -> None:
    """Expose the tunable generation settings so a host UI can bind sliders.

    Setting ``generation.animation_speed`` re-paces both throttles; the change
    takes effect at each task's next yield point.
    """
    speed = {"value": float(config.DEFAULT_ANIMATION_SPEED)}

    def set_animation_speed(value: float) -> None:
        speed["value"] = float(value)
        maze_throttle.set_animation_speed(speed["value"])
        map_throttle.set_animation_speed(speed["value"])

    def set_path_percentage(value: float) -> None:
        maze_generator.path_percentage = value

    def set_wall_removal_percentage(value: float) -> None:
        maze_generator.wall_removal_percentage = value

    registry.register(
        "generation.animation_speed",
        getter=lambda: speed["value"],
        setter=set_animation_speed,
        description="Animation speed (1 = slowest, 1000 = fastest)",
        value_range=config.ANIMATION_SPEED_RANGE,
    )
    registry.register(
        "generation.delay_per_step_ms",
        getter=lambda: map_throttle.delay_per_step_ms,
        description="Current per-step delay of the map throttle",
        formatter=lambda v: f"{v:.3f}ms",
    )
    registry.register(
        "maze.path_percentage",
        getter=lambda: maze_generator.path_percentage,
        setter=set_path_percentage,
        description="Fraction of the grid carved into the maze",
        value_range=(0.0, 1.0),
    )
    registry.register(
        "maze.wall_removal_percentage",
        getter=lambda: maze_generator.wall_removal_percentage,
        setter=set_wall_removal_percentage,
        description="Chance of opening each closed wall between maze cells",
        value_range=(0.0, 1.0),
    )

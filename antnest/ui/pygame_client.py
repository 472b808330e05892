"""Pygame 2D visualization for the antnest simulation.

Renders soil, food, the nest, eggs, ants, and invaders in a window.
The renderer only reads engine state and issues engine commands; the
simulation advances by the wall-clock time between frames, scaled by
the engine's speed multiplier.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

import numpy as np
import pygame

from antnest.colony.ant import AntState, StructureKind
from antnest.disasters.state import DisasterType
from antnest.simulation.clock import SimulationClock
from antnest.simulation.persistence import PersistenceError

if TYPE_CHECKING:
    from antnest.simulation.engine import SimulationEngine
    from antnest.world.position import Position

logger = logging.getLogger(__name__)

# Colour palette
_BG = (30, 20, 10)
_PANEL_TEXT = (200, 200, 200)
_TUNNEL = (90, 70, 45)
_CHAMBER = (120, 90, 55)
_EGG = (240, 235, 210)
_QUEEN = (220, 60, 200)
_INVASIVE = (230, 40, 40)
_FOOD_EMPTY = (60, 50, 30)

# Ant colours by behaviour state
_ANT_COLOURS: dict[AntState, tuple[int, int, int]] = {
    AntState.FORAGING: (100, 200, 100),
    AntState.CARRYING_FOOD: (255, 200, 50),
    AntState.RETURNING: (100, 150, 255),
    AntState.RESTING: (180, 180, 180),
    AntState.DIGGING: (170, 120, 70),
}

# Food colour range (dark green -> bright green)
_FOOD_LO = np.array([20, 60, 10], dtype=np.float64)
_FOOD_HI = np.array([50, 200, 30], dtype=np.float64)

# Soil colour range (dry -> wet)
_SOIL_DRY = np.array([60, 45, 25], dtype=np.float64)
_SOIL_WET = np.array([35, 30, 45], dtype=np.float64)

_DISASTER_KEYS: dict[int, DisasterType] = {
    pygame.K_r: DisasterType.RAIN,
    pygame.K_d: DisasterType.DROUGHT,
    pygame.K_c: DisasterType.COLD_SNAP,
    pygame.K_i: DisasterType.INVASIVE_SPECIES,
}

_DIGIT_KEYS = (
    pygame.K_1,
    pygame.K_2,
    pygame.K_3,
    pygame.K_4,
    pygame.K_5,
    pygame.K_6,
    pygame.K_7,
    pygame.K_8,
    pygame.K_9,
)


class PygameRenderer:
    """Renders a SimulationEngine state into a Pygame window.

    Attributes:
        engine: The simulation engine to visualise.
        scale: Pixels per world unit.
        save_path: Where Ctrl+S saves and Ctrl+L loads.
        screen: The Pygame display surface.
    """

    # Speed preset for each digit key; 0 and 1 both mean real time
    _DIGIT_SPEEDS: ClassVar[dict[int, float]] = {
        pygame.K_0: SimulationClock.SPEED_PRESETS[0],
        **dict(zip(_DIGIT_KEYS, SimulationClock.SPEED_PRESETS)),
    }

    def __init__(
        self,
        engine: SimulationEngine,
        scale: float = 1.0,
        save_path: str | Path = "saves/auto_save.yaml",
    ) -> None:
        """Initialise the renderer.

        Args:
            engine: The simulation engine to render.
            scale: Pixels per world unit.
            save_path: Save file used by the quick save/load keys.
        """
        self.engine = engine
        self.scale = scale
        self.save_path = Path(save_path)

        cfg = engine.config
        self._origin = cfg.world_min
        w = int((cfg.world_max[0] - cfg.world_min[0]) * scale)
        h = int((cfg.world_max[1] - cfg.world_min[1]) * scale)
        self._view_w = w
        self._panel_width = 240
        self._win_w = w + self._panel_width
        self._win_h = h

        pygame.init()
        self.screen = pygame.display.set_mode((self._win_w, self._win_h))
        pygame.display.set_caption("antnest")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("monospace", 14)
        self.running = True

    def run(self, fps: int = 30) -> None:
        """Main loop: handle events, step sim, render.

        Args:
            fps: Target frames per second.
        """
        while self.running:
            wall_dt = self.clock.tick(fps) / 1000.0  # seconds elapsed
            self._handle_events()
            self.engine.step(wall_dt)
            self._draw()

        pygame.quit()

    def _handle_events(self) -> None:
        """Process Pygame input events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                self._handle_key(event.key, event.mod)

    def _handle_key(self, key: int, mod: int = 0) -> None:
        """Translate one key press into an engine command."""
        ctrl = bool(mod & pygame.KMOD_CTRL)
        if key == pygame.K_ESCAPE:
            self.running = False
        elif key == pygame.K_SPACE:
            self.engine.toggle_pause()
        elif ctrl and key == pygame.K_s:
            self._quick_save()
        elif ctrl and key == pygame.K_l:
            self._quick_load()
        elif key in self._DIGIT_SPEEDS:
            self.engine.set_speed_multiplier(self._DIGIT_SPEEDS[key])
        elif key in _DISASTER_KEYS:
            self.engine.trigger_disaster(_DISASTER_KEYS[key])

    def _quick_save(self) -> None:
        try:
            self.engine.save(self.save_path)
        except PersistenceError as exc:
            logger.warning("Save failed: %s", exc)

    def _quick_load(self) -> None:
        try:
            self.engine.load(self.save_path)
        except PersistenceError as exc:
            logger.warning("Load failed: %s", exc)

    def to_screen(self, position: Position) -> tuple[int, int]:
        """Map a world position to window pixels."""
        return (
            int((position.x - self._origin[0]) * self.scale),
            int((position.y - self._origin[1]) * self.scale),
        )

    def _draw(self) -> None:
        """Render one frame."""
        self.screen.fill(_BG)
        self._draw_soil()
        self._draw_nest()
        self._draw_food()
        self._draw_eggs()
        self._draw_ants()
        self._draw_invasive()
        self._draw_info_panel()
        pygame.display.flip()

    def _draw_soil(self) -> None:
        """Draw soil samples shaded by moisture."""
        size = max(1, int(self.engine.config.soil_spacing * self.scale))
        for soil in self.engine.registry.soil_cells.values():
            colour = _SOIL_DRY + soil.moisture * (_SOIL_WET - _SOIL_DRY)
            x, y = self.to_screen(soil.position)
            pygame.draw.rect(
                self.screen,
                colour.astype(int).tolist(),
                (x - size // 2, y - size // 2, size, size),
            )

    def _draw_nest(self) -> None:
        for structure in self.engine.registry.structures.values():
            colour = _CHAMBER if structure.kind is StructureKind.CHAMBER else _TUNNEL
            radius = 6 if structure.kind is StructureKind.CHAMBER else 3
            pygame.draw.circle(
                self.screen,
                colour,
                self.to_screen(structure.position),
                max(2, int(radius * self.scale)),
            )

    def _draw_food(self) -> None:
        """Draw food as green squares scaled by nutrition."""
        size = max(3, int(4 * self.scale))
        for food in self.engine.registry.food_sources.values():
            x, y = self.to_screen(food.position)
            if food.is_available and food.max_nutrition > 0:
                t = min(food.nutrition_value / food.max_nutrition, 1.0)
                colour = (_FOOD_LO + t * (_FOOD_HI - _FOOD_LO)).astype(int).tolist()
            else:
                colour = _FOOD_EMPTY
            pygame.draw.rect(
                self.screen,
                colour,
                (x - size // 2, y - size // 2, size, size),
            )

    def _draw_eggs(self) -> None:
        for egg in self.engine.registry.eggs.values():
            pygame.draw.circle(self.screen, _EGG, self.to_screen(egg.position), 2)

    def _draw_ants(self) -> None:
        """Draw each ant as a small coloured dot."""
        radius = max(2, int(2 * self.scale))
        for ant in self.engine.registry.ants.values():
            if ant.is_queen:
                pygame.draw.circle(
                    self.screen,
                    _QUEEN,
                    self.to_screen(ant.position),
                    radius * 2,
                )
                continue
            colour = _ANT_COLOURS.get(ant.state, (200, 200, 200))
            pygame.draw.circle(self.screen, colour, self.to_screen(ant.position), radius)

    def _draw_invasive(self) -> None:
        radius = max(3, int(3 * self.scale))
        for invader in self.engine.registry.invasive.values():
            pygame.draw.circle(
                self.screen,
                _INVASIVE,
                self.to_screen(invader.position),
                radius,
            )

    def _draw_info_panel(self) -> None:
        """Draw a stats panel on the right side of the window."""
        panel_x = self._view_w + 10
        y = 10
        self.screen.fill((20, 15, 8), (self._view_w, 0, self._panel_width, self._win_h))

        engine = self.engine
        clock = engine.clock
        stats = engine.statistics()
        period = "day" if clock.is_daytime else "night"
        lines = [
            f"Day {clock.current_day + 1}  Tick {engine.tick}",
            f"Time: {clock.time_of_day * 24:04.1f}h ({period})",
            f"Speed: {clock.speed_multiplier:.0f}x",
            f"{'PAUSED' if clock.is_paused else 'RUNNING'}",
            "",
            "--- Colony ---",
            f"Phase: {stats.phase}",
            f"Progress: {stats.phase_progress:.0%}",
            f"Workers: {stats.worker_count}",
            f"Queen: {'yes' if stats.queen_count else 'none'}",
            f"Eggs: {stats.egg_count}",
            f"Nest: {stats.nest_structures}",
            f"Store: {stats.food_store:.1f}",
            f"Energy: {stats.average_energy:.1f}",
            "",
        ]
        for state_name, count in sorted(stats.state_counts.items()):
            lines.append(f"  {state_name}: {count}")

        lines += ["", "--- Disasters ---"]
        for kind in DisasterType:
            if engine.disasters.is_active(kind):
                status = f"{engine.disasters.remaining(kind):.0f}s"
            elif engine.disasters.is_on_cooldown(kind):
                status = f"cooldown {engine.disasters.cooldown(kind):.0f}s"
            else:
                status = "ready"
            lines.append(f"{kind.display_name}: {status}")

        lines += [
            "",
            "--- Controls ---",
            "SPACE: pause",
            "0-9: speed",
            "R/D/C/I: disasters",
            "Ctrl+S/L: save/load",
            "ESC: quit",
        ]

        for line in lines:
            surf = self.font.render(line, True, _PANEL_TEXT)
            self.screen.blit(surf, (panel_x, y))
            y += 18

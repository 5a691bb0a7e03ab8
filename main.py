# main.py
"""
Main entry point for the simulation showcase.

This script orchestrates the whole lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Opens the Pygame window and attaches the selected simulation.
4. Runs the frame loop: events, one tick, one render, throttled logging.
5. Handles clean shutdown.

Keys: 1-4 switch simulation, R resets, Up/Down change the pairing
temperature, O cycles the orbital, holding a mouse button observes the
orbital cloud, ESC quits.
"""
import cProfile
import io
import logging
import pstats
from typing import Any, Dict, Optional

import numpy as np
import pygame

import constants
from simulation import OrbitalSession, SimulationSession, create_session
from utils import load_config, run_settings, setup_logging

TEMPERATURE_STEP = 0.05
KIND_KEYS = {
    pygame.K_1: "flocking",
    pygame.K_2: "pairing",
    pygame.K_3: "gravity",
    pygame.K_4: "orbitals",
}

# --- Data Contracts ---
#
# class FrameDriver:
#   - attach(kind) closes the current session (if any) and creates a new one
#     sized to the current surface.
#   - handle_event(event) -> bool: False when the host should stop.
#   - step(surface) -> None: one tick and one render of the active session,
#     plus the throttled log line.
#   - detach() closes the active session; safe to call repeatedly.


class FrameDriver:
    """
    Owns the active simulation session and translates host input into
    session calls. Knows nothing about the window itself.
    """
    def __init__(self, config: Dict[str, Any], width: int, height: int,
                 rng: Optional[np.random.Generator] = None):
        self.config = config
        self.width = width
        self.height = height
        self.rng = rng if rng is not None else np.random.default_rng(config.get('seed'))
        self.log_throttle = max(1, int(run_settings(config)['log_throttle_steps']))
        self.session: Optional[SimulationSession] = None
        self.steps = 0

    def attach(self, kind: str) -> SimulationSession:
        self.detach()
        self.session = create_session(kind, self.config, self.width, self.height, self.rng)
        logging.info(f"Attached {kind} simulation.")
        return self.session

    def detach(self) -> None:
        if self.session is not None:
            self.session.close()
            self.session = None

    def resize(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            # A minimised window reports a zero size; keep the last real one.
            logging.debug(f"Ignoring resize to {width}x{height}.")
            return
        self.width, self.height = width, height
        if self.session is not None:
            self.session.resize(width, height)

    def handle_event(self, event) -> bool:
        if event.type == pygame.QUIT:
            logging.info("Quit event received. Shutting down.")
            return False

        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                logging.info("ESC key pressed. Shutting down.")
                return False
            if event.key in KIND_KEYS:
                self.attach(KIND_KEYS[event.key])
            elif event.key == pygame.K_r and self.session is not None:
                self.session.reset()
            elif event.key in (pygame.K_UP, pygame.K_DOWN):
                self._nudge_temperature(TEMPERATURE_STEP if event.key == pygame.K_UP else -TEMPERATURE_STEP)
            elif event.key == pygame.K_o and isinstance(self.session, OrbitalSession):
                orbital = self.session.cycle_orbital()
                logging.info(f"Orbital switched to {orbital}.")

        elif event.type == pygame.VIDEORESIZE:
            self.resize(event.w, event.h)

        elif isinstance(self.session, OrbitalSession):
            if event.type == pygame.MOUSEBUTTONDOWN:
                self.session.observe(self._pointer_offset(event.pos))
            elif event.type == pygame.MOUSEMOTION and self.session.state.observed:
                self.session.observe(self._pointer_offset(event.pos))
            elif event.type == pygame.MOUSEBUTTONUP:
                self.session.observe(None)

        return True

    def _pointer_offset(self, pos):
        return (pos[0] - self.width / 2, pos[1] - self.height / 2)

    def _nudge_temperature(self, delta: float) -> None:
        if self.session is None or self.session.kind != "pairing":
            return
        # Slider range of the host.
        temperature = float(np.clip(self.session.params.temperature + delta, 0.0, 1.0))
        self.session.update_params(temperature=temperature)
        logging.info(f"Pairing temperature set to {temperature:.2f}.")

    def step(self, surface: Optional[pygame.Surface]) -> None:
        if self.session is None:
            return
        self.session.tick()
        self.session.render(surface)
        self.steps += 1

        # Hot loops must throttle logs.
        if self.steps % self.log_throttle == 0:
            metrics = self.session.metrics()
            summary = ", ".join(
                f"{key}={value:.4f}" if isinstance(value, float) else f"{key}={value}"
                for key, value in metrics.items()
            )
            logging.info(f"Frame {self.steps} | {summary}")


def open_window(settings: Dict[str, Any]) -> pygame.Surface:
    pygame.init()
    if settings['fullscreen']:
        display_info = pygame.display.Info()
        size = (display_info.current_w, display_info.current_h)
        screen = pygame.display.set_mode(size, pygame.FULLSCREEN)
    else:
        size = (settings['width'], settings['height'])
        screen = pygame.display.set_mode(size, pygame.RESIZABLE)
    pygame.display.set_caption(constants.WINDOW_TITLE)
    logging.info(f"Pygame display opened ({size[0]}x{size[1]}).")
    return screen


def main():
    """
    The main function to run the showcase.
    """
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config('config.json')
    except (FileNotFoundError, ValueError) as e:
        print(f"FATAL: Could not load config.json. Error: {e}")
        return

    setup_logging(config)
    logging.info("--- Simulation Showcase Starting ---")

    settings = run_settings(config)
    max_steps = int(settings['max_steps'])
    profile = bool(settings['profile'])

    screen = open_window(settings)
    clock = pygame.time.Clock()
    driver = FrameDriver(config, *screen.get_size())
    driver.attach(settings['simulation'])

    profiler = cProfile.Profile()
    if profile:
        profiler.enable()

    running = True
    try:
        while running:
            for event in pygame.event.get():
                if not driver.handle_event(event):
                    running = False
                    break
            if not running:
                break

            screen = pygame.display.get_surface()
            driver.step(screen)
            pygame.display.flip()
            clock.tick(constants.FPS)

            if max_steps and driver.steps >= max_steps:
                logging.info(f"Reached max_steps ({max_steps}). Stopping.")
                running = False
    finally:
        if profile:
            profiler.disable()
        driver.detach()
        pygame.quit()
        logging.info("Frame loop finished.")

    if profile:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Simulation Showcase Shutting Down ---")


if __name__ == "__main__":
    main()

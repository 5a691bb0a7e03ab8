# visualization.py
"""
Renders the simulations onto a Pygame surface.

Every frame goes through the same passes:

1. Fade: a background-coloured layer with a low alpha is blitted over the
   previous frame instead of clearing it, which leaves motion trails. The
   alpha is the trail setting of the simulation (1.0 clears fully).
2. Additive glow: bright primitives are drawn premultiplied on a black
   layer, and pre-rendered glow sprites are blitted with BLEND_RGB_ADD, so
   overlapping particles brighten each other.
3. Normal blending is used again for everything else (pair links and the
   particles of the pairing model).

Renderers only read simulation state. A renderer handed no surface does
nothing, which lets the physics run headless.
"""
import logging
from typing import Dict, Optional, Tuple

import numpy as np
import pygame

import constants
import orbitals
from parameters import FlockingParams, GravityParams, OrbitalParams, PairingParams
from particle import FlockingParticles, GravityField, OrbitalCloud, PairingParticles

# --- Data Contracts ---
#
# class Renderer:
#   - draw(surface: Optional[pygame.Surface], state, params) -> bool
#     - Inputs:
#       - surface: the target surface, or None when no drawing context exists.
#       - state: the entity store of the matching simulation.
#       - params: the parameter record of the matching simulation.
#     - Outputs: True if something was drawn, False for the no-op path.
#     - Side Effects: draws into surface only; state is never mutated.
#   - close() releases the cached layers and sprites. A closed renderer
#     re-creates them lazily if it is drawn again.

Color = Tuple[int, int, int]


def premultiply(color: Color, alpha: float) -> Color:
    """Scales an RGB colour by alpha, for drawing on an additive layer."""
    alpha = min(max(alpha, 0.0), 1.0)
    return (int(color[0] * alpha), int(color[1] * alpha), int(color[2] * alpha))


class Renderer:
    """
    Shared frame plumbing: the fade layer, the additive layer and the
    glow-sprite cache.
    """
    background: Color = (0, 0, 0)

    def __init__(self):
        self._layers: Dict[str, pygame.Surface] = {}
        self._glow_sprites: Dict[Tuple[Color, int], pygame.Surface] = {}
        self.frame = 0
        logging.debug(f"{type(self).__name__} created.")

    def draw(self, surface: Optional[pygame.Surface], state, params) -> bool:
        if surface is None:
            return False
        self._fade(surface, self.fade_alpha(params))
        self._draw(surface, state, params)
        self.frame += 1
        return True

    def fade_alpha(self, params) -> float:
        return 1.0

    def _draw(self, surface: pygame.Surface, state, params) -> None:
        raise NotImplementedError

    def _layer(self, name: str, size: Tuple[int, int], flags: int = 0) -> pygame.Surface:
        layer = self._layers.get(name)
        if layer is None or layer.get_size() != size:
            layer = pygame.Surface(size, flags)
            self._layers[name] = layer
        return layer

    def _fade(self, surface: pygame.Surface, alpha: float) -> None:
        if alpha >= 1.0:
            surface.fill(self.background)
            return
        fade_layer = self._layer("fade", surface.get_size(), pygame.SRCALPHA)
        fade_layer.fill((*self.background, int(255 * max(alpha, 0.0))))
        surface.blit(fade_layer, (0, 0))

    def _additive_layer(self, surface: pygame.Surface) -> pygame.Surface:
        layer = self._layer("additive", surface.get_size())
        layer.fill((0, 0, 0))
        return layer

    def _blit_additive(self, surface: pygame.Surface, layer: pygame.Surface) -> None:
        surface.blit(layer, (0, 0), special_flags=pygame.BLEND_RGB_ADD)

    def _pre_render_glow(self, color: Color, radius: int, intensity: float = 1.0) -> pygame.Surface:
        """
        Returns a cached radial glow sprite of the given radius, bright in
        the middle and black at the rim, meant to be added onto a frame.
        """
        radius = max(1, int(radius))
        key = (premultiply(color, intensity), radius)
        sprite = self._glow_sprites.get(key)
        if sprite is None:
            sprite = pygame.Surface((radius * 2, radius * 2))
            sprite.fill((0, 0, 0))
            for r in range(radius, 0, -1):
                falloff = (1.0 - r / (radius + 1)) ** 2
                pygame.draw.circle(sprite, premultiply(key[0], falloff), (radius, radius), r)
            self._glow_sprites[key] = sprite
        return sprite

    def _blit_glow(self, surface: pygame.Surface, sprite: pygame.Surface,
                   center: Tuple[float, float]) -> None:
        radius = sprite.get_width() // 2
        surface.blit(
            sprite, (int(center[0]) - radius, int(center[1]) - radius),
            special_flags=pygame.BLEND_RGB_ADD
        )

    def close(self) -> None:
        self._layers.clear()
        self._glow_sprites.clear()
        logging.debug(f"{type(self).__name__} released its surfaces.")


class FlockRenderer(Renderer):
    """Boids as heading-aligned segments with glowing heads."""
    background = constants.FLOCK_BACKGROUND

    def fade_alpha(self, params: FlockingParams) -> float:
        return params.trail_length

    def _draw(self, surface: pygame.Surface, particles: FlockingParticles,
              params: FlockingParams) -> None:
        if particles.count == 0:
            return
        speeds = particles.speeds()
        headings = np.zeros_like(particles.velocities)
        moving = speeds > 0
        headings[moving] = particles.velocities[moving] / speeds[moving, np.newaxis]
        offsets = headings * constants.FLOCK_SEGMENT_HALF_LENGTH
        tails = particles.positions - offsets
        heads = particles.positions + offsets

        # Body pass: dim segments.
        layer = self._additive_layer(surface)
        body_color = premultiply(constants.FLOCK_COLOR, constants.FLOCK_BODY_ALPHA)
        for tail, head in zip(tails, heads):
            pygame.draw.line(layer, body_color, tail, head, 1)
        self._blit_additive(surface, layer)

        # Head pass: bright glow on top.
        sprite = self._pre_render_glow(
            constants.FLOCK_COLOR, constants.FLOCK_HEAD_RADIUS * constants.GLOW_RATIO
        )
        for head in heads:
            self._blit_glow(surface, sprite, head)


class PairRenderer(Renderer):
    """Cooper pairs: links first, then the electrons on top of them."""
    background = constants.PAIRING_BACKGROUND

    def _draw(self, surface: pygame.Surface, particles: PairingParticles,
              params: PairingParams) -> None:
        if particles.count == 0:
            return
        width, height = surface.get_size()
        overlay = self._layer("overlay", (width, height), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 0))

        # Links, each drawn once from its lower index.
        link_opacity = 0.15 + (1.0 - params.temperature) * 0.2
        link_color = (*constants.PAIR_LINK_COLOR, int(255 * min(max(link_opacity, 0.0), 1.0)))
        positions = particles.positions
        for i in np.flatnonzero(particles.partners > particles.ids):
            j = particles.partners[i]
            dx = abs(positions[i, 0] - positions[j, 0])
            dy = abs(positions[i, 1] - positions[j, 1])
            # Pairs split across the wrap seam would streak over the screen.
            if dx > width / 2 or dy > height / 2:
                continue
            pygame.draw.line(overlay, link_color, positions[i], positions[j], 1)

        shimmer = 0.4 + 0.1 * (np.sin(self.frame * 0.1 + particles.color_offsets * 2.0 * np.pi) + 1.0) / 2.0
        unpaired_color = (*constants.UNPAIRED_COLOR, int(255 * constants.UNPAIRED_ALPHA))
        for i in range(particles.count):
            center = (int(positions[i, 0]), int(positions[i, 1]))
            if particles.partners[i] >= 0:
                color = (*constants.PAIRED_COLOR, int(255 * shimmer[i]))
                pygame.draw.circle(overlay, color, center, 2)
            else:
                pygame.draw.circle(overlay, unpaired_color, center, 1)

        surface.blit(overlay, (0, 0))


class GravityRenderer(Renderer):
    """Comets with fading trails around a glowing central mass."""
    background = constants.GRAVITY_BACKGROUND

    def fade_alpha(self, params: GravityParams) -> float:
        return params.trail_fade

    @staticmethod
    def world_to_screen(size: Tuple[int, int], params: GravityParams):
        """Returns (center, pixels_per_unit) so the outer boundary fills the view."""
        width, height = size
        scale = constants.GRAVITY_VIEW_FILL * min(width, height) / 2.0 / params.max_radius
        return np.array([width / 2.0, height / 2.0]), scale

    def _draw(self, surface: pygame.Surface, field: GravityField,
              params: GravityParams) -> None:
        center, scale = self.world_to_screen(surface.get_size(), params)

        layer = self._additive_layer(surface)
        for body in field.bodies:
            trail = list(body.trail)
            for k in range(1, len(trail)):
                # Older segments are dimmer.
                brightness = 0.6 * k / len(trail)
                start = center + np.asarray(trail[k - 1]) * scale
                end = center + np.asarray(trail[k]) * scale
                pygame.draw.line(layer, premultiply(body.color, brightness), start, end, 1)
        self._blit_additive(surface, layer)

        central_radius = max(2, int(0.6 * scale))
        self._blit_glow(
            surface,
            self._pre_render_glow(field.central.color, central_radius * constants.GLOW_RATIO, 0.8),
            center
        )
        pygame.draw.circle(surface, field.central.color, center, central_radius)

        for body in field.bodies:
            point = center + body.position * scale
            radius = max(1, int(1.0 + body.mass))
            self._blit_glow(
                surface, self._pre_render_glow(body.color, radius * constants.GLOW_RATIO, 0.5), point
            )
            pygame.draw.circle(surface, body.color, point, radius)


class OrbitalRenderer(Renderer):
    """The twinkling probability cloud, or the collapsed electron when observed."""
    background = constants.ORBITAL_BACKGROUND

    def _draw(self, surface: pygame.Surface, cloud: OrbitalCloud,
              params: OrbitalParams) -> None:
        width, height = surface.get_size()
        center = (width / 2.0, height / 2.0)

        if cloud.observed:
            self._draw_electron(surface, cloud, center)
        else:
            self._draw_cloud(surface, cloud, params, center)

        self._blit_glow(surface, self._pre_render_glow(constants.NUCLEUS_COLOR, 30, 0.2), center)
        pygame.draw.circle(surface, (255, 255, 255), (int(center[0]), int(center[1])), 4)

    def _draw_cloud(self, surface, cloud, params, center) -> None:
        if cloud.count == 0:
            return
        screen, scale, visible = orbitals.project_points(
            orbitals.animated_positions(cloud, params), cloud.rotation, center
        )
        opacity = orbitals.opacities(cloud)
        shown = np.flatnonzero(visible & (opacity > 0.01))

        layer = self._additive_layer(surface)
        for i in shown:
            radius = max(1, int(round(cloud.sizes[i] * scale[i])))
            pygame.draw.circle(
                layer, premultiply(constants.CLOUD_COLOR, opacity[i]),
                (int(screen[i, 0]), int(screen[i, 1])), radius
            )
        self._blit_additive(surface, layer)

    def _draw_electron(self, surface, cloud, center) -> None:
        trail = list(cloud.electron.trail)
        if not trail:
            return
        screen, scale, visible = orbitals.project_points(np.array(trail), cloud.rotation, center)
        points = [tuple(p) for p in screen[visible]]
        if len(points) > 1:
            layer = self._additive_layer(surface)
            pygame.draw.lines(layer, premultiply(constants.ELECTRON_COLOR, 0.5), False, points, 2)
            self._blit_additive(surface, layer)
        if visible[-1]:
            head = screen[-1]
            self._blit_glow(
                surface,
                self._pre_render_glow(constants.ELECTRON_COLOR, int(10 * scale[-1])),
                head
            )
            pygame.draw.circle(surface, (255, 255, 255), (int(head[0]), int(head[1])),
                               max(1, int(3 * scale[-1])))


RENDERERS = {
    "flocking": FlockRenderer,
    "pairing": PairRenderer,
    "gravity": GravityRenderer,
    "orbitals": OrbitalRenderer,
}

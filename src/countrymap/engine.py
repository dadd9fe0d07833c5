"""Pure map composition engine: boundary feature + neighbors + config -> Scene."""

from __future__ import annotations

import logging
from typing import Sequence

from .classify import classify
from .compose import compose
from .geo import spherical_centroid
from .insets import layout_insets
from .models import (
    MODE_QUIZ,
    VARIANT_DEFAULT,
    VARIANT_ZOOMED_OUT,
    ClassifiedParts,
    CountryFeature,
    RenderConfig,
    RenderPolicy,
    Scene,
    Viewport,
)
from .overrides import CountryOverrides
from .projection import build_projection

_LOGGER = logging.getLogger("countrymap.engine")


class MapEngine:
    """Deterministic composer for one country map.

    The engine keeps only the injected override tables; every call builds its classification,
    projection and layout from scratch, so one instance can serve many workers.
    """

    def __init__(self, overrides: CountryOverrides | None = None) -> None:
        self.overrides = overrides if overrides is not None else CountryOverrides.default()

    def classify(self, feature: CountryFeature) -> ClassifiedParts | None:
        return classify(feature, strip_holes=self.overrides.strips_holes(feature.identifier))

    def resolve_policy(
        self,
        *,
        identifier: str,
        parts: ClassifiedParts,
        config: RenderConfig,
    ) -> RenderPolicy:
        has_insets = self.overrides.allows_insets(identifier) and parts.has_inset_candidates
        quiz = config.mode == MODE_QUIZ
        return RenderPolicy(
            show_insets=quiz and config.variant == VARIANT_DEFAULT and has_insets,
            use_global_zoom=quiz and config.variant == VARIANT_ZOOMED_OUT and not has_insets,
            zoom_multiplier=self.overrides.zoom_multiplier(identifier),
        )

    def render(
        self,
        feature: CountryFeature | None,
        neighbors: Sequence[CountryFeature],
        config: RenderConfig,
        *,
        capital: tuple[float, float] | None = None,
    ) -> Scene | None:
        """Compose the Scene, or None when the country has no usable geometry.

        `capital` is an optional `(lon, lat)` drawn as a dot when it lands in view.
        """
        if feature is None:
            return None
        parts = self.classify(feature)
        if parts is None:
            _LOGGER.debug("%s: no usable polygons after classification", feature.identifier)
            return None

        policy = self.resolve_policy(identifier=feature.identifier, parts=parts, config=config)
        projection = build_projection(parts, config, policy)
        inset_boxes = []
        if policy.show_insets:
            inset_boxes = layout_insets(
                parts.inset_groups,
                spherical_centroid([parts.main_for_projection]),
                projection,
                Viewport.from_config(config),
            )
        scene = compose(
            parts,
            neighbors,
            projection,
            inset_boxes,
            config,
            policy,
            target_id=feature.identifier,
            capital=capital,
        )
        if not scene.target_paths:
            _LOGGER.debug("%s: every target path failed to project", feature.identifier)
            return None
        _LOGGER.debug(
            "%s: %s/%s scale=%.2f insets=%d",
            feature.identifier,
            config.mode,
            config.variant,
            scene.projection.scale,
            len(scene.inset_boxes),
        )
        return scene

import numpy as np
from typing import List, NamedTuple

from darts_server.models.schema_models import SegmentSchema

# Normalized board radii, relative to the outer edge of the double ring.
OUTER_RADIUS = 1.0
DOUBLE_BULL_RADIUS = 0.06
SINGLE_BULL_RADIUS = 0.13
TRIPLE_INNER_RADIUS = 0.53
TRIPLE_OUTER_RADIUS = 0.60
DOUBLE_INNER_RADIUS = 0.92
DOUBLE_OUTER_RADIUS = 1.0

DOUBLE_BULL_POINTS = 50
SINGLE_BULL_POINTS = 25

# Clockwise from the top of the board.
WEDGE_ORDER: List[int] = [
    20, 1, 18, 4, 13,
    6, 10, 15, 2, 17,
    3, 19, 7, 16, 8,
    11, 14, 9, 12, 5,
]
WEDGE_COUNT = len(WEDGE_ORDER)
WEDGE_SIZE_RAD = 2 * np.pi / WEDGE_COUNT

# Hits within this distance of a ring edge take the higher multiplier.
RING_EPSILON = 0.001

MISS = SegmentSchema(number=0, multiplier=1, label="MISS", points=0)
DOUBLE_BULL = SegmentSchema(number=50, multiplier=1, label="DBULL", points=DOUBLE_BULL_POINTS)
SINGLE_BULL = SegmentSchema(number=25, multiplier=1, label="SBULL", points=SINGLE_BULL_POINTS)


class ScoredHit(NamedTuple):
    segment: SegmentSchema
    r: float
    angle_from_top_rad: float


class ScoreUtils:
    def get_distance(self, x: float, y: float) -> float:
        """calculate the distance of the hit from the board centre

        Args:
            x (float): X-coordinate of the hit, right is positive
            y (float): Y-coordinate of the hit, up is positive

        Returns:
            float: polar radius in normalized board units
        """
        return float(np.sqrt(x**2 + y**2))

    def get_angle_from_top(self, x: float, y: float) -> float:
        """Clockwise angle from the top of the board, normalized into [0, 2π)

        Swapping the atan2 arguments rotates the reference axis onto +Y.
        """
        angle = float(np.arctan2(x, y))
        if angle < 0:
            angle += 2 * np.pi
        if angle >= 2 * np.pi:
            angle -= 2 * np.pi
        return angle

    def get_wedge_number(self, angle_from_top_rad: float) -> int:
        """Look up the wedge number for an angle measured clockwise from the top

        The half-wedge shift centres the 20 on the top instead of starting it there.
        """
        shifted = (angle_from_top_rad + WEDGE_SIZE_RAD / 2) % (2 * np.pi)
        wedge_index = int(np.floor(shifted / WEDGE_SIZE_RAD)) % WEDGE_COUNT
        return WEDGE_ORDER[wedge_index]

    def get_multiplier(self, r: float) -> int:
        """Ring multiplier for a radius that already lies outside the bulls"""
        if r + RING_EPSILON >= DOUBLE_INNER_RADIUS and r <= DOUBLE_OUTER_RADIUS + RING_EPSILON:
            return 2
        if r + RING_EPSILON >= TRIPLE_INNER_RADIUS and r <= TRIPLE_OUTER_RADIUS + RING_EPSILON:
            return 3
        return 1

    def score_hit(self, x: float, y: float) -> ScoredHit:
        """Score a hit given in normalized board coordinates

        Args:
            x (float): X-coordinate of the hit
            y (float): Y-coordinate of the hit

        Returns:
            ScoredHit: segment, polar radius and angle from the top (0 for bulls and misses)
        """
        r = self.get_distance(x, y)
        if r > DOUBLE_OUTER_RADIUS:
            return ScoredHit(MISS, r, 0.0)
        if r <= DOUBLE_BULL_RADIUS:
            return ScoredHit(DOUBLE_BULL, r, 0.0)
        if r <= SINGLE_BULL_RADIUS:
            return ScoredHit(SINGLE_BULL, r, 0.0)

        angle_from_top_rad = self.get_angle_from_top(x, y)
        number = self.get_wedge_number(angle_from_top_rad)
        multiplier = self.get_multiplier(r)

        if multiplier == 2:
            label = f"D{number}"
        elif multiplier == 3:
            label = f"T{number}"
        else:
            label = str(number)

        segment = SegmentSchema(
            number=number,
            multiplier=multiplier,
            label=label,
            points=number * multiplier,
        )
        return ScoredHit(segment, r, angle_from_top_rad)


score_utils = ScoreUtils()

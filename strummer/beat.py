import dataclasses
import math

import strummer.constants


@dataclasses.dataclass (frozen=True)
class BeatClassification:

	"""
	Where a chord falls relative to the beat.
	"""

	is_down_beat: bool = False
	is_first_beat: bool = False


def is_down_beat (position: float, meter_numerator: int, direction: int) -> bool:

	"""
	Decide whether a position counts as a downbeat for a follow-beat direction.

	The position is rounded up onto a fine grid (128 steps per beat unit of
	the meter) and its fractional beat is compared against a window around
	the beat. ``DIRECTION_FOLLOW_EIGHTHS`` doubles the window; any other
	direction folds the second half of the beat onto the first, so each
	eighth note starts a new down/up pair.
	"""

	division = meter_numerator * 128
	division_length = 1 / (division / 128)
	beat_to_schedule = math.ceil(position * division) / division
	deviation = beat_to_schedule - math.floor(beat_to_schedule)

	if direction == strummer.constants.DIRECTION_FOLLOW_EIGHTHS:
		division_length *= 2

	elif deviation >= .5:
		deviation -= .5

	down_range = division_length - division_length / 2

	return deviation <= down_range or deviation >= down_range * 3


def is_first_beat (position: float, meter_numerator: int) -> bool:

	"""
	True when a position lies near the bar line.

	Positions are 1-based beats, taken modulo 4.
	"""

	start_beat = position % 4

	return (
		start_beat <= 1 + strummer.constants.FIRST_BEAT_DEVIATION
		or start_beat >= meter_numerator + 1 - strummer.constants.FIRST_BEAT_DEVIATION
	)


def classify_beat (position: float, meter_numerator: int, direction: int) -> BeatClassification:

	"""Classify a chord's start position for the given follow-beat direction."""

	return BeatClassification(
		is_down_beat = is_down_beat(position, meter_numerator, direction),
		is_first_beat = is_first_beat(position, meter_numerator)
	)

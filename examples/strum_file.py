"""Strum every chord of a MIDI file.

	python examples/strum_file.py chords.mid strummed.mid
"""

import logging
import sys

import strummer
import strummer.constants


logging.basicConfig(level=logging.INFO)


config = strummer.StrumConfig(
	direction = strummer.constants.DIRECTION_ALTERNATE,
	division = 18,
	division_curve = 0.15,
	velocity_curve = 3,
	random_velocity = 10,
)

strummer.strum_midi_file(sys.argv[1], sys.argv[2], config=config, seed=7)

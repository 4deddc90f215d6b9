"""Live guitar strummer.

Play chords on a keyboard and hear them strummed: down on the beat, up on
the off-beat, following the DAW's MIDI clock. Two knobs control the stroke
speed and how much the stroke accelerates.

Change the device names to match your setup, then run:

	python examples/live_guitar.py
"""

import asyncio
import logging

import strummer
import strummer.config
import strummer.constants


logging.basicConfig(level=logging.INFO)


config = strummer.StrumConfig(
	direction = strummer.constants.DIRECTION_FOLLOW_EIGHTHS,
	division = 14,
	division_curve = -0.1,
	random_division = 15,
	velocity_curve = -4,
	random_velocity = 8,
	downbeat_accent = True,
	downbeat_accent_amount = 10,
	first_beat_accent = True,
	first_beat_accent_amount = 8,
)

host = strummer.StrumHost(
	input_device_name = "Arturia KeyStep 37",
	output_device_name = "IAC Driver Bus 1",
	config = config,
	cc_mappings = [
		strummer.config.CcMapping(cc=74, key="division", min_val=5, max_val=60),
		strummer.config.CcMapping(cc=71, key="division_curve"),
	],
	clock_follow = True,
)

asyncio.run(host.play())

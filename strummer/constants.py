"""Constants for Strummer.

Direction selectors match the order of the "Strum Direction" menu, so a
host that stores the menu index can pass it straight through.
"""

# Strum Direction menu indices
DIRECTION_DOWN = 0
DIRECTION_UP = 1
DIRECTION_ALTERNATE = 2
DIRECTION_FOLLOW_EIGHTHS = 3
DIRECTION_FOLLOW_SIXTEENTHS = 4

DIRECTION_NAMES = [
	"Down",
	"Up",
	"Alternate : Always",
	"Follow Beats 1/8",
	"Follow Beats 1/16",
]

# Short names accepted in config files and on the command line
DIRECTION_ALIASES = {
	"down": DIRECTION_DOWN,
	"up": DIRECTION_UP,
	"alternate": DIRECTION_ALTERNATE,
	"follow_eighths": DIRECTION_FOLLOW_EIGHTHS,
	"follow_sixteenths": DIRECTION_FOLLOW_SIXTEENTHS,
}

FOLLOW_DIRECTIONS = (DIRECTION_FOLLOW_EIGHTHS, DIRECTION_FOLLOW_SIXTEENTHS)

# Strum parity: which way the pick moves for one chord
STRUM_DOWN = 0
STRUM_UP = 1

# How close (in beats) a chord must be to a bar line to count as the first beat
FIRST_BEAT_DEVIATION = 0.1

# MIDI velocity range for emitted notes (0 would be a note-off)
MIN_VELOCITY = 1
MAX_VELOCITY = 127

# MIDI clock resolution
MIDI_QUARTER_NOTE = 24
MIDI_SIXTEENTH_NOTE = 6

# Channel mode messages sent on panic
CC_ALL_SOUND_OFF = 120
CC_ALL_NOTES_OFF = 123
MIDI_CHANNELS = 16

DEFAULT_TEMPO = 500000  # microseconds per beat (120 BPM)
DEFAULT_METER_NUMERATOR = 4

import dataclasses
import logging
import random
import typing

import mido

import strummer.beat
import strummer.chord_collector
import strummer.config
import strummer.constants


logger = logging.getLogger(__name__)


@dataclasses.dataclass (frozen=True)
class TransportState:

	"""
	The host's timing snapshot for one cycle.

	Parameters:
		playing: False while the transport is stopped.
		position: Cycle start position in beats, 1-based (bar 1 starts at 1.0).
		meter_numerator: Beats per bar.
	"""

	playing: bool
	position: float
	meter_numerator: int = strummer.constants.DEFAULT_METER_NUMERATOR


@typing.runtime_checkable
class Scheduler (typing.Protocol):

	"""
	Protocol for the host side that delivers strummed notes.
	"""

	def schedule (self, message: mido.Message, offset_ms: float) -> None:

		"""Deliver a message ``offset_ms`` milliseconds from now."""

		...

	def schedule_now (self, message: mido.Message) -> None:

		"""Deliver a message immediately."""

		...

	def all_notes_off (self) -> None:

		"""Silence everything, including messages already scheduled."""

		...


@dataclasses.dataclass (frozen=True)
class StrummedNote:

	"""
	One note as the engine sent it.
	"""

	pitch: int
	velocity: int
	channel: int
	offset_ms: float


class StrumEngine:

	"""
	Turns a chord into a strum.

	Once per cycle, ``process()`` sorts the chord, picks the stroke direction,
	and sends each note with a growing delay and a shaped velocity. The
	engine carries two pieces of state between cycles: the parity of the last
	alternating stroke and the last beat classification.
	"""

	def __init__ (self, rng: typing.Optional[random.Random] = None, seed: typing.Optional[int] = None) -> None:

		"""
		Parameters:
			rng: Random source for delay and velocity jitter.
			seed: Seed for a new random source when ``rng`` is not given.
		"""

		self.rng = rng if rng is not None else random.Random(seed)

		# Primed as "up" so the first alternating stroke is down.
		self.previous_strum = strummer.constants.STRUM_UP
		self.beat = strummer.beat.BeatClassification()


	def process (
		self,
		chord: strummer.chord_collector.Chord,
		config: strummer.config.StrumConfig,
		transport: TransportState,
		scheduler: Scheduler
	) -> typing.List[StrummedNote]:

		"""
		Strum one chord and hand its notes to the scheduler.

		When the transport is stopped the scheduler is told to silence
		everything and the chord is discarded.
		"""

		if not transport.playing:
			scheduler.all_notes_off()
			return []

		if not chord.notes:
			return []

		if config.direction in strummer.constants.FOLLOW_DIRECTIONS:
			self.beat = strummer.beat.classify_beat(transport.position, transport.meter_numerator, config.direction)

		notes = self.order_notes(chord.notes, config.direction)

		strummed: typing.List[StrummedNote] = []
		offsets = self.note_offsets(len(notes), config)

		for index, (note, offset_ms) in enumerate(zip(notes, offsets)):

			velocity = self.note_velocity(note.velocity, index, config)
			message = mido.Message('note_on', channel=note.channel, note=note.pitch, velocity=velocity)

			if index == 0:
				scheduler.schedule_now(message)
			else:
				scheduler.schedule(message, offset_ms)

			strummed.append(StrummedNote(pitch=note.pitch, velocity=velocity, channel=note.channel, offset_ms=offset_ms))

		logger.debug(
			f"Strummed {len(strummed)} notes at {transport.position:.3f}: "
			f"{[(n.pitch, n.velocity, round(n.offset_ms, 2)) for n in strummed]}"
		)

		return strummed


	def resolve_strum (self, direction: int) -> typing.Optional[int]:

		"""
		Decide the stroke for this cycle: ``STRUM_DOWN``, ``STRUM_UP``, or None for an unknown direction.
		"""

		if direction == strummer.constants.DIRECTION_DOWN:
			return strummer.constants.STRUM_DOWN

		if direction == strummer.constants.DIRECTION_UP:
			return strummer.constants.STRUM_UP

		if direction == strummer.constants.DIRECTION_ALTERNATE:
			strum = 1 - self.previous_strum
			self.previous_strum = strum
			return strum

		if direction in strummer.constants.FOLLOW_DIRECTIONS:
			return strummer.constants.STRUM_DOWN if self.beat.is_down_beat else strummer.constants.STRUM_UP

		logger.error(f"Error in strum direction: unknown direction {direction!r}")
		return None


	def order_notes (
		self,
		notes: typing.Iterable[strummer.chord_collector.NoteEvent],
		direction: int
	) -> typing.List[strummer.chord_collector.NoteEvent]:

		"""
		Sort notes by ascending pitch, reversed for an up stroke.

		An unknown direction keeps the ascending order.
		"""

		ordered = sorted(notes, key=lambda note: note.pitch)

		if self.resolve_strum(direction) == strummer.constants.STRUM_UP:
			ordered.reverse()

		return ordered


	def note_velocity (self, velocity: float, index: int, config: strummer.config.StrumConfig) -> int:

		"""
		Velocity for the note at ``index`` in the strum, clamped to 1-127.
		"""

		velocity = velocity + index * config.velocity_curve

		if config.random_velocity > 0:
			spread = velocity * config.random_velocity / 100
			velocity = self._random_in_range(velocity - spread, velocity + spread)

		if config.downbeat_accent and self.beat.is_down_beat:
			velocity = velocity * (1 + config.downbeat_accent_amount / 100)

		if config.first_beat_accent and self.beat.is_first_beat:
			velocity = velocity * (1 + config.first_beat_accent_amount / 100)

		velocity = min(max(velocity, strummer.constants.MIN_VELOCITY), strummer.constants.MAX_VELOCITY)

		return int(round(velocity))


	def note_offsets (self, count: int, config: strummer.config.StrumConfig) -> typing.List[float]:

		"""
		Cumulative delay in milliseconds for each of ``count`` strummed notes.

		The first gap is the division; each later gap grows from the previous
		one by ``division_curve``. Jitter is applied to each gap on its own,
		so it never feeds into the curve.
		"""

		offsets: typing.List[float] = []
		base_delay = 0.0
		cumulative = 0.0

		for index in range(count):

			if index == 0:
				offsets.append(0.0)
				continue

			if index == 1:
				base_delay = config.division
			else:
				base_delay = base_delay + config.division_curve * base_delay

			cumulative += self._randomized_delay(base_delay, config.random_division)
			offsets.append(cumulative)

		return offsets


	def _randomized_delay (self, base_delay: float, random_division: float) -> float:

		if random_division <= 0:
			return base_delay

		spread = base_delay * random_division / 100

		return self._random_in_range(base_delay - spread, base_delay + spread)


	def _random_in_range (self, minimum: float, maximum: float) -> float:
		return self.rng.random() * (maximum - minimum) + minimum

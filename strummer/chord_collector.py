import dataclasses
import logging
import typing

import mido


logger = logging.getLogger(__name__)


@dataclasses.dataclass (frozen=True)
class NoteEvent:

	"""
	A captured note-on: pitch, attack velocity and the cycle start position it arrived in.
	"""

	pitch: int
	velocity: int
	position: float
	channel: int = 0

	@classmethod
	def from_message (cls, message: mido.Message, position: float) -> "NoteEvent":
		return cls(pitch=message.note, velocity=message.velocity, position=position, channel=message.channel)


@dataclasses.dataclass (frozen=True)
class Chord:

	"""
	Notes that share one start position and are strummed together.
	"""

	notes: typing.Tuple[NoteEvent, ...] = ()
	position: typing.Optional[float] = None

	def __len__ (self) -> int:
		return len(self.notes)

	def __iter__ (self) -> typing.Iterator[NoteEvent]:
		return iter(self.notes)


def is_note_on (message: mido.Message) -> bool:

	"""True for a note-on that starts a note (velocity 0 is a note-off by convention)."""

	return message.type == 'note_on' and message.velocity > 0


class ChordCollector:

	"""
	Gathers note-ons arriving in the same cycle into one chord.

	Everything that is not a note-on is handed to ``passthrough`` straight
	away. A note-on that arrives while a chord from a different position is
	still waiting is dropped, since that chord's cycle has already been
	dispatched. ``take()`` hands the finished chord over and starts afresh.
	"""

	def __init__ (self, passthrough: typing.Optional[typing.Callable[[mido.Message], None]] = None) -> None:

		self.passthrough = passthrough
		self._notes: typing.List[NoteEvent] = []
		self._position: typing.Optional[float] = None


	@property
	def pending (self) -> bool:

		"""True while a chord is being built or waits to be strummed."""

		return bool(self._notes)


	def holds (self, channel: int, pitch: int) -> bool:

		"""True when the chord waiting to be strummed contains this key."""

		return any(note.channel == channel and note.pitch == pitch for note in self._notes)


	def handle (self, message: mido.Message, position: float) -> bool:

		"""
		Route one incoming message.

		Returns True when the message was collected into the chord.
		"""

		if is_note_on(message):
			return self.add(NoteEvent.from_message(message, position))

		if self.passthrough is not None:
			self.passthrough(message)

		return False


	def add (self, note: NoteEvent) -> bool:

		"""
		Append a note to the chord if it belongs to it.
		"""

		if self._notes and note.position != self._position:
			logger.debug(f"Dropped note {note.pitch} at {note.position}: chord at {self._position} still pending")
			return False

		self._notes.append(note)
		self._position = note.position

		return True


	def take (self) -> Chord:

		"""
		Hand over the collected chord and reset for the next cycle.
		"""

		chord = Chord(notes=tuple(self._notes), position=self._position)

		self._notes = []
		self._position = None

		return chord

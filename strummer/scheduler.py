import dataclasses
import heapq
import itertools
import logging
import time
import typing

import mido

import strummer.constants


logger = logging.getLogger(__name__)


class RecordingScheduler:

	"""
	Collects scheduled messages in memory instead of sending them.

	Used for offline rendering and for inspecting what the engine emits.
	"""

	def __init__ (self) -> None:

		self.events: typing.List[typing.Tuple[float, mido.Message]] = []
		self.panic_count = 0


	def schedule (self, message: mido.Message, offset_ms: float) -> None:
		self.events.append((offset_ms, message))


	def schedule_now (self, message: mido.Message) -> None:
		self.events.append((0.0, message))


	def all_notes_off (self) -> None:

		"""Count the panic and forget anything still waiting."""

		self.panic_count += 1
		self.events = []


	def clear (self) -> None:
		self.events = []


@dataclasses.dataclass (order=True)
class ScheduledMessage:

	"""
	A MIDI message waiting to be sent at ``due`` (scheduler clock seconds).
	"""

	due: float
	order: int
	message: mido.Message = dataclasses.field(compare=False)


class MidiScheduler:

	"""
	Sends strummed notes to a MIDI output port at their due time.

	Delayed messages wait in a heap until ``process_due()`` finds them due.
	The owner calls ``process_due()`` often (the live host does it every
	cycle), so delivery is accurate to one cycle.
	"""

	def __init__ (self, midi_out: typing.Any, clock: typing.Callable[[], float] = time.perf_counter) -> None:

		"""
		Parameters:
			midi_out: An open mido output port, or None to drop all output.
			clock: Monotonic time source in seconds.
		"""

		self.midi_out = midi_out
		self.clock = clock
		self.queue: typing.List[ScheduledMessage] = []
		self.active_notes: typing.Set[typing.Tuple[int, int]] = set()
		self._counter = itertools.count()
		self._note_since_panic = False


	def schedule (self, message: mido.Message, offset_ms: float) -> None:

		"""Queue a message to be sent ``offset_ms`` milliseconds from now."""

		due = self.clock() + offset_ms / 1000.0
		heapq.heappush(self.queue, ScheduledMessage(due, next(self._counter), message))


	def schedule_now (self, message: mido.Message) -> None:

		"""
		Send a message straight away.

		A note-off for a key whose strummed note-on is still queued waits
		behind that note-on, so the late note cannot be left hanging.
		"""

		if message.type == 'note_off' or (message.type == 'note_on' and message.velocity == 0):

			due = self._queued_note_on_due(message.channel, message.note)

			if due is not None:
				logger.debug(f"Holding note-off for {message.note} behind its queued note-on")
				heapq.heappush(self.queue, ScheduledMessage(due, next(self._counter), message))
				return

		self._send(message)


	def _queued_note_on_due (self, channel: int, note: int) -> typing.Optional[float]:

		"""Due time of the latest queued note-on for this key, if any."""

		dues = [
			scheduled.due for scheduled in self.queue
			if scheduled.message.type == 'note_on'
			and scheduled.message.velocity > 0
			and scheduled.message.channel == channel
			and scheduled.message.note == note
		]

		return max(dues) if dues else None


	def process_due (self, now: typing.Optional[float] = None) -> int:

		"""
		Send every queued message whose due time has passed. Returns the number sent.
		"""

		if now is None:
			now = self.clock()

		sent = 0

		while self.queue and self.queue[0].due <= now:
			scheduled = heapq.heappop(self.queue)
			self._send(scheduled.message)
			sent += 1

		return sent


	def next_due (self) -> typing.Optional[float]:
		return self.queue[0].due if self.queue else None


	def all_notes_off (self) -> None:

		"""
		Drop pending messages and silence every channel.

		Sends nothing when no note was started since the last panic, so a
		stopped host can call it every cycle.
		"""

		self.queue = []

		if not self._note_since_panic:
			return

		logger.info("Panic: sending all notes off.")

		if self.midi_out:

			try:

				for channel, note in sorted(self.active_notes):
					self.midi_out.send(mido.Message('note_off', channel=channel, note=note, velocity=0))

				for channel in range(strummer.constants.MIDI_CHANNELS):
					self.midi_out.send(mido.Message('control_change', channel=channel, control=strummer.constants.CC_ALL_NOTES_OFF, value=0))
					self.midi_out.send(mido.Message('control_change', channel=channel, control=strummer.constants.CC_ALL_SOUND_OFF, value=0))

			except Exception:
				logger.exception("MIDI panic failed (device may be disconnected)")

		self.active_notes.clear()
		self._note_since_panic = False


	def _send (self, message: mido.Message) -> None:

		"""Send one message and keep track of sounding notes."""

		if message.type == 'note_on' and message.velocity > 0:
			self.active_notes.add((message.channel, message.note))
			self._note_since_panic = True

		elif message.type in ('note_off', 'note_on'):
			self.active_notes.discard((message.channel, message.note))

		if self.midi_out:

			try:
				self.midi_out.send(message)

			except Exception:
				logger.exception("MIDI send failed (device may be disconnected)")

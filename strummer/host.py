import asyncio
import logging
import time
import typing

import mido

import strummer.chord_collector
import strummer.config
import strummer.constants
import strummer.engine
import strummer.midi_utils
import strummer.scheduler


logger = logging.getLogger(__name__)


class StrumHost:

	"""
	Live MIDI strummer: reads chords from an input port and plays them as strums on an output port.

	The host runs one cycle every ``block_ms`` milliseconds. Within a cycle,
	every note-on that arrived since the previous cycle is collected into one
	chord at the cycle's start position; the chord is then strummed and any
	delayed notes that have fallen due are sent.

	Timing comes from an internal clock at ``bpm``, or with
	``clock_follow=True`` from incoming MIDI clock and transport messages.
	"""

	def __init__ (
		self,
		output_device_name: typing.Optional[str] = None,
		input_device_name: typing.Optional[str] = None,
		config: typing.Optional[strummer.config.StrumConfig] = None,
		cc_mappings: typing.Optional[typing.Sequence[strummer.config.CcMapping]] = None,
		clock_follow: bool = False,
		bpm: float = 120,
		meter_numerator: int = strummer.constants.DEFAULT_METER_NUMERATOR,
		block_ms: float = 2.0,
		seed: typing.Optional[int] = None
	) -> None:

		"""
		Parameters:
			output_device_name: MIDI output for the strummed notes. When omitted
				the only available device is used, or the user is prompted.
			input_device_name: MIDI input that plays the chords.
			config: Initial strum controls (defaults when omitted).
			cc_mappings: Controllers that change strum controls while playing.
			clock_follow: Follow external MIDI clock and transport instead of
				the internal clock. Requires ``input_device_name``.
			bpm: Internal clock tempo (ignored when following clock).
			meter_numerator: Beats per bar, used for beat classification.
			block_ms: Cycle length in milliseconds.
			seed: Seed for the strum randomization.
		"""

		if clock_follow and input_device_name is None:
			raise ValueError("clock_follow=True requires an input_device_name")

		if bpm <= 0:
			raise ValueError("BPM must be positive")

		if meter_numerator <= 0:
			raise ValueError("Meter numerator must be positive")

		if block_ms <= 0:
			raise ValueError("Block length must be positive")

		self.output_device_name = output_device_name
		self.input_device_name = input_device_name
		self.config = config if config is not None else strummer.config.StrumConfig()
		self.cc_mappings: typing.List[strummer.config.CcMapping] = list(cc_mappings or [])
		self.clock_follow = clock_follow
		self.bpm = float(bpm)
		self.meter_numerator = meter_numerator
		self.block_ms = block_ms

		self.engine = strummer.engine.StrumEngine(seed=seed)
		self.scheduler = strummer.scheduler.MidiScheduler(None)
		self.collector = strummer.chord_collector.ChordCollector(passthrough=self.scheduler.schedule_now)
		self._held_note_offs: typing.List[mido.Message] = []

		self.midi_out: typing.Any = None
		self.midi_in: typing.Any = None
		self._midi_input_queue: typing.Optional[asyncio.Queue] = None
		self._input_loop: typing.Optional[asyncio.AbstractEventLoop] = None

		self.playing = False
		self.running = False
		self.task: typing.Optional[asyncio.Task] = None
		self.start_time = 0.0
		self.pulse_count = 0
		self.cycle_position = 1.0


	def current_position (self) -> float:

		"""Transport position in 1-based beats."""

		if self.clock_follow:
			return 1.0 + self.pulse_count / strummer.constants.MIDI_QUARTER_NOTE

		return 1.0 + (time.perf_counter() - self.start_time) * self.bpm / 60.0


	def transport (self) -> strummer.engine.TransportState:

		"""Timing snapshot for the current cycle."""

		return strummer.engine.TransportState(
			playing = self.playing,
			position = self.cycle_position,
			meter_numerator = self.meter_numerator
		)


	def handle_message (self, message: mido.Message) -> None:

		"""
		Route one incoming message: transport, CC control, chord note, or pass-through.
		"""

		if self.clock_follow:
			self._handle_transport(message)

		if self.cc_mappings and message.type == 'control_change':
			if any(mapping.matches(message) for mapping in self.cc_mappings):
				self.config = strummer.config.apply_cc(self.config, self.cc_mappings, message)
				return

		# A key released before its chord is strummed is released after the strum.
		if message.type == 'note_off' or (message.type == 'note_on' and message.velocity == 0):
			if self.collector.holds(message.channel, message.note):
				self._held_note_offs.append(message)
				return

		self.collector.handle(message, self.cycle_position)


	def _handle_transport (self, message: mido.Message) -> None:

		if message.type == 'clock':
			if self.playing:
				self.pulse_count += 1

		elif message.type == 'start':
			logger.info("MIDI start received")
			self.pulse_count = 0
			self.playing = True

		elif message.type == 'continue':
			logger.info("MIDI continue received")
			self.playing = True

		elif message.type == 'stop':
			logger.info("MIDI stop received")
			self.playing = False

		elif message.type == 'songpos':
			# Song position counts sixteenth notes.
			self.pulse_count = message.pos * strummer.constants.MIDI_SIXTEENTH_NOTE


	def run_cycle (self) -> typing.List[strummer.engine.StrummedNote]:

		"""
		Strum whatever was collected, send due notes, and advance the cycle position.
		"""

		chord = self.collector.take()
		strummed = self.engine.process(chord, self.config, self.transport(), self.scheduler)

		for message in self._held_note_offs:
			self.scheduler.schedule_now(message)
		self._held_note_offs = []

		self.scheduler.process_due()
		self.cycle_position = self.current_position()

		return strummed


	def _on_midi_input (self, message: mido.Message) -> None:

		"""Bridge messages from mido's callback thread onto the asyncio loop."""

		if self._midi_input_queue is None or self._input_loop is None:
			return

		self._input_loop.call_soon_threadsafe(self._midi_input_queue.put_nowait, message)


	async def start (self) -> None:

		"""
		Open the MIDI ports and start the cycle loop in a separate asyncio task.
		"""

		if self.running:
			return

		device_name, midi_out = strummer.midi_utils.select_output_device(self.output_device_name)

		if device_name:
			self.output_device_name = device_name
			self.midi_out = midi_out
			self.scheduler.midi_out = midi_out

		self._input_loop = asyncio.get_running_loop()
		self._midi_input_queue = asyncio.Queue()

		device_name, midi_in = strummer.midi_utils.select_input_device(self.input_device_name, self._on_midi_input)

		if device_name:
			self.input_device_name = device_name
			self.midi_in = midi_in

		self.start_time = time.perf_counter()
		self.pulse_count = 0
		self.playing = not self.clock_follow
		self.cycle_position = self.current_position()
		self.running = True
		self.task = asyncio.create_task(self._run_loop())

		logger.info("Strummer started")


	async def _run_loop (self) -> None:

		assert self._midi_input_queue is not None, "MIDI input queue must be initialized before the loop starts"

		while self.running:

			while not self._midi_input_queue.empty():
				self.handle_message(self._midi_input_queue.get_nowait())

			self.run_cycle()

			await asyncio.sleep(self.block_ms / 1000.0)


	async def stop (self) -> None:

		"""
		Stop the loop, silence the output and close the ports.
		"""

		if not self.running and self.midi_out is None:
			return

		logger.info("Stopping strummer...")

		self.running = False

		if self.task:
			if not self.task.done():
				await self.task
			self.task = None

		self.scheduler.all_notes_off()

		if self.midi_out:
			self.midi_out.close()
			self.midi_out = None
			self.scheduler.midi_out = None

		if self.midi_in:
			self.midi_in.close()
			self.midi_in = None

		self._midi_input_queue = None
		self._input_loop = None

		logger.info("Strummer stopped")


	async def play (self) -> None:

		"""
		Start the host and run until cancelled.
		"""

		await self.start()

		try:
			if self.task:
				await self.task
		except asyncio.CancelledError:
			pass
		finally:
			await self.stop()

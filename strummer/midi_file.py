"""Offline strumming of Standard MIDI Files.

Every track is read in order; note-ons that share a tick form a chord and
are strummed exactly as the live host would strum them, with millisecond
offsets converted to ticks at the tempo in force. Note-offs follow their
note-ons, so each note keeps its original length unless the next strummed
note on the same key starts sooner; then it ends there.
"""

import bisect
import itertools
import logging
import typing

import mido

import strummer.chord_collector
import strummer.config
import strummer.constants
import strummer.engine
import strummer.scheduler


logger = logging.getLogger(__name__)


class MetaMap:

	"""
	Values of one meta message type over time (tempo or meter), merged from all tracks.
	"""

	def __init__ (self, midi: mido.MidiFile, message_type: str, attribute: str, default: int) -> None:

		changes: typing.List[typing.Tuple[int, int]] = []

		for track in midi.tracks:
			tick = 0
			for message in track:
				tick += message.time
				if message.type == message_type:
					changes.append((tick, getattr(message, attribute)))

		changes.sort(key=lambda change: change[0])

		self.ticks = [tick for tick, _ in changes]
		self.values = [value for _, value in changes]
		self.default = default


	def at (self, tick: int) -> int:

		"""The value in force at ``tick``."""

		index = bisect.bisect_right(self.ticks, tick) - 1

		return self.values[index] if index >= 0 else self.default


def strum_track (
	track: mido.MidiTrack,
	ticks_per_beat: int,
	tempo_map: MetaMap,
	meter_map: MetaMap,
	engine: strummer.engine.StrumEngine,
	config: strummer.config.StrumConfig
) -> typing.Tuple[mido.MidiTrack, int]:

	"""
	Strum the chords of one track. Returns the new track and the number of chords strummed.
	"""

	collector = strummer.chord_collector.ChordCollector()
	recorder = strummer.scheduler.RecordingScheduler()

	timed: typing.List[typing.Tuple[int, int, mido.Message]] = []
	order = itertools.count()

	# Tick shift of each strummed note still waiting for its note-off, oldest first.
	shifts: typing.Dict[typing.Tuple[int, int], typing.List[int]] = {}

	# Positions in `timed` of the note-offs already placed for each key.
	note_offs: typing.Dict[typing.Tuple[int, int], typing.List[int]] = {}

	chord_tick = 0
	chords = 0
	tick = 0
	end_tick = 0

	def flush () -> int:

		chord = collector.take()

		if not chord.notes:
			return 0

		transport = strummer.engine.TransportState(
			playing = True,
			position = 1.0 + chord_tick / ticks_per_beat,
			meter_numerator = meter_map.at(chord_tick)
		)

		recorder.clear()
		engine.process(chord, config, transport, recorder)
		tempo = tempo_map.at(chord_tick)

		for offset_ms, message in recorder.events:
			shift = int(round(mido.second2tick(offset_ms / 1000.0, ticks_per_beat, tempo)))
			key = (message.channel, message.note)
			onset = chord_tick + shift

			# A delayed note-off from the previous note on this key must not
			# end the new one; cut it at the new onset, ahead of the note-on.
			for index in note_offs.get(key, []):
				off_tick, off_order, off_message = timed[index]
				if off_tick > onset:
					timed[index] = (onset, off_order, off_message)

			timed.append((onset, next(order), message))
			shifts.setdefault(key, []).append(shift)

		return 1

	for message in track:

		tick += message.time

		if tick != chord_tick:
			chords += flush()

		if message.type == 'end_of_track':
			end_tick = tick

		elif strummer.chord_collector.is_note_on(message):
			chord_tick = tick
			collector.add(strummer.chord_collector.NoteEvent.from_message(message, 1.0 + tick / ticks_per_beat))

		elif message.type in ('note_off', 'note_on'):
			pending = shifts.get((message.channel, message.note))
			shift = pending.pop(0) if pending else 0
			note_offs.setdefault((message.channel, message.note), []).append(len(timed))
			timed.append((tick + shift, next(order), message))

		else:
			timed.append((tick, next(order), message))

	chords += flush()

	timed.sort(key=lambda item: (item[0], item[1]))

	new_track = mido.MidiTrack()
	last_tick = 0

	for event_tick, _, message in timed:
		new_track.append(message.copy(time=event_tick - last_tick))
		last_tick = event_tick

	new_track.append(mido.MetaMessage('end_of_track', time=max(end_tick - last_tick, 0)))

	return new_track, chords


def strum_midi_file (
	input_path: str,
	output_path: str,
	config: typing.Optional[strummer.config.StrumConfig] = None,
	seed: typing.Optional[int] = None,
	engine: typing.Optional[strummer.engine.StrumEngine] = None
) -> int:

	"""
	Strum every chord in a MIDI file and save the result.

	Parameters:
		input_path: The file to read.
		output_path: Where to write the strummed file.
		config: Strum controls (defaults when omitted).
		seed: Seed for the randomization, for repeatable renders.
		engine: An existing engine to use instead of a new one.

	Returns:
		The number of chords strummed.
	"""

	if config is None:
		config = strummer.config.StrumConfig()

	if engine is None:
		engine = strummer.engine.StrumEngine(seed=seed)

	midi = mido.MidiFile(input_path)

	tempo_map = MetaMap(midi, 'set_tempo', 'tempo', strummer.constants.DEFAULT_TEMPO)
	meter_map = MetaMap(midi, 'time_signature', 'numerator', strummer.constants.DEFAULT_METER_NUMERATOR)

	output = mido.MidiFile(type=midi.type, ticks_per_beat=midi.ticks_per_beat)
	chords = 0

	for track in midi.tracks:
		new_track, track_chords = strum_track(track, midi.ticks_per_beat, tempo_map, meter_map, engine, config)
		output.tracks.append(new_track)
		chords += track_chords

	output.save(output_path)

	logger.info(f"Strummed {chords} chords from {input_path} into {output_path}")

	return chords

import logging
import typing

import mido


logger = logging.getLogger(__name__)


def select_output_device (device_name: typing.Optional[str] = None) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:

	"""
	Open a MIDI output port for the strummed notes.

	When ``device_name`` is given, that port is opened. Otherwise the only
	available port is used, or the user is asked to pick one when there are
	several.

	Returns:
		A tuple of (device_name, midi_out) or (None, None) on failure.
	"""

	try:
		outputs = mido.get_output_names()
		logger.info(f"Available MIDI outputs: {outputs}")

		if not outputs:
			logger.error("No MIDI output devices found.")
			return None, None

		if device_name is not None:
			if device_name not in outputs:
				logger.error(f"MIDI output device '{device_name}' not found. Available devices: {outputs}")
				return None, None

			midi_out = mido.open_output(device_name)
			logger.info(f"Opened MIDI output: {device_name}")
			return device_name, midi_out

		if len(outputs) == 1:
			midi_out = mido.open_output(outputs[0])
			logger.info(f"One MIDI output found - using '{outputs[0]}'")
			return outputs[0], midi_out

		selected_name = _prompt_for_device("output", outputs)
		midi_out = mido.open_output(selected_name)
		logger.info(f"Opened MIDI output: {selected_name}")

		print(f"\nTip: To skip this prompt, pass the device name directly:\n")
		print(f"  python -m strummer live --output \"{selected_name}\"\n")

		return selected_name, midi_out

	except Exception as e:
		logger.error(f"Failed to open MIDI output: {e}")
		return None, None


def select_input_device (
	device_name: typing.Optional[str] = None,
	callback: typing.Optional[typing.Callable] = None
) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:

	"""
	Open the MIDI input port that plays the chords.

	Behaves like ``select_output_device``, except that a named port that is
	missing falls back to the first available input with a warning.

	Returns:
		A tuple of (device_name, midi_in) or (None, None) on failure.
	"""

	try:
		inputs = mido.get_input_names()
		logger.info(f"Available MIDI inputs: {inputs}")

		if not inputs:
			logger.error("No MIDI input devices found.")
			return None, None

		if device_name is None:
			target = inputs[0] if len(inputs) == 1 else _prompt_for_device("input", inputs)

		elif device_name not in inputs:
			target = inputs[0]
			logger.warning(f"MIDI input device '{device_name}' not found. Fallback to: {target}")

		else:
			target = device_name

		midi_in = mido.open_input(target, callback=callback)
		logger.info(f"Opened MIDI input: {target}")
		return target, midi_in

	except Exception as e:
		logger.error(f"Failed to open MIDI input: {e}")
		return None, None


def _prompt_for_device (kind: str, names: typing.List[str]) -> str:

	"""Ask the user to choose one of several ports on the console."""

	print(f"\nAvailable MIDI {kind} devices:\n")
	for i, name in enumerate(names, 1):
		print(f"  {i}. {name}")
	print()

	while True:
		try:
			choice = int(input(f"Select a device (1-{len(names)}): "))
			if 1 <= choice <= len(names):
				return names[choice - 1]
		except (ValueError, EOFError):
			pass
		print(f"Enter a number between 1 and {len(names)}.")

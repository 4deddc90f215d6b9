import argparse
import asyncio
import logging
import typing

import strummer.config
import strummer.host
import strummer.midi_file


logger = logging.getLogger(__name__)


def _add_strum_arguments (parser: argparse.ArgumentParser) -> None:

	"""Add one option per strum control."""

	parser.add_argument("--config", help="YAML config file with midi, strum and cc sections")
	parser.add_argument("--seed", type=int, help="Seed for repeatable randomization")
	parser.add_argument("--direction", help="down, up, alternate, follow_eighths, follow_sixteenths, or a menu index")
	parser.add_argument("--division", type=float, help="Gap between notes in ms (1-500)")
	parser.add_argument("--division-curve", type=float, help="Stroke acceleration (-0.5-0.5)")
	parser.add_argument("--random-division", type=float, help="Gap jitter in percent (0-100)")
	parser.add_argument("--velocity-curve", type=float, help="Velocity added per note (-20-20)")
	parser.add_argument("--random-velocity", type=float, help="Velocity jitter in percent (0-50)")
	parser.add_argument("--downbeat-accent", type=float, metavar="AMOUNT", help="Accent downbeats by AMOUNT percent")
	parser.add_argument("--first-beat-accent", type=float, metavar="AMOUNT", help="Accent the first beat of each bar by AMOUNT percent")


def build_strum_config (args: argparse.Namespace, file_config: typing.Mapping[str, typing.Any]) -> strummer.config.StrumConfig:

	"""
	Merge the config file's ``strum`` section with command line overrides.
	"""

	values: typing.Dict[str, typing.Any] = dict(file_config.get('strum', None) or {})

	for key in ("direction", "division", "division_curve", "random_division", "velocity_curve", "random_velocity"):
		value = getattr(args, key)
		if value is not None:
			values[key] = value

	if args.downbeat_accent is not None:
		values["downbeat_accent"] = True
		values["downbeat_accent_amount"] = args.downbeat_accent

	if args.first_beat_accent is not None:
		values["first_beat_accent"] = True
		values["first_beat_accent_amount"] = args.first_beat_accent

	return strummer.config.StrumConfig.from_mapping(values)


def _run_live (args: argparse.Namespace, file_config: typing.Mapping[str, typing.Any]) -> None:

	midi_config = file_config.get('midi', None) or {}
	seed = args.seed if args.seed is not None else midi_config.get('seed')

	host = strummer.host.StrumHost(
		output_device_name = args.output or midi_config.get('output'),
		input_device_name = args.input or midi_config.get('input'),
		config = build_strum_config(args, file_config),
		cc_mappings = strummer.config.cc_mappings_from_config(file_config),
		clock_follow = args.clock_follow or bool(midi_config.get('clock_follow', False)),
		bpm = args.bpm if args.bpm is not None else midi_config.get('bpm', 120),
		meter_numerator = midi_config.get('meter_numerator', 4),
		block_ms = midi_config.get('block_ms', 2.0),
		seed = seed
	)

	try:
		asyncio.run(host.play())
	except KeyboardInterrupt:
		logger.info("Stopping...")


def _run_render (args: argparse.Namespace, file_config: typing.Mapping[str, typing.Any]) -> None:

	seed = args.seed if args.seed is not None else (file_config.get('midi', None) or {}).get('seed')

	strummer.midi_file.strum_midi_file(args.input_file, args.output_file, config=build_strum_config(args, file_config), seed=seed)


def _print_parameters () -> None:

	for parameter in strummer.config.PARAMETERS:

		if parameter.value_strings is not None:
			choices = ", ".join(f"{i}={s}" for i, s in enumerate(parameter.value_strings))
			print(f"{parameter.name:26} {parameter.key:26} [{choices}] default {parameter.default}")

		else:
			unit = f" {parameter.unit}" if parameter.unit else ""
			print(f"{parameter.name:26} {parameter.key:26} {parameter.minimum} to {parameter.maximum}{unit}, default {parameter.default}")


def main (argv: typing.Optional[typing.List[str]] = None) -> None:

	"""
	Command line entry point: ``python -m strummer {live,render,params}``.
	"""

	parser = argparse.ArgumentParser(prog="strummer", description="Turn chords into strums")
	subparsers = parser.add_subparsers(dest="command", required=True)

	live = subparsers.add_parser("live", help="Strum a live MIDI input onto a MIDI output")
	live.add_argument("--input", help="MIDI input device name")
	live.add_argument("--output", help="MIDI output device name")
	live.add_argument("--clock-follow", action="store_true", help="Follow external MIDI clock and transport")
	live.add_argument("--bpm", type=float, help="Internal clock tempo")
	_add_strum_arguments(live)

	render = subparsers.add_parser("render", help="Strum the chords of a MIDI file")
	render.add_argument("input_file", help="MIDI file to read")
	render.add_argument("output_file", help="MIDI file to write")
	_add_strum_arguments(render)

	subparsers.add_parser("params", help="List the strum parameters")

	args = parser.parse_args(argv)

	logging.basicConfig(level=logging.INFO)

	if args.command == "params":
		_print_parameters()
		return

	file_config = strummer.config.load_config(args.config) if args.config else {}

	if args.command == "live":
		_run_live(args, file_config)
	else:
		_run_render(args, file_config)


if __name__ == "__main__":
	main()

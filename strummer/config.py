import dataclasses
import logging
import os
import typing

import mido
import yaml

import strummer.constants


logger = logging.getLogger(__name__)


@dataclasses.dataclass (frozen=True)
class Parameter:

	"""
	Declaration of one named strum control, as a host would present it.
	"""

	name: str
	key: str
	minimum: float
	maximum: float
	default: typing.Any
	unit: str = ""
	value_strings: typing.Optional[typing.List[str]] = None

	@property
	def is_menu (self) -> bool:
		return self.value_strings is not None

	@property
	def is_switch (self) -> bool:
		return isinstance(self.default, bool)


PARAMETERS: typing.Tuple[Parameter, ...] = (
	Parameter("Strum Direction", "direction", 0, len(strummer.constants.DIRECTION_NAMES) - 1, strummer.constants.DIRECTION_DOWN, value_strings=strummer.constants.DIRECTION_NAMES),
	Parameter("Strum Division", "division", 1, 500, 10.0, unit="ms"),
	Parameter("Strum Division Curve", "division_curve", -0.5, 0.5, 0.0),
	Parameter("Strum Random Division", "random_division", 0, 100, 0.0, unit="%"),
	Parameter("Strum Velocity Curve", "velocity_curve", -20, 20, 0.0),
	Parameter("Strum Random Velocity", "random_velocity", 0, 50, 0.0, unit="%"),
	Parameter("Downbeat Accent", "downbeat_accent", 0, 1, False, value_strings=["No", "Yes"]),
	Parameter("Downbeat Accent Amount", "downbeat_accent_amount", 0, 50, 0.0, unit="%"),
	Parameter("First Beat Accent", "first_beat_accent", 0, 1, False, value_strings=["No", "Yes"]),
	Parameter("First Beat Accent Amount", "first_beat_accent_amount", 0, 50, 0.0, unit="%"),
)

_PARAMETERS_BY_KEY = {p.key: p for p in PARAMETERS}
_PARAMETERS_BY_NAME = {p.name: p for p in PARAMETERS}


def get_parameter (key_or_name: str) -> Parameter:

	"""
	Look up a parameter by snake_case key or by display name.
	"""

	if key_or_name in _PARAMETERS_BY_KEY:
		return _PARAMETERS_BY_KEY[key_or_name]

	if key_or_name in _PARAMETERS_BY_NAME:
		return _PARAMETERS_BY_NAME[key_or_name]

	raise ValueError(f"Unknown strum parameter {key_or_name!r}")


def parse_direction (value: typing.Union[int, str]) -> int:

	"""
	Convert a direction given as a menu index, short name or display name to its index.

	Integer indices are returned unchecked.
	"""

	if isinstance(value, bool):
		raise ValueError(f"Invalid strum direction {value!r}")

	if isinstance(value, int):
		return value

	text = str(value).strip()

	if text.isdigit():
		return int(text)

	alias = text.lower().replace("-", "_").replace(" ", "_")

	if alias in strummer.constants.DIRECTION_ALIASES:
		return strummer.constants.DIRECTION_ALIASES[alias]

	if text in strummer.constants.DIRECTION_NAMES:
		return strummer.constants.DIRECTION_NAMES.index(text)

	raise ValueError(f"Unknown strum direction {value!r}")


_SWITCH_WORDS = {
	"true": True, "yes": True, "on": True, "1": True,
	"false": False, "no": False, "off": False, "0": False,
}


def parse_switch (parameter: Parameter, value: typing.Union[bool, int, str]) -> bool:

	"""
	Convert an on/off control given as a bool, 0/1, one of its value strings, or a true/false word.
	"""

	if isinstance(value, bool):
		return value

	if isinstance(value, int) and value in (0, 1):
		return bool(value)

	if isinstance(value, str):

		text = value.strip()

		if parameter.value_strings is not None:
			for index, label in enumerate(parameter.value_strings):
				if text.lower() == label.lower():
					return bool(index)

		if text.lower() in _SWITCH_WORDS:
			return _SWITCH_WORDS[text.lower()]

	raise ValueError(f"Invalid value {value!r} for {parameter.name}")


@dataclasses.dataclass (frozen=True)
class StrumConfig:

	"""
	A snapshot of the ten strum controls, read once per cycle.

	Parameters:
		direction: Strum Direction menu index (see ``strummer.constants``).
		division: Base gap between consecutive notes, in milliseconds.
		division_curve: Growth factor applied to the gap at every step.
			Negative values speed the stroke up, positive values slow it down.
		random_division: Jitter applied to each gap, as a percentage of it.
		velocity_curve: Velocity added per note index.
		random_velocity: Jitter applied to each velocity, as a percentage of it.
		downbeat_accent: Boost velocities of chords that land on a downbeat.
		downbeat_accent_amount: Size of the downbeat boost, in percent.
		first_beat_accent: Boost velocities of chords near the first beat of a bar.
		first_beat_accent_amount: Size of the first beat boost, in percent.
	"""

	direction: int = strummer.constants.DIRECTION_DOWN
	division: float = 10.0
	division_curve: float = 0.0
	random_division: float = 0.0
	velocity_curve: float = 0.0
	random_velocity: float = 0.0
	downbeat_accent: bool = False
	downbeat_accent_amount: float = 0.0
	first_beat_accent: bool = False
	first_beat_accent_amount: float = 0.0

	@classmethod
	def from_mapping (cls, values: typing.Mapping[str, typing.Any]) -> "StrumConfig":

		"""
		Build a config from a mapping keyed by parameter key or display name.

		Numeric values are clamped into the parameter's range, the way a host
		control cannot be turned past its end stops.
		"""

		kwargs: typing.Dict[str, typing.Any] = {}

		for key, value in values.items():

			parameter = get_parameter(key)

			if parameter.key == "direction":
				kwargs["direction"] = parse_direction(value)

			elif parameter.is_switch:
				kwargs[parameter.key] = parse_switch(parameter, value)

			else:
				kwargs[parameter.key] = clamp_parameter(parameter, float(value))

		return cls(**kwargs)

	def to_mapping (self) -> typing.Dict[str, typing.Any]:

		"""Return the controls keyed by their display names."""

		return {p.name: getattr(self, p.key) for p in PARAMETERS}


def clamp_parameter (parameter: Parameter, value: float) -> float:

	"""
	Clamp a numeric value into a parameter's range, warning when it moves.
	"""

	clamped = min(max(value, parameter.minimum), parameter.maximum)

	if clamped != value:
		logger.warning(f"{parameter.name} value {value} out of range, clamped to {clamped}")

	return float(clamped)


@dataclasses.dataclass (frozen=True)
class CcMapping:

	"""
	Routes an incoming MIDI CC to a strum parameter.

	The CC value (0-127) is scaled onto ``[min_val, max_val]``, which default
	to the parameter's own range. Switches turn on at 64 and above; the
	direction menu snaps to the nearest entry.
	"""

	cc: int
	key: str
	channel: typing.Optional[int] = None
	min_val: typing.Optional[float] = None
	max_val: typing.Optional[float] = None

	def __post_init__ (self) -> None:

		if not 0 <= self.cc <= 127:
			raise ValueError(f"CC number must be 0-127, got {self.cc}")

		if self.channel is not None and not 0 <= self.channel <= 15:
			raise ValueError(f"CC channel must be 0-15, got {self.channel}")

		# Normalise display names to keys.
		object.__setattr__(self, "key", get_parameter(self.key).key)

	def matches (self, message: mido.Message) -> bool:

		if message.type != "control_change" or message.control != self.cc:
			return False

		return self.channel is None or message.channel == self.channel

	def scale (self, value: int) -> typing.Any:

		"""Convert a 0-127 controller value to this mapping's parameter value."""

		parameter = get_parameter(self.key)

		if parameter.is_switch:
			return value >= 64

		low = parameter.minimum if self.min_val is None else self.min_val
		high = parameter.maximum if self.max_val is None else self.max_val
		scaled = low + (value / 127.0) * (high - low)

		if parameter.key == "direction":
			return int(round(scaled))

		return scaled


def apply_cc (config: StrumConfig, mappings: typing.Sequence[CcMapping], message: mido.Message) -> StrumConfig:

	"""
	Return the config updated by a CC message, or the same object when no mapping matches.
	"""

	changes: typing.Dict[str, typing.Any] = {}

	for mapping in mappings:
		if mapping.matches(message):
			changes[mapping.key] = mapping.scale(message.value)

	if not changes:
		return config

	logger.debug(f"CC {message.control} -> {changes}")

	return dataclasses.replace(config, **changes)


def load_config (config_path: str) -> typing.Dict[str, typing.Any]:

	"""
	Load configuration from a YAML file.

	The document may hold ``midi``, ``strum`` and ``cc`` sections.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, 'r') as f:
		data = yaml.safe_load(f)

	if data is None:
		return {}

	if not isinstance(data, dict):
		raise ValueError(f"Config file {config_path} must contain a mapping")

	return data


def cc_mappings_from_config (config: typing.Mapping[str, typing.Any]) -> typing.List[CcMapping]:

	"""Build CC mappings from the ``cc`` section of a loaded config."""

	return [CcMapping(**entry) for entry in config.get('cc', None) or []]

import dataclasses
import logging
import pathlib

import mido
import pytest

import strummer.config
import strummer.constants


def test_defaults_match_parameter_table () -> None:

	"""Each StrumConfig default equals the declared parameter default."""

	config = strummer.config.StrumConfig()

	for parameter in strummer.config.PARAMETERS:
		assert getattr(config, parameter.key) == parameter.default

	assert len(strummer.config.PARAMETERS) == 10


def test_config_is_immutable () -> None:

	config = strummer.config.StrumConfig()

	with pytest.raises(dataclasses.FrozenInstanceError):
		config.division = 20  # type: ignore[misc]


def test_from_mapping_accepts_keys_and_display_names () -> None:

	config = strummer.config.StrumConfig.from_mapping({
		"Strum Division": 25,
		"division_curve": -0.25,
		"Downbeat Accent": 1,
		"downbeat_accent_amount": 12,
	})

	assert config.division == 25.0
	assert config.division_curve == -0.25
	assert config.downbeat_accent is True
	assert config.downbeat_accent_amount == 12.0


def test_from_mapping_clamps_to_range (caplog: pytest.LogCaptureFixture) -> None:

	"""Values past a control's end stops are clamped with a warning."""

	with caplog.at_level(logging.WARNING, logger="strummer.config"):
		config = strummer.config.StrumConfig.from_mapping({"division": 900, "random_velocity": -5})

	assert config.division == 500.0
	assert config.random_velocity == 0.0
	assert "clamped" in caplog.text


def test_from_mapping_rejects_unknown_key () -> None:

	with pytest.raises(ValueError, match="Unknown strum parameter"):
		strummer.config.StrumConfig.from_mapping({"tempo": 120})


@pytest.mark.parametrize("value, expected", [
	("down", strummer.constants.DIRECTION_DOWN),
	("Up", strummer.constants.DIRECTION_UP),
	("alternate", strummer.constants.DIRECTION_ALTERNATE),
	("follow-eighths", strummer.constants.DIRECTION_FOLLOW_EIGHTHS),
	("Follow Beats 1/16", strummer.constants.DIRECTION_FOLLOW_SIXTEENTHS),
	("3", 3),
	(4, 4),
	(9, 9),
])
def test_parse_direction (value: object, expected: int) -> None:

	"""Directions can be given by index, short name or menu name."""

	assert strummer.config.parse_direction(value) == expected  # type: ignore[arg-type]


def test_parse_direction_rejects_unknown_name () -> None:

	with pytest.raises(ValueError):
		strummer.config.parse_direction("sideways")


def test_from_mapping_reads_switch_words () -> None:

	"""Accent switches written as words are read by meaning, not by truthiness."""

	config = strummer.config.StrumConfig.from_mapping({"Downbeat Accent": "No", "first_beat_accent": "false"})

	assert config.downbeat_accent is False
	assert config.first_beat_accent is False

	config = strummer.config.StrumConfig.from_mapping({"Downbeat Accent": "Yes", "first_beat_accent": "on"})

	assert config.downbeat_accent is True
	assert config.first_beat_accent is True


@pytest.mark.parametrize("value, expected", [
	(True, True),
	(False, False),
	(1, True),
	(0, False),
	("1", True),
	("0", False),
	("yes", True),
	(" NO ", False),
	("True", True),
	("off", False),
])
def test_parse_switch (value: object, expected: bool) -> None:

	parameter = strummer.config.get_parameter("downbeat_accent")

	assert strummer.config.parse_switch(parameter, value) is expected  # type: ignore[arg-type]


@pytest.mark.parametrize("value", ["maybe", "", 2, -1, 0.5, None])
def test_parse_switch_rejects_other_values (value: object) -> None:

	parameter = strummer.config.get_parameter("first_beat_accent")

	with pytest.raises(ValueError, match="First Beat Accent"):
		strummer.config.parse_switch(parameter, value)  # type: ignore[arg-type]


def test_to_mapping_uses_display_names () -> None:

	mapping = strummer.config.StrumConfig(division=33).to_mapping()

	assert mapping["Strum Division"] == 33
	assert mapping["Strum Direction"] == strummer.constants.DIRECTION_DOWN


# ── CC mapping ───────────────────────────────────────────────────────

def test_cc_scales_onto_parameter_range () -> None:

	"""Without explicit bounds a CC sweeps the parameter's whole range."""

	mappings = [strummer.config.CcMapping(cc=74, key="Strum Division")]
	config = strummer.config.StrumConfig()

	low = strummer.config.apply_cc(config, mappings, mido.Message('control_change', control=74, value=0))
	high = strummer.config.apply_cc(config, mappings, mido.Message('control_change', control=74, value=127))

	assert low.division == 1.0
	assert high.division == 500.0


def test_cc_custom_bounds () -> None:

	mappings = [strummer.config.CcMapping(cc=20, key="division_curve", min_val=0.0, max_val=0.254)]
	config = strummer.config.apply_cc(
		strummer.config.StrumConfig(),
		mappings,
		mido.Message('control_change', control=20, value=127)
	)

	assert config.division_curve == pytest.approx(0.254)


def test_cc_switch_and_menu () -> None:

	"""Switches turn on from 64; the direction menu snaps to an entry."""

	mappings = [
		strummer.config.CcMapping(cc=21, key="first_beat_accent"),
		strummer.config.CcMapping(cc=22, key="direction"),
	]
	config = strummer.config.StrumConfig()

	config = strummer.config.apply_cc(config, mappings, mido.Message('control_change', control=21, value=64))
	config = strummer.config.apply_cc(config, mappings, mido.Message('control_change', control=22, value=127))

	assert config.first_beat_accent is True
	assert config.direction == strummer.constants.DIRECTION_FOLLOW_SIXTEENTHS

	config = strummer.config.apply_cc(config, mappings, mido.Message('control_change', control=21, value=63))

	assert config.first_beat_accent is False


def test_cc_channel_filter_and_no_match () -> None:

	"""Unmatched messages return the very same config object."""

	mappings = [strummer.config.CcMapping(cc=74, key="division", channel=2)]
	config = strummer.config.StrumConfig()

	assert strummer.config.apply_cc(config, mappings, mido.Message('control_change', channel=1, control=74, value=10)) is config
	assert strummer.config.apply_cc(config, mappings, mido.Message('control_change', channel=2, control=75, value=10)) is config
	assert strummer.config.apply_cc(config, mappings, mido.Message('note_on', channel=2, note=74)) is config


def test_cc_mapping_validation () -> None:

	with pytest.raises(ValueError):
		strummer.config.CcMapping(cc=128, key="division")

	with pytest.raises(ValueError):
		strummer.config.CcMapping(cc=1, key="division", channel=16)

	with pytest.raises(ValueError):
		strummer.config.CcMapping(cc=1, key="no_such_parameter")


# ── YAML ─────────────────────────────────────────────────────────────

def test_load_config_reads_yaml (tmp_path: pathlib.Path) -> None:

	path = tmp_path / "strum.yaml"
	path.write_text(
		"midi:\n"
		"  input: Keys\n"
		"  clock_follow: true\n"
		"strum:\n"
		"  direction: follow_eighths\n"
		"  division: 18\n"
		"  downbeat_accent: yes\n"
		"cc:\n"
		"  - cc: 74\n"
		"    key: division\n"
	)

	data = strummer.config.load_config(str(path))
	config = strummer.config.StrumConfig.from_mapping(data["strum"])
	mappings = strummer.config.cc_mappings_from_config(data)

	assert data["midi"] == {"input": "Keys", "clock_follow": True}
	assert config.direction == strummer.constants.DIRECTION_FOLLOW_EIGHTHS
	assert config.division == 18.0
	assert config.downbeat_accent is True
	assert mappings == [strummer.config.CcMapping(cc=74, key="division")]


def test_load_config_missing_file (tmp_path: pathlib.Path, caplog: pytest.LogCaptureFixture) -> None:

	with caplog.at_level(logging.WARNING, logger="strummer.config"):
		data = strummer.config.load_config(str(tmp_path / "missing.yaml"))

	assert data == {}
	assert "not found" in caplog.text


def test_load_config_empty_file (tmp_path: pathlib.Path) -> None:

	path = tmp_path / "empty.yaml"
	path.write_text("")

	assert strummer.config.load_config(str(path)) == {}

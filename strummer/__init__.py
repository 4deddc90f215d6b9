"""
Strummer - turns chords into strums for MIDI.

Notes played together (a chord) are re-sent one after another with a short,
shaped delay and a shaped velocity, the way a pick or finger moves across
strings. Works for guitar, harp, or anything else that should not hit every
note at the same instant.

- **Direction.** Down, up, alternating, or following the beat: down on the
  beat and up on the off-beat, in eighths or sixteenths.
- **Timing.** A base gap between notes, a curve that speeds up or slows
  down the stroke, and optional random jitter.
- **Dynamics.** A per-note velocity curve, random jitter, and accents on
  downbeats and on the first beat of the bar.
- **Live or offline.** ``StrumHost`` strums a MIDI input in real time, on
  its own clock or following external MIDI clock. ``strum_midi_file()``
  strums a Standard MIDI File.

Minimal example:

    ```python
    import strummer

    config = strummer.StrumConfig(direction=strummer.constants.DIRECTION_ALTERNATE, division=15)
    strummer.strum_midi_file("chords.mid", "strummed.mid", config=config, seed=1)
    ```

Package-level exports: ``StrumConfig``, ``StrumEngine``, ``ChordCollector``,
``StrumHost``, ``strum_midi_file``.
"""

import strummer.chord_collector
import strummer.config
import strummer.constants
import strummer.engine
import strummer.host
import strummer.midi_file


ChordCollector = strummer.chord_collector.ChordCollector
StrumConfig = strummer.config.StrumConfig
StrumEngine = strummer.engine.StrumEngine
StrumHost = strummer.host.StrumHost
strum_midi_file = strummer.midi_file.strum_midi_file

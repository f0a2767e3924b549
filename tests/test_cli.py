"""Tests for the command-line preview."""

import mido

from fretline.__main__ import main


def _write_song(path):
    mid = mido.MidiFile(ticks_per_beat=480)
    track = mido.MidiTrack()
    mid.tracks.append(track)
    for pitch in (40, 45, 50):
        track.append(mido.Message("note_on", note=pitch, velocity=100, time=0))
        track.append(mido.Message("note_off", note=pitch, velocity=0, time=960))
    mid.save(str(path))
    return path


def test_prints_targets(tmp_path, capsys):
    path = _write_song(tmp_path / "opens.mid")
    assert main([str(path), "--difficulty", "Hard"]) == 0
    out = capsys.readouterr().out
    assert "opens: 3 targets from 3 notes (Hard)" in out
    assert "string 6  fret  0  finger 0  midi 40" in out


def test_missing_file_reports_error(tmp_path, capsys):
    assert main([str(tmp_path / "missing.mid")]) == 1
    assert "error:" in capsys.readouterr().err

"""Entry point for `python -m fretline` or the `fretline` console script."""

import argparse
import logging
import sys

from fretline.config import DIFFICULTY_PRESETS, get_preset
from fretline.generator import GeneratorOptions, generate_target_notes
from fretline.models import ProfileError, RepresentativePolicy
from fretline.song_loader import SongLoadError, load_midi


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="fretline: preview the guitar targets for a MIDI file")
    parser.add_argument("song", help="Path to a .mid/.midi file")
    parser.add_argument(
        "--difficulty", default="Easy", choices=list(DIFFICULTY_PRESETS), help="Difficulty preset"
    )
    parser.add_argument(
        "--policy",
        default=RepresentativePolicy.HIGHEST.value,
        choices=[p.value for p in RepresentativePolicy],
        help="Which chord tone becomes the target",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        song = load_midi(args.song)
        profile = get_preset(args.difficulty)
        options = GeneratorOptions(representative_policy=RepresentativePolicy(args.policy))
    except (SongLoadError, ProfileError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    targets = generate_target_notes(song.source_notes, profile, song.tempo_map, options)
    print(f"{song.title}: {len(targets)} targets from {len(song.source_notes)} notes ({args.difficulty})")
    for target in targets:
        seconds = song.tempo_map.tick_to_seconds(target.tick)
        print(
            f"{seconds:8.3f}s  string {target.string}  fret {target.fret:2d}  "
            f"finger {target.finger}  midi {target.expected_midi}"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())

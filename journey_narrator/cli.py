"""CLI interface: plan a route, narrate it, export the recap."""

import argparse
import asyncio
import logging
import os
import shutil
import sys

from journey_narrator.artifacts import (
    init_output_dir,
    list_sessions,
    load_artifact,
    slug_from_route,
    write_outline,
    write_route,
    write_script,
)
from journey_narrator.assembly import assemble
from journey_narrator.constants import (
    DEFAULT_STYLE,
    DEFAULT_TRAVEL_MODE,
    DEFAULT_VOICE,
    OUTPUT_DIR,
    OUTPUT_FORMAT,
    TRAVEL_MODES,
    VERSION,
)
from journey_narrator.errors import JourneyError
from journey_narrator.exporter import export
from journey_narrator.journey import Journey
from journey_narrator.llm import OpenRouterClient
from journey_narrator.pipeline import Backends
from journey_narrator.player import Listener
from journey_narrator.routes import GoogleDirectionsResolver, manual_route
from journey_narrator.tts import open_synthesis_context, synthesize
from journey_narrator.voices import STORY_STYLES, VOICES, resolve_voice
from journey_narrator.writer import StoryWriter


def _check_ffmpeg():
    """Verify ffmpeg is installed."""
    if not shutil.which("ffmpeg"):
        print("Error: ffmpeg is required but not found.", file=sys.stderr)
        print("Install with: brew install ffmpeg", file=sys.stderr)
        raise SystemExit(1)


def build_backends() -> Backends:
    writer = StoryWriter(OpenRouterClient.from_env())
    return Backends(
        outline_generator=writer.outline,
        text_generator=writer.segment,
        synthesizer=synthesize,
        context_provider=open_synthesis_context,
    )


def _plan_route(args):
    voice = resolve_voice(args.voice)
    style = args.style.upper()
    if args.minutes is not None:
        return manual_route(args.start, args.end, args.minutes, args.mode, voice, style)
    resolver = GoogleDirectionsResolver.from_env()
    return resolver.resolve(args.start, args.end, args.mode, voice, style)


def _print_segment(segment, total):
    preview = segment.text[:70].replace("\n", " ")
    print(f"  Playing segment {segment.index}/{total}: {preview}...")


async def _narrate(args, backends: Backends) -> str | None:
    route = await asyncio.to_thread(_plan_route, args)
    print(f"Route: {route.start_address} → {route.end_address} ({route.duration_text or route.duration_seconds})")

    journey = Journey(backends)
    print("Crafting story arc and first chapter...")
    timeline = await journey.confirm_route(route)
    if timeline is None:
        return None

    session_dir = init_output_dir(route, output_base=args.output)
    write_route(session_dir, route, timeline.total_segments_estimate)
    write_outline(session_dir, timeline.outline)
    print(f"Story ready: {timeline.total_segments_estimate} segments planned")

    listener = Listener(
        journey,
        session_dir=session_dir,
        speed=args.speed,
        fmt=args.format,
        on_segment=_print_segment,
    )
    try:
        played = await listener.listen()
    finally:
        await journey.engine.settle()
        journey.reset()

    write_script(session_dir, played, timeline.outline)
    if listener.stalled:
        print("Warning: narration stalled waiting for the next segment.", file=sys.stderr)

    if args.no_export or not played:
        return session_dir

    slug = slug_from_route(route)
    path = export(
        assemble(played),
        session_dir,
        slug,
        route,
        len(played),
        timeline.total_segments_estimate,
        fmt=args.format,
    )
    print(f"Done: {path}")
    return session_dir


def cmd_narrate(args):
    """Plan a route and narrate it until the story ends."""
    _check_ffmpeg()
    if args.mode.upper() not in TRAVEL_MODES:
        print(f"Error: Invalid travel mode: {args.mode}", file=sys.stderr)
        raise SystemExit(1)
    if args.style.upper() not in STORY_STYLES:
        print(f"Error: Invalid story style: {args.style}", file=sys.stderr)
        print(f"Valid styles: {', '.join(STORY_STYLES)}", file=sys.stderr)
        raise SystemExit(1)

    try:
        asyncio.run(_narrate(args, build_backends()))
    except JourneyError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)


def cmd_voices(args):
    """List available voices."""
    filter_str = args.filter.lower() if args.filter else None
    voices = {k: v for k, v in VOICES.items() if not filter_str or filter_str in k.lower()}
    if not voices:
        print("No matching voices found.")
        return
    print("Available voices:")
    for voice_id, desc in voices.items():
        marker = "*" if voice_id == DEFAULT_VOICE else " "
        print(f" {marker}{voice_id:<22} {desc}")


def cmd_styles(args):
    """List story styles."""
    print("Story styles:")
    for key, info in STORY_STYLES.items():
        print(f"  {key:<12} {info['label']}: {info['description']}")


def cmd_list(args):
    """List narrated sessions."""
    sessions = list_sessions(output_base=args.output)
    if not sessions:
        print("No sessions found.")
        return
    print("Sessions:")
    for name in sessions:
        session_dir = os.path.join(args.output, name)
        exported = os.path.exists(os.path.join(session_dir, "final", "output.json"))
        route = load_artifact(session_dir, "route.json") or {}
        marker = "[done]" if exported else "[----]"
        print(f"  {marker} {name} ({route.get('style', '?')}, {route.get('total_segments_estimate', '?')} segments)")


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="journey-narrator",
        description="Journey Narrator: turn a route into a living audio story",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show generation logs")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # narrate
    narrate_parser = subparsers.add_parser("narrate", help="Narrate a journey from START to END")
    narrate_parser.add_argument("start", help="Starting point")
    narrate_parser.add_argument("end", help="Destination")
    narrate_parser.add_argument("--mode", default=DEFAULT_TRAVEL_MODE, help="WALKING or DRIVING")
    narrate_parser.add_argument("--minutes", type=float, help="Travel time; skips the directions lookup")
    narrate_parser.add_argument("--voice", default=DEFAULT_VOICE, help="Narration voice id")
    narrate_parser.add_argument("--style", default=DEFAULT_STYLE, help="Story style (see 'styles')")
    narrate_parser.add_argument("--speed", type=float, default=1.0,
                                help="Playback speed; 0 writes segments as soon as they are ready")
    narrate_parser.add_argument("--output", default=OUTPUT_DIR, help="Output directory")
    narrate_parser.add_argument("--format", default=OUTPUT_FORMAT, help="Audio format for saved segments")
    narrate_parser.add_argument("--no-export", action="store_true", help="Skip the recap export")
    narrate_parser.set_defaults(func=cmd_narrate)

    # voices
    voices_parser = subparsers.add_parser("voices", help="List available voices")
    voices_parser.add_argument("--filter", help="Filter voices by substring")
    voices_parser.set_defaults(func=cmd_voices)

    # styles
    styles_parser = subparsers.add_parser("styles", help="List story styles")
    styles_parser.set_defaults(func=cmd_styles)

    # list
    list_parser = subparsers.add_parser("list", help="List narrated sessions")
    list_parser.add_argument("--output", default=OUTPUT_DIR, help="Output directory")
    list_parser.set_defaults(func=cmd_list)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return

    args.func(args)

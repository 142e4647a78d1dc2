"""
narrgen CLI - Command-line interface for the interpreter.

Usage:
    narrgen validate <model_file>...        Validate one or more model files
    narrgen play <model_file> [--choose ID]  Walk a model (interactive without --choose)
    narrgen dsl condition|effect <text>      Parse DSL text and show its structure
"""

import argparse
import json
import sys

from .config import EngineSettings
from .errors import NarrativeError
from .observability.logging import configure_logging


def main(argv=None):
    """Main CLI entry point. Returns the process exit code."""
    settings = EngineSettings.from_env()
    configure_logging(settings.log_level, settings.log_json)

    parser = argparse.ArgumentParser(
        description="narrgen - Interactive narrative graph interpreter",
        prog="narrgen",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate model files")
    validate_parser.add_argument("model_files", nargs="+", help="Paths to model JSON files")
    validate_parser.add_argument(
        "--no-circular",
        action="store_true",
        default=not settings.allow_circular_references,
        help="Reject models whose transition graph contains a cycle",
    )

    # Play command
    play_parser = subparsers.add_parser("play", help="Play through a model")
    play_parser.add_argument("model_file", help="Path to model JSON file")
    play_parser.add_argument(
        "--choose",
        action="append",
        default=[],
        metavar="CHOICE_ID",
        help="Apply this choice (repeatable); omit for interactive play",
    )
    play_parser.add_argument("--catalog", help="Path to an entity catalog JSON file")

    # DSL command
    dsl_parser = subparsers.add_parser("dsl", help="Parse condition or effect text")
    dsl_parser.add_argument("kind", choices=["condition", "effect"])
    dsl_parser.add_argument("text", help="DSL text, e.g. 'flag:hasKey=true'")

    args = parser.parse_args(argv)

    try:
        if args.command == "validate":
            return cmd_validate(args)
        if args.command == "play":
            return cmd_play(args)
        if args.command == "dsl":
            return cmd_dsl(args)
    except NarrativeError as e:
        print(f"Error: {e}")
        return 1

    parser.print_help()
    return 1


def cmd_validate(args):
    """Validate model files, reporting every issue."""
    from .story_schema.validation import (
        ModelValidationError, ValidatorOptions, load_model_file,
    )

    options = ValidatorOptions(allow_circular_references=not args.no_circular)
    failed = 0
    for path in args.model_files:
        try:
            model = load_model_file(path, options)
        except FileNotFoundError:
            print(f"{path}: file not found")
            failed += 1
            continue
        except ModelValidationError as e:
            print(f"{path}: {len(e.issues)} issue(s)")
            for issue in e.issues:
                print(f"  - {issue}")
            failed += 1
            continue
        except NarrativeError as e:
            print(f"{path}: {e}")
            failed += 1
            continue
        print(f"{path}: OK ({len(model.nodes)} nodes, start: {model.start_node})")

    return 1 if failed else 0


def _print_node(session):
    node = session.model.get_node(session.current_node)
    print(f"\n[{session.current_node}] (time {session.current_time})")
    if node and node.text:
        print(node.text)
    choices = session.available_choices()
    for index, choice in enumerate(choices, start=1):
        print(f"  {index}. {choice.text or choice.id} ({choice.id})")
    return choices


def _load_catalog(path):
    from .session.inventory import Entity

    if not path:
        return None
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = list(data.values())
    return [Entity.from_dict(item) for item in data]


def cmd_play(args):
    """Walk a model, scripted with --choose or interactively."""
    from .session.game_session import GameSession
    from .story_schema.validation import load_model_file

    try:
        model = load_model_file(args.model_file)
    except FileNotFoundError:
        print(f"Error: File not found: {args.model_file}")
        return 1

    session = GameSession(model, catalog=_load_catalog(args.catalog))

    if args.choose:
        for choice_id in args.choose:
            session.apply_choice(choice_id)
            print(f"{choice_id} -> {session.current_node}")
        print(json.dumps(session.state.to_dict(), indent=2, ensure_ascii=False))
        if session.inventory.ids():
            print(f"Inventory: {', '.join(session.inventory.ids())}")
        return 0

    while True:
        choices = _print_node(session)
        if not choices:
            print("\nThe End.")
            return 0
        try:
            answer = input("> ").strip()
        except EOFError:
            return 0
        if answer in {"q", "quit"}:
            return 0
        if answer.isdigit() and 1 <= int(answer) <= len(choices):
            answer = choices[int(answer) - 1].id
        try:
            session.apply_choice(answer)
        except NarrativeError as e:
            print(f"Error: {e}")


def cmd_dsl(args):
    """Parse DSL text and print the structured form and its serialization."""
    from .story_schema import dsl
    from .story_schema.types import RawCondition, RawEffect, dump_condition, dump_effect

    if args.kind == "condition":
        parsed = dsl.parse_condition(args.text)
        dumped = dump_condition(parsed) if parsed is not None else None
        text = dsl.serialize_condition(parsed) if parsed is not None else ""
        raw = isinstance(parsed, RawCondition)
    else:
        parsed = dsl.parse_effect(args.text)
        dumped = dump_effect(parsed) if parsed is not None else None
        text = dsl.serialize_effect(parsed) if parsed is not None else ""
        raw = isinstance(parsed, RawEffect)

    print(json.dumps(dumped, indent=2, ensure_ascii=False))
    print(f"serialized: {text}")
    if raw:
        print("(unrecognised; kept as text)")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Deckplay CLI - Command-line interface for the engine.

Usage:
    deckplay demo [--seed N]              Build, lock, shuffle and play a sample deck
    deckplay validate <record_file>       Check a saved builder record
    deckplay export [-o FILE]             Export the "collapse." namespace
    deckplay import <bundle_file> [--yes] Replace the namespace from a bundle
    deckplay serve [--host H] [--port P]  Run the HTTP API
"""

import argparse
import json
import logging
import random
import sys

logger = logging.getLogger(__name__)


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Deckplay - Deck Builder and Play Engine",
        prog="deckplay",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--storage-dir", help="Store directory (default ~/.deckplay/store)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Play a sample deck in memory")
    demo_parser.add_argument("--seed", type=int, default=None, help="Shuffle seed")
    demo_parser.add_argument("--draws", type=int, default=5, help="Cards to draw")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a saved builder record")
    validate_parser.add_argument("record_file", help="Path to a record JSON file")

    # Export command
    export_parser = subparsers.add_parser("export", help="Export namespaced data")
    export_parser.add_argument("--output", "-o", help="Output file (default collapse-data-MMDDYY-HHMMSS.json)")

    # Import command
    import_parser = subparsers.add_parser("import", help="Import (replace) namespaced data")
    import_parser.add_argument("bundle_file", help="Path to an export bundle")
    import_parser.add_argument("--yes", "-y", action="store_true", help="Skip the confirmation prompt")
    import_parser.add_argument("--backup-dir", help="Where to write the backup")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "demo":
        cmd_demo(args)
    elif args.command == "validate":
        cmd_validate(args)
    elif args.command == "export":
        cmd_export(args)
    elif args.command == "import":
        cmd_import(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def _open_store(args):
    from .storage import DeckStore
    return DeckStore(args.storage_dir) if args.storage_dir else DeckStore()


def cmd_demo(args):
    """Build a valid deck, lock, shuffle, draw and play one card."""
    from .engine_core.rules import BuildRules
    from .session import SessionManager

    manager = SessionManager(rules=BuildRules.from_env())
    session = manager.create_session(rng=random.Random(args.seed))
    catalog, rules = session.catalog, session.rules

    # Spread the base target over the base cards
    bases = catalog.list_base_cards()
    for i, card in enumerate(bases):
        share = rules.base_target // len(bases) + (1 if i < rules.base_target % len(bases) else 0)
        session.adjust_base_count(card.id, share - session.deck_state.composition.base_counts[card.id])

    # One of each modifier while capacity allows
    for card in catalog.list_modifier_cards():
        session.adjust_mod_count(card.id, 1)

    validity = session.validity()
    print(f"Composition valid: {validity.overall}")
    print(f"Modifier capacity: {session.capacity_used()}/{session.deck_state.composition.modifier_capacity}")

    result = session.toggle_lock()
    if result.notice:
        print(result.notice)
    session.shuffle()
    print(session.deck_state.lock_label)

    for _ in range(args.draws):
        result = session.draw()
        if not result.success:
            print(f"Draw stopped: {result.error}")
            break

    hand = [entry.card_id for entry in session.deck_state.hand]
    print(f"Hand: {', '.join(hand) or '(empty)'}")

    base = next((c for c in hand if catalog.get_card(c).is_base), None)
    if base:
        session.start_play(base)
        for card_id in hand:
            if catalog.is_modifier(card_id):
                session.toggle_attach(card_id)
        play = session.deck_state.active_play
        print(f"Playing {play.base_id} with {list(play.mods) or 'no modifiers'}")
        session.finalize_play()

    health = session.health()
    print(f"{health.label} ({health.variant})")
    print(f"Discard: {[d.card_id for d in session.deck_state.discard]}")


def cmd_validate(args):
    """Load a record the way the builder would and report its validity."""
    from .engine_core.composition import validate_composition
    from .engine_core.rules import BuildRules
    from .games.collapse import create_collapse_catalog
    from .storage import deserialize

    try:
        with open(args.record_file, "r", encoding="utf-8") as f:
            raw = f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {args.record_file}")
        sys.exit(1)

    catalog = create_collapse_catalog()
    rules = BuildRules.from_env()
    state = deserialize(raw, catalog, rules)
    validity = validate_composition(state.composition, rules, catalog)

    print(f"Lifecycle: {state.lifecycle.value}")
    print(f"Base total: {state.composition.base_total}/{rules.base_target} "
          f"({'ok' if validity.base_valid else 'invalid'})")
    print(f"Null cards: {state.composition.null_count} "
          f"({'ok' if validity.null_valid else 'invalid'})")
    print(f"Modifiers: {'ok' if validity.mod_valid else 'over capacity'}")
    print(f"Zones: deck={len(state.deck)} hand={len(state.hand)} discard={len(state.discard)}")

    if not validity.overall:
        sys.exit(1)


def cmd_export(args):
    """Write the export bundle to a file."""
    from .storage import BundleError, export_bundle, export_filename, write_json

    store = _open_store(args)
    try:
        payload = export_bundle(store)
    except BundleError as e:
        print(f"Error: {e}")
        sys.exit(1)

    path = write_json(args.output or export_filename(), payload)
    print(f"Exported {len(payload['data'])} key(s) to {path}")


def cmd_import(args):
    """Replace the namespace with a bundle, after a backup and confirmation."""
    from .storage import BundleError, StorageError, import_bundle

    try:
        with open(args.bundle_file, "r", encoding="utf-8") as f:
            raw = f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {args.bundle_file}")
        sys.exit(1)

    def confirm(message):
        if args.yes:
            return True
        return input(f"{message} [y/N] ").strip().lower() in {"y", "yes"}

    store = _open_store(args)
    try:
        result = import_bundle(store, raw, confirm=confirm, backup_dir=args.backup_dir)
    except (BundleError, StorageError) as e:
        print(f"Import failed: {e}")
        sys.exit(1)

    print(f"Backup written to {result.backup_path}")
    if not result.applied:
        print("Import cancelled. No changes were made.")
        return
    print(f"Imported {len(result.keys)} key(s): {json.dumps(result.keys)}")


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Install with: pip install uvicorn")
        sys.exit(1)

    from .api.app import create_app
    from .api.service import APIService
    from .engine_core.rules import BuildRules
    from .session import SessionManager

    service = APIService(
        session_manager=SessionManager(store=_open_store(args), rules=BuildRules.from_env())
    )
    logger.info("Serving on %s:%d", args.host, args.port)
    uvicorn.run(create_app(service), host=args.host, port=args.port)


if __name__ == "__main__":
    main()

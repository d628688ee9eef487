"""
Charla command line: inspect history and review flashcards without the PWA.

Usage:
    python -m server.cli history [--limit 20] [--search text]
    python -m server.cli due
    python -m server.cli review <key> <quality>
    python -m server.cli favorite <key> [--off]
    python -m server.cli delete <key>
    python -m server.cli stats
    python -m server.cli purge
    python -m server.cli serve [--host 0.0.0.0] [--port 8000]

All commands take --db <sqlalchemy url> (default: $DATABASE_URL or ./charla.db),
or --memory for a throwaway in-process store (mostly useful with serve).
"""

import argparse
import logging
import sys
from datetime import datetime, timezone

from phrasebook.clock import Clock
from phrasebook.deck import FlashcardDeck
from phrasebook.errors import InvalidInput, NotFound, StoreUnavailable
from phrasebook.history import HistoryStore
from phrasebook.kv import MemoryKeyValueStore
from server.config import Settings
from server.db.kv_store import SqlKeyValueStore
from server.db.session import get_engine, init_db


def _build(args):
    settings = Settings(database_url=args.db) if args.db else Settings()
    clock = Clock.from_name(settings.timezone)
    if args.memory:
        store = MemoryKeyValueStore(clock)
    else:
        init_db(settings)
        store = SqlKeyValueStore(get_engine(settings), clock=clock)
    history = HistoryStore(
        store, clock=clock,
        max_entries=settings.history_max_entries,
        record_ttl_seconds=settings.record_ttl_seconds,
    )
    deck = FlashcardDeck(history, schedule_ttl_seconds=settings.schedule_ttl_seconds)
    return settings, store, history, deck


def _fmt_ms(ms: int) -> str:
    return datetime.fromtimestamp(ms // 1000, tz=timezone.utc).strftime('%Y-%m-%d %H:%M')


def _print_warnings(outcome):
    for w in outcome.warnings:
        print(f"  warning: {w}")


def cmd_history(args):
    """Show recent translations."""
    _, _, history, _ = _build(args)
    records = history.list(args.limit, query=args.search)
    if not records:
        print(f"No translations match '{args.search}'." if args.search else "No translations yet.")
        return
    for i, r in enumerate(records, 1):
        star = '*' if r.favorite else ' '
        print(f"  {i:>3}.{star} [{r.from_lang}->{r.to_lang}] {r.original[:60]}")
        print(f"        {r.translation[:70]}")
        print(f"        {r.key}  {_fmt_ms(r.timestamp)}")


def cmd_due(args):
    """Show due flashcards."""
    _, _, _, deck = _build(args)
    due = deck.due_cards()
    if not due:
        print("No cards due. Come back later!")
        return
    print(f"\n{len(due)} card(s) due for review:\n")
    for i, card in enumerate(due, 1):
        s = card.state
        print(f"  {i}. {card.record.original[:80]}")
        print(f"     key={card.record.key}  ease={s.ease_factor:.2f}  "
              f"reps={s.repetitions}  interval={s.interval}d")


def cmd_review(args):
    """Grade one card (0-5)."""
    _, _, _, deck = _build(args)
    summary = deck.submit_review(args.key, args.quality)
    print(f"Next review {_fmt_ms(summary.next_review)} UTC (in {summary.interval} day(s)), "
          f"ease={summary.state.ease_factor:.2f}")


def cmd_favorite(args):
    _, _, history, _ = _build(args)
    outcome = history.set_favorite(args.key, not args.off)
    print(f"{args.key}: favorite={outcome.value.favorite}")
    _print_warnings(outcome)


def cmd_delete(args):
    _, _, history, _ = _build(args)
    outcome = history.delete(args.key)
    print(f"Deleted {args.key}")
    _print_warnings(outcome)


def cmd_stats(args):
    """Show deck statistics."""
    _, _, _, deck = _build(args)
    stats = deck.stats()
    print(f"  Favorites: {stats.favorites}")
    print(f"  Due now:   {stats.due}")
    print(f"  Scheduled: {stats.scheduled}")
    print(f"  Learning:  {stats.learning}")


def cmd_purge(args):
    """Delete expired records and schedules from the store."""
    _, store, _, _ = _build(args)
    removed = store.purge_expired()
    print(f"Purged {removed} expired entr{'y' if removed == 1 else 'ies'}.")


def cmd_serve(args):
    import os
    import uvicorn

    if args.db:
        os.environ["DATABASE_URL"] = args.db
    if not args.memory:
        uvicorn.run("server.app:app", host=args.host, port=args.port)
        return

    from server.app import app
    from server.dependencies import get_store

    _, store, _, _ = _build(args)
    app.dependency_overrides[get_store] = lambda: store
    uvicorn.run(app, host=args.host, port=args.port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='charla',
        description="Translation history and flashcard review",
    )
    parser.add_argument(
        '--db', default=None,
        help="SQLAlchemy database URL (default: $DATABASE_URL or sqlite:///charla.db)",
    )
    parser.add_argument(
        '--memory', action='store_true',
        help="Use an in-process store that is discarded on exit (ignores --db)",
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    history_parser = subparsers.add_parser('history', help='Show recent translations')
    history_parser.add_argument('--limit', type=int, default=20,
                                help='Number of entries (default: 20)')
    history_parser.add_argument('-s', '--search', default=None,
                                help='Only entries containing this text')

    subparsers.add_parser('due', help='Show cards due for review')

    review_parser = subparsers.add_parser('review', help='Grade a card')
    review_parser.add_argument('key', help='Translation key, e.g. translation:1700000000000')
    review_parser.add_argument('quality', type=int, help='Recall quality 0-5')

    fav_parser = subparsers.add_parser('favorite', help='Add a translation to the deck')
    fav_parser.add_argument('key', help='Translation key')
    fav_parser.add_argument('--off', action='store_true', help='Remove from favorites instead')

    delete_parser = subparsers.add_parser('delete', help='Delete a translation')
    delete_parser.add_argument('key', help='Translation key')

    subparsers.add_parser('stats', help='Show deck statistics')
    subparsers.add_parser('purge', help='Remove expired entries')

    serve_parser = subparsers.add_parser('serve', help='Run the HTTP API')
    serve_parser.add_argument('--host', default='127.0.0.1')
    serve_parser.add_argument('--port', type=int, default=8000)

    return parser


COMMANDS = {
    'history': cmd_history,
    'due': cmd_due,
    'review': cmd_review,
    'favorite': cmd_favorite,
    'delete': cmd_delete,
    'stats': cmd_stats,
    'purge': cmd_purge,
    'serve': cmd_serve,
}


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        handler(args)
    except InvalidInput as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 2
    except NotFound as e:
        print(str(e), file=sys.stderr)
        return 3
    except StoreUnavailable as e:
        print(f"Store unavailable: {e}", file=sys.stderr)
        return 4
    return 0


if __name__ == '__main__':
    sys.exit(main())

import json
import logging
import sys
from pathlib import Path

import click

from cas_store import LocalStore, StoreError, open_store

from .config import VerifyConfig, load_public_keys
from .const import EXIT_INTERRUPTED
from .pool import verify_paths

CANONICAL_JSON_KW = {"sort_keys": True, "separators": (",", ":"), "ensure_ascii": False}

LOG_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG]


def verify_options(f):
    """Options shared by verify-paths and verify-store."""
    options = [
        click.option("--no-contents", is_flag=True, help="Do not verify the contents of each entry."),
        click.option("--no-trust", is_flag=True, help="Do not verify whether each entry is trusted."),
        click.option("-s", "--substituter", "substituters", multiple=True, metavar="STORE-URI",
                     help="Use signatures from the specified store (repeatable)."),
        click.option("-n", "--sigs-needed", type=click.IntRange(min=0), default=0, show_default=True,
                     help="Require that each entry has at least N valid signatures."),
        click.option("-j", "--jobs", type=click.IntRange(min=1), default=None,
                     help="Number of concurrent workers [default: CPU count]."),
        click.option("--trusted-key", "trusted_keys", multiple=True, envvar="CAS_TRUSTED_PUBLIC_KEYS",
                     metavar="NAME:KEY", help="Trust signatures made by this public key (repeatable)."),
        click.option("--trust-store", type=click.Path(exists=True, dir_okay=False, path_type=Path),
                     help="JSON file listing trusted_public_keys [default: <store>/trust_store.json]."),
        click.option("--json", "json_out", is_flag=True, help="Print the result as JSON."),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _status_line(line: str) -> None:
    click.echo("\r\033[K" + line, err=True, nl=False)


def _run(store: LocalStore, paths, no_contents, no_trust, substituters, sigs_needed,
         jobs, trusted_keys, trust_store, json_out) -> None:
    try:
        public_keys = load_public_keys(store.root, trust_store, trusted_keys)
    except (OSError, ValueError) as e:
        # Fail closed with a single-line reason.
        click.echo(f"FATAL: {e}", err=True)
        raise SystemExit(1)

    config = VerifyConfig(
        check_contents=not no_contents,
        check_trust=not no_trust,
        sigs_needed=sigs_needed,
        substituters=tuple(substituters),
        jobs=jobs,
    )

    live = sys.stderr.isatty() and not json_out
    try:
        status = verify_paths(
            store, paths, config,
            public_keys=public_keys,
            on_status=_status_line if live else None,
        )
    except StoreError as e:
        click.echo(f"FATAL: {e}", err=True)
        raise SystemExit(1)
    if live:
        click.echo(err=True)

    if json_out:
        click.echo(json.dumps(status.as_dict(), **CANONICAL_JSON_KW))
    else:
        click.echo(status.summary())

    if status.cancelled:
        click.echo("error: interrupted by the user", err=True)
        raise SystemExit(EXIT_INTERRUPTED)
    raise SystemExit(status.exit_flags().code)


@click.group()
@click.option("--store", "store_uri", envvar="CAS_STORE", required=True, metavar="STORE-URI",
              help="Store to verify (path or file:// URI).")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (repeatable).")
@click.pass_context
def main(ctx: click.Context, store_uri: str, verbose: int):
    """Verify the integrity and trust of content-addressed store entries."""
    logging.basicConfig(
        level=LOG_LEVELS[min(verbose, len(LOG_LEVELS) - 1)],
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        store = open_store(store_uri)
    except StoreError as e:
        raise click.BadParameter(str(e), param_hint="--store")
    ctx.obj = store
    ctx.call_on_close(store.close)


@main.command("verify-paths")
@click.argument("paths", nargs=-1, required=True)
@verify_options
@click.pass_obj
def verify_paths_cmd(store: LocalStore, paths, **opts):
    """Verify the integrity of the given store entries."""
    try:
        entries = [store.to_entry_path(p) for p in paths]
    except StoreError as e:
        raise click.UsageError(str(e))
    _run(store, entries, **opts)


@main.command("verify-store")
@verify_options
@click.pass_obj
def verify_store_cmd(store: LocalStore, **opts):
    """Verify the integrity of every valid entry in the store."""
    try:
        entries = store.query_all_valid()
    except StoreError as e:
        click.echo(f"FATAL: {e}", err=True)
        raise SystemExit(1)
    _run(store, entries, **opts)


if __name__ == "__main__":
    main()

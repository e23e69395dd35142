# confbind/cli.py

import fnmatch
import json
import re

import click

from .encryption import SecretDecryptor
from .exceptions import ConfigError
from .manager import ConfigManager
from .sources import InMemoryConfigSource
from .utils import get_by_dot, iter_leaves, set_by_dot

# Above the environment source (200), so --set always wins.
OVERRIDE_PRIORITY = 1000


def _match(pattern: str, text: str, ignore_case: bool = False) -> bool:
    """
    Try glob first, then regex, then exact match.
      - Glob if pattern contains *, ?, [ or ]
      - Regex if pattern contains any of . + ^ $ ( ) { } | \\
      - Exact otherwise
    Honors ignore_case by lowercasing both pattern & text.
    """
    if ignore_case:
        pattern = pattern.lower()
        text = text.lower()

    if any(c in pattern for c in "*?[]"):
        return fnmatch.fnmatch(text, pattern)

    if any(c in pattern for c in ".+^$(){}|\\"):
        flags = re.IGNORECASE if ignore_case else 0
        return re.search(pattern, text, flags) is not None

    return pattern == text


def _parse_overrides(pairs) -> dict:
    """Turn `key=json_value` pairs into a nested dict; non-JSON values stay strings."""
    overrides = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--set")
        key, raw = pair.split("=", 1)
        try:
            value = json.loads(raw.strip())
        except json.JSONDecodeError:
            value = raw.strip()
        set_by_dot(overrides, key.strip(), value)
    return overrides


def _echo_json(value) -> None:
    click.echo(json.dumps(value, indent=2, default=str))


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-d", "--config-dir", default="./config", show_default=True,
              help="Directory holding application*.{json,yml,yaml,toml}")
@click.option("-p", "--profile", help="Active profile (default: $CONFBIND_PROFILE or development)")
@click.option("-e", "--env-prefix", help="Only load environment variables with this prefix")
@click.option("-k", "--encryption-key", envvar="CONFBIND_ENCRYPTION_KEY",
              help="32-byte key for ENC(...) values")
@click.option("--no-placeholders", is_flag=True, help="Do not resolve ${NAME:fallback} references")
@click.option("-s", "--set", "overrides", multiple=True, help="Override as KEY=JSON_VALUE (repeatable)")
@click.pass_context
def cli(ctx, config_dir, profile, env_prefix, encryption_key, no_placeholders, overrides):
    """
    confbind CLI: inspect resolved configuration.

    Loads config_dir/application*.{json,yml,yaml,toml}, the profile files and
    the environment, then runs a subcommand:
      • get       KEY
      • exists    KEY
      • search    [--key PAT] [--val PAT] [-i]
      • dump
      • explain   KEY
      • encrypt   VALUE
      • decrypt   VALUE
    """
    ctx.ensure_object(dict)
    ctx.obj["encryption_key"] = encryption_key
    if ctx.invoked_subcommand in ("encrypt", "decrypt"):
        return

    sources = []
    if overrides:
        sources.append(InMemoryConfigSource(_parse_overrides(overrides), OVERRIDE_PRIORITY, name="cli"))

    try:
        manager = ConfigManager(
            profile=profile,
            config_dir=config_dir,
            env_prefix=env_prefix,
            additional_sources=sources,
            encryption_key=encryption_key,
            enable_placeholder_resolution=not no_placeholders,
            track_provenance=True,
        )
        manager.initialize()
    except ConfigError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        ctx.exit(1)

    ctx.obj["manager"] = manager
    ctx.call_on_close(manager.dispose)


@cli.command()
@click.argument("key")
@click.pass_context
def get(ctx, key):
    """Print the value of KEY (dot-notation) as JSON."""
    tree = ctx.obj["manager"].get_all()
    try:
        val = get_by_dot(tree, key)
    except KeyError:
        click.secho(f"Key not found: {key}", fg="yellow", err=True)
        ctx.exit(1)
    _echo_json(val)


@cli.command()
@click.argument("key")
@click.pass_context
def exists(ctx, key):
    """Exit 0 if KEY exists in config, 1 otherwise."""
    if ctx.obj["manager"].has(key):
        click.echo("true")
        ctx.exit(0)
    click.echo("false")
    ctx.exit(1)


@cli.command()
@click.option("--key", "key_pat", help="Pattern for keys (regex/glob/plain)")
@click.option("--val", "val_pat", help="Pattern for values (regex/glob/plain)")
@click.option("-i", "--ignore-case", is_flag=True,
              help="Make key/value matching case-insensitive")
@click.pass_context
def search(ctx, key_pat, val_pat, ignore_case):
    """
    Search for keys/values matching patterns.
    At least one of --key or --val must be provided.
    """
    if not (key_pat or val_pat):
        click.secho("Error: supply --key or --val", fg="red", err=True)
        ctx.exit(1)

    found = {}
    for k, v in iter_leaves(ctx.obj["manager"].get_all()):
        ks = _match(key_pat, k, ignore_case) if key_pat else True
        vs = _match(val_pat, str(v), ignore_case) if val_pat else True
        if ks and vs:
            found[k] = v

    if not found:
        click.echo("No matches")
        ctx.exit(1)

    _echo_json(found)


@cli.command()
@click.pass_context
def dump(ctx):
    """Pretty-print the entire resolved config as JSON."""
    _echo_json(ctx.obj["manager"].get_all())


@cli.command()
@click.argument("key")
@click.pass_context
def explain(ctx, key):
    """Show which sources set KEY, oldest first; the last line wins."""
    history = ctx.obj["manager"].provenance(key)
    if not history:
        click.secho(f"No provenance recorded for: {key}", fg="yellow", err=True)
        ctx.exit(1)
    for entry in history:
        click.echo(repr(entry))


def _decryptor(ctx) -> SecretDecryptor:
    key = ctx.obj.get("encryption_key")
    if not key:
        click.secho("Error: --encryption-key (or $CONFBIND_ENCRYPTION_KEY) is required", fg="red", err=True)
        ctx.exit(1)
    try:
        return SecretDecryptor(key)
    except ConfigError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        ctx.exit(1)


@cli.command()
@click.argument("value")
@click.pass_context
def encrypt(ctx, value):
    """Print VALUE as an ENC(iv:cipher) envelope."""
    click.echo(_decryptor(ctx).encrypt(value))


@cli.command()
@click.argument("value")
@click.pass_context
def decrypt(ctx, value):
    """Decrypt an ENC(iv:cipher) envelope."""
    try:
        click.echo(_decryptor(ctx).decrypt(value))
    except ConfigError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        ctx.exit(1)

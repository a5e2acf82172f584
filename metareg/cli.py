"""metareg CLI — manage a filesystem-based entity metadata registry."""

from __future__ import annotations

from contextlib import contextmanager
from typing import NoReturn

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from metareg import __version__
from metareg.config import RegistryConfig, load_config
from metareg.errors import InvalidMetadataError, RegistryError
from metareg.log import configure_logging

console = Console()


@contextmanager
def _fail_on_error(action: str):
    """Print registry errors and exit with status 1."""
    try:
        yield
    except RegistryError as e:
        console.print(f"[red]Error:[/] {action}: {escape(str(e))}")
        raise SystemExit(1) from e


def _abort(message: str) -> NoReturn:
    console.print(f"[red]Error:[/] {escape(message)}")
    raise SystemExit(1)


def _local_provider(cfg: RegistryConfig, registry_dir: str | None):
    from metareg.registry import new_filesystem_path_provider

    return new_filesystem_path_provider(
        registry_dir or cfg.registry_dir,
        max_statement_size=cfg.max_statement_size,
    )


def _read_provider(
    cfg: RegistryConfig,
    registry_dir: str | None,
    use_git: bool,
    git_url: str | None,
    branch: str | None,
):
    if not use_git:
        return _local_provider(cfg, registry_dir)

    from metareg.registry.git_provider import GitConfig, new_git_provider

    git_cfg = GitConfig(url=git_url or cfg.git_url, branch=branch or cfg.git_branch)
    console.print(f"Cloning {git_cfg.url} ({git_cfg.branch})...", style="dim")
    return new_git_provider(git_cfg, max_statement_size=cfg.max_statement_size)


registry_dir_option = click.option(
    "--registry-dir", "-r", default=None, help="Registry directory (default: from config)"
)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, type=click.Path(dir_okay=False), help="Configuration file")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool):
    """metareg — entity metadata registry tooling.

    Create a registry, sign and submit entity metadata statements, and
    verify the integrity of the registry and of updates to it.
    """
    configure_logging(verbose)
    try:
        ctx.obj = load_config(config_path)
    except (OSError, ValueError) as e:
        _abort(f"failed to load configuration: {e}")


# ── Registry ─────────────────────────────────────────────────────────


@main.command()
@registry_dir_option
@click.pass_obj
def init(cfg: RegistryConfig, registry_dir: str | None):
    """Initialize a metadata registry in the registry directory."""
    p = _local_provider(cfg, registry_dir)

    with _fail_on_error("failed to initialize registry"):
        p.init()

    console.print(f"Initialized metadata registry in {escape(p.base_dir)}")


@main.command()
@registry_dir_option
@click.option("--update-from", default=None, help="Verify update from a previous registry snapshot")
@click.pass_obj
def verify(cfg: RegistryConfig, registry_dir: str | None, update_from: str | None):
    """Verify the integrity of the registry."""
    from metareg.registry import new_filesystem_path_provider

    p = _local_provider(cfg, registry_dir)

    with _fail_on_error("registry integrity verification failed"):
        p.verify()
    console.print("  [green]v[/] Registry integrity verified")

    if not update_from:
        return

    console.print(f"\nVerifying update from previous snapshot: {escape(update_from)}")
    src = new_filesystem_path_provider(update_from, max_statement_size=cfg.max_statement_size)
    with _fail_on_error("update integrity verification failed"):
        p.verify_update(src)
    console.print("  [green]v[/] Update integrity verified")


# ── Entity ───────────────────────────────────────────────────────────


@main.group()
def entity():
    """Entity-related subcommands."""


@entity.command()
@click.argument("descriptor", type=click.Path(exists=True, dir_okay=False))
@registry_dir_option
@click.option("--signer-key", default=None, help="PEM-encoded Ed25519 entity key (default: from config)")
@click.option("--skip-validation", is_flag=True, help="Do not validate the descriptor before signing")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
def update(
    cfg: RegistryConfig,
    descriptor: str,
    registry_dir: str | None,
    signer_key: str | None,
    skip_validation: bool,
    assume_yes: bool,
):
    """Update (or create) an entity in the registry.

    DESCRIPTOR is a YAML or JSON file holding the entity metadata.
    """
    from metareg.metadata import load_metadata_file
    from metareg.signature import Ed25519Signer
    from metareg.statement import sign_entity_metadata

    p = _local_provider(cfg, registry_dir)

    try:
        meta = load_metadata_file(descriptor)
    except OSError as e:
        _abort(f"failed to read entity descriptor: {e}")
    except InvalidMetadataError as e:
        _abort(f"failed to parse serialized entity metadata: {e}")

    if not skip_validation:
        try:
            meta.validate_basic()
        except InvalidMetadataError as e:
            _abort(f"provided entity metadata is invalid: {e}")

    key_path = signer_key or cfg.signer_key
    try:
        signer = Ed25519Signer.load(key_path)
    except (OSError, ValueError) as e:
        _abort(f"failed to load signer from {key_path}: {e}")

    console.print("You are about to sign the following entity metadata descriptor:")
    console.print(meta.pretty_print("  "), markup=False, highlight=False)

    if not assume_yes:
        if not click.confirm("\nAre you sure you want to continue?", default=False):
            raise SystemExit(1)

    signed = sign_entity_metadata(signer, meta)

    with _fail_on_error("failed to update metadata"):
        p.update_entity(signed)

    console.print(f"Updated entity {signer.public()}")


@entity.command()
@click.argument("entity_id")
@registry_dir_option
@click.option("--git", "use_git", is_flag=True, help="Read from the configured Git registry")
@click.option("--git-url", default=None, help="Git repository URL (default: from config)")
@click.option("--branch", default=None, help="Git branch (default: from config)")
@click.pass_obj
def show(
    cfg: RegistryConfig,
    entity_id: str,
    registry_dir: str | None,
    use_git: bool,
    git_url: str | None,
    branch: str | None,
):
    """Show the metadata of a single entity (hex or base64 ENTITY_ID)."""
    from metareg.signature import PublicKey

    try:
        pk = PublicKey.parse(entity_id)
    except ValueError as e:
        _abort(str(e))

    with _fail_on_error(f"failed to get entity {entity_id}"):
        p = _read_provider(cfg, registry_dir, use_git, git_url, branch)
        meta = p.get_entity(pk)

    console.print(f"[bold]{pk}[/] ({pk.hex()})")
    console.print(meta.pretty_print("  "), markup=False, highlight=False)


@entity.command(name="list")
@registry_dir_option
@click.option("--git", "use_git", is_flag=True, help="Read from the configured Git registry")
@click.option("--git-url", default=None, help="Git repository URL (default: from config)")
@click.option("--branch", default=None, help="Git branch (default: from config)")
@click.pass_obj
def list_entities(
    cfg: RegistryConfig,
    registry_dir: str | None,
    use_git: bool,
    git_url: str | None,
    branch: str | None,
):
    """List all entities in the registry."""
    with _fail_on_error("failed to get a list of entities in registry"):
        p = _read_provider(cfg, registry_dir, use_git, git_url, branch)
        entities = p.get_entities()

    if not entities:
        console.print("[yellow]Registry is empty.[/]")
        return

    table = Table(title=f"Registry ({len(entities)} entities)")
    table.add_column("Entity", style="cyan", no_wrap=True)
    table.add_column("Serial", justify="right")
    table.add_column("Name")
    table.add_column("URL")

    for pk in sorted(entities, key=lambda k: k.raw):
        meta = entities[pk]
        table.add_row(str(pk), str(meta.serial), escape(meta.name), escape(meta.url))

    console.print(table)


@entity.command()
@click.argument("key_path", type=click.Path(dir_okay=False))
def keygen(key_path: str):
    """Generate a new Ed25519 entity key at KEY_PATH."""
    from metareg.signature import Ed25519Signer

    signer = Ed25519Signer.generate()
    try:
        signer.save(key_path)
    except OSError as e:
        _abort(f"failed to write key: {e}")

    console.print(f"Generated entity key {signer.public()}")
    console.print(f"  Statement file: {signer.public().hex()}.json", style="dim")


# ── Test vectors ─────────────────────────────────────────────────────


@main.command(name="gen-vectors")
def gen_vectors():
    """Print entity metadata test vectors as JSON."""
    from metareg.testvectors import dump_vectors, generate_vectors

    click.echo(dump_vectors(generate_vectors()))


if __name__ == "__main__":
    main()

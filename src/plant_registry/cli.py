from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.table import Table

from .bootstrap import get_registry, get_storage
from .config import Settings
from .errors import PlantConflictError, PlantNotFoundError, StoreLoadError
from .logging_config import setup_logging
from .models import Plant, validate_plant
from .services.registry import PlantRegistryService
from .storage import JsonStorage

console = Console()

COLUMNS = ["name", "scientificName", "habitat", "somethingInteresting", "updated"]


def _registry(ctx: click.Context) -> PlantRegistryService:
    # load lazily so `init` and `--help` work before a store exists
    obj = ctx.obj
    if obj.get("registry") is None:
        try:
            obj["registry"] = get_registry(obj["settings"], obj["db_path"], obj["backend"])
        except StoreLoadError as e:
            console.print(f"error: {e}", style="bold red")
            raise SystemExit(1)
    return obj["registry"]


def _print_table(title: str, rows: List[Plant]) -> None:
    table = Table(title=title)
    for col in COLUMNS:
        table.add_column(col)
    for p in sorted(rows, key=lambda p: p.name.lower()):
        d = p.to_dict()
        table.add_row(*(str(d[col]) for col in COLUMNS))
    console.print(table)


@click.group(help="plant registry cli")
@click.option("--db", "db_path", default=None, help="path to json db file (default: data/plants.json)")
@click.option("--backend", type=click.Choice(["json", "memory", "ddb"], case_sensitive=False), default=None, help="storage backend")
@click.pass_context
def cli(ctx: click.Context, db_path: Optional[str], backend: Optional[str]):
    settings = Settings()
    setup_logging(settings.log_level)
    ctx.obj = {"settings": settings, "db_path": db_path, "backend": backend, "registry": None}


@cli.command("init", help="create an empty json store if none exists")
@click.pass_context
def init_cmd(ctx: click.Context):
    storage = get_storage(ctx.obj["settings"], ctx.obj["db_path"], ctx.obj["backend"])
    if not isinstance(storage, JsonStorage):
        console.print("init only applies to the json backend", style="yellow")
        raise SystemExit(1)
    if storage.init():
        console.print(f"created {storage.path}")
    else:
        console.print(f"{storage.path} already exists", style="yellow")


@cli.command("create", help="create a new plant")
@click.option("--name", required=True)
@click.option("--scientific-name", "scientific_name", required=True)
@click.option("--habitat", required=True)
@click.option("--fact", required=True, help="something interesting about the plant")
@click.pass_context
def create_cmd(ctx: click.Context, name: str, scientific_name: str, habitat: str, fact: str):
    reg = _registry(ctx)
    try:
        plant = Plant(name=name.strip(), scientific_name=scientific_name.strip(), habitat=habitat.strip(), fact=fact.strip())
        validate_plant(plant)
        created = reg.create(plant)
    except ValueError as e:
        console.print(f"error: {e}", style="bold red")
        raise SystemExit(1)
    console.print(created.to_dict())


@cli.command("get", help="get a plant by name (case-insensitive)")
@click.argument("name")
@click.pass_context
def get_cmd(ctx: click.Context, name: str):
    item = _registry(ctx).get(name)
    if not item:
        console.print("not found", style="yellow")
        raise SystemExit(1)
    console.print(item.to_dict())


@cli.command("update", help="update a plant; --name renames it")
@click.argument("original_name")
@click.option("--name")
@click.option("--scientific-name", "scientific_name")
@click.option("--habitat")
@click.option("--fact")
@click.pass_context
def update_cmd(ctx: click.Context, original_name: str, name: Optional[str], scientific_name: Optional[str], habitat: Optional[str], fact: Optional[str]):
    reg = _registry(ctx)
    current = reg.get(original_name)
    if not current:
        console.print("not found", style="yellow")
        raise SystemExit(1)
    # unset options keep the current values
    plant = Plant(
        name=(current.name if name is None else name).strip(),
        scientific_name=(current.scientific_name if scientific_name is None else scientific_name).strip(),
        habitat=(current.habitat if habitat is None else habitat).strip(),
        fact=(current.fact if fact is None else fact).strip(),
    )
    try:
        validate_plant(plant)
        updated = reg.update(original_name, plant)
    except PlantNotFoundError:
        console.print("not found", style="yellow")
        raise SystemExit(1)
    except ValueError as e:
        console.print(f"error: {e}", style="bold red")
        raise SystemExit(1)
    console.print(updated.to_dict())


@cli.command("delete", help="delete a plant by name (case-insensitive)")
@click.argument("name")
@click.pass_context
def delete_cmd(ctx: click.Context, name: str):
    ok = _registry(ctx).delete(name)
    console.print("deleted" if ok else "not found")
    if not ok:
        raise SystemExit(1)


@cli.command("list", help="list all plants")
@click.pass_context
def list_cmd(ctx: click.Context):
    _print_table("plants", _registry(ctx).list())


@cli.command("search", help="search name, scientific name, habitat and fact")
@click.argument("query")
@click.pass_context
def search_cmd(ctx: click.Context, query: str):
    rows = _registry(ctx).search(query)
    console.print(f"found {len(rows)} result(s)")
    _print_table(f"plants matching {query!r}", rows)


@cli.command("import-json", help="import plants from a json array file into the selected backend")
@click.option("--file", "file_path", required=True, help="path to source json file")
@click.option("--mode", type=click.Choice(["create", "upsert"], case_sensitive=False), default="create", show_default=True, help="create = insert only; upsert = create or update")
@click.option("--dry-run", is_flag=True, help="validate only, no writes")
@click.pass_context
def import_json_cmd(ctx: click.Context, file_path: str, mode: str, dry_run: bool):
    reg = _registry(ctx)

    try:
        data = json.loads(Path(file_path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"error reading {file_path}: {e}", style="bold red")
        raise SystemExit(1)

    if not isinstance(data, list):
        console.print("error: json must be an array of objects", style="bold red")
        raise SystemExit(1)

    created = updated = skipped = failed = 0

    for row in data:
        try:
            plant = Plant.from_dict(row)
            plant.touch()
            validate_plant(plant)
            if dry_run:
                created += 1
                continue
            try:
                reg.create(plant)
                created += 1
            except PlantConflictError:
                if mode.lower() != "upsert":
                    raise
                reg.update(plant.name, plant)
                updated += 1
        except PlantConflictError as e:
            skipped += 1
            console.print(f"skip: {e}", style="yellow")
        except (ValueError, TypeError, AttributeError) as e:
            failed += 1
            name = row.get("name") if isinstance(row, dict) else None
            console.print(f"skip: {e} for row name={name}", style="yellow")

    console.print(f"done. created={created}, updated={updated}, skipped={skipped}, failed={failed}, total={len(data)}")


@cli.command("export-json", help="export plants to a json array file")
@click.option("--file", "file_path", default="export/plants-export.json", show_default=True, help="output path for json file")
@click.option("--pretty/--compact", default=True, show_default=True, help="pretty print json with indent=2")
@click.option("--force", is_flag=True, help="overwrite the output file if it already exists")
@click.pass_context
def export_json_cmd(ctx: click.Context, file_path: str, pretty: bool, force: bool):
    reg = _registry(ctx)

    out = Path(file_path)
    if out.exists() and not force:
        console.print(f"error: {file_path} already exists. use --force to overwrite.", style="bold red")
        raise SystemExit(1)
    out.parent.mkdir(parents=True, exist_ok=True)

    # sort by name for stable output
    rows = [p.to_dict() for p in sorted(reg.list(), key=lambda p: p.name.lower())]
    try:
        out.write_text(json.dumps(rows, ensure_ascii=False, indent=(2 if pretty else None)), encoding="utf-8")
    except OSError as e:
        console.print(f"error writing {file_path}: {e}", style="bold red")
        raise SystemExit(1)
    console.print(f"exported {len(rows)} record(s) to {file_path}")


@cli.command("serve", help="run the http api with uvicorn")
@click.option("--host", default=None, help="bind address (default: HOST or 127.0.0.1)")
@click.option("--port", type=int, default=None, help="port (default: PORT or 5155)")
@click.pass_context
def serve_cmd(ctx: click.Context, host: Optional[str], port: Optional[int]):
    import uvicorn

    from .api import create_app

    settings: Settings = ctx.obj["settings"]
    app = create_app(_registry(ctx), settings)
    uvicorn.run(app, host=host or settings.host, port=port or settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    cli()

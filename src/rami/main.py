"""
Rami - CLI Entry Point.

Usage:
    rami wizard              Walk through the planting wizard in the console
    rami draft show          Print the saved draft for a user
    rami draft clear         Delete the saved draft for a user
    rami serve               Start the wizard API server
    rami health              Check configuration
    rami --help              Show help
"""

import logging

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

app = typer.Typer(
    name="rami",
    help="Rami - Register a planting area step by step.",
    add_completion=False,
)
draft_app = typer.Typer(help="Inspect or discard saved wizard drafts.")
app.add_typer(draft_app, name="draft")

console = Console()


class _Back(Exception):
    """User typed 'back' at a prompt."""


class _Quit(Exception):
    """User typed 'quit' at a prompt."""


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


# =============================================================================
# Prompts
# =============================================================================


def _ask(prompt: str, default: str | None = None) -> str:
    hint = f" [dim]({default})[/dim]" if default else ""
    raw = console.input(f"[bold blue]{prompt}[/bold blue]{hint} ").strip()
    if raw.lower() == "back":
        raise _Back()
    if raw.lower() in ("quit", "exit", "q"):
        raise _Quit()
    return raw or (default or "")


def _choose(prompt: str, options: list[dict], current: str | None = None) -> str | None:
    """Numbered choice; accepts the number or the id. Blank keeps the current value."""
    for i, option in enumerate(options, 1):
        marker = "•" if option["id"] == current else " "
        console.print(f"  {marker} {i}. {option['label']}")
    raw = _ask(prompt)
    if not raw:
        return current
    if raw.isdigit() and 1 <= int(raw) <= len(options):
        return options[int(raw) - 1]["id"]
    for option in options:
        if raw.lower() in (option["id"], option["label"].lower()):
            return option["id"]
    console.print(f"[yellow]Unknown choice: {raw}[/yellow]")
    return current


def _yes_no(prompt: str, current: bool | None = None) -> bool | None:
    default = None if current is None else ("y" if current else "n")
    raw = _ask(f"{prompt} (y/n)", default).lower()
    if raw in ("y", "yes"):
        return True
    if raw in ("n", "no"):
        return False
    return current


def _toggle_items(prompt: str, items: list[str], selected: list[str]) -> list[str]:
    """Numbers of the items to toggle, comma separated."""
    for i, item in enumerate(items, 1):
        marker = "x" if item in selected else " "
        console.print(f"  [{marker}] {i}. {item}")
    raw = _ask(prompt)
    picked = []
    for part in raw.split(","):
        part = part.strip()
        if part.isdigit() and 1 <= int(part) <= len(items):
            picked.append(items[int(part) - 1])
    return picked


def _show_review(controller) -> None:
    table = Table(title="Review", show_lines=False)
    table.add_column("Step", style="dim")
    table.add_column("Topic", style="bold")
    table.add_column("Answer")
    for item in controller.review_items():
        table.add_row(item.step.value, item.title, item.value)
    console.print(table)


def _ask_step(controller) -> str | None:
    """
    Prompt for the current step and apply the answers.

    Returns a step id when the user asks to edit one from the review screen.
    """
    from onboarding import options
    from onboarding.answers import SetField, ToggleItem
    from onboarding.steps import StepId

    a = controller.answers
    step = controller.current_step

    def set_(field, value):
        controller.mutate(SetField(field=field, value=value))

    def toggle(field, item):
        controller.mutate(ToggleItem(field=field, item=item))

    if step == StepId.AREA:
        current = f"{a.area.value:g}" if a.area.value is not None else None
        set_("area.value", _ask("Area size:", current))
        set_("area.unit", _choose("Unit:", options.AREA_UNITS, a.area.unit))

    elif step == StepId.CROP:
        console.print(f"[dim]Suggestions: {', '.join(options.SUGGESTED_CROPS)}[/dim]")
        set_("crop", _ask("Crop:", a.crop))

    elif step == StepId.SOIL:
        set_("soil.corrected", _yes_no("Has the soil already been corrected?", a.soil.corrected))

    elif step == StepId.SOIL_PENDING_ITEMS:
        for item in _toggle_items("Items still pending (e.g. 1,2):", options.SOIL_PENDING_ITEMS, a.soil.pending_items):
            toggle("soil.pending_items", item)

    elif step == StepId.SOIL_REMINDER:
        console.print("[dim]Correct the soil before planting for a better yield.[/dim]")
        set_("soil.reminder", bool(_yes_no("Remind me later?", a.soil.reminder)))

    elif step == StepId.PLANTING_METHOD:
        set_("planting.method", _choose("Planting method:", options.PLANTING_METHODS, a.planting.method))
        if controller.answers.planting.method == "row":
            set_("planting.dimensions", _ask("Row dimensions (optional):", a.planting.dimensions) or None)

    elif step == StepId.IRRIGATION:
        set_("irrigation.uses", _yes_no("Do you use irrigation?", a.irrigation.uses))
        if controller.answers.irrigation.uses:
            set_("irrigation.kind", _choose("Irrigation kind:", options.IRRIGATION_KINDS, a.irrigation.kind))

    elif step == StepId.FERTIGATION:
        set_("fertigation", _choose("Do you use fertigation?", options.FERTIGATION_CHOICES, a.fertigation))

    elif step == StepId.PROPAGATION_METHOD:
        set_("propagation.method", _choose("Propagation:", options.PROPAGATION_METHODS, a.propagation.method))

    elif step in (StepId.SEED_VARIETY, StepId.SEEDLING_VARIETY):
        method = "seed" if step == StepId.SEED_VARIETY else "seedling"
        suggestions = options.get_variety_suggestions(a.crop, method)
        console.print(f"[dim]Suggestions: {', '.join(suggestions)}[/dim]")
        current = getattr(a.propagation, method).variety
        set_(f"propagation.{method}.variety", _ask("Variety:", current))

    elif step in (StepId.SEED_TRAY, StepId.SEEDLING_TRAY):
        method = "seed" if step == StepId.SEED_TRAY else "seedling"
        current = getattr(a.propagation, method).tray
        console.print(f"[dim]Common sizes: {', '.join(str(s) for s in options.TRAY_SIZES)}[/dim]")
        set_(f"propagation.{method}.tray", _ask("Cells per tray:", str(current) if current else None))

    elif step == StepId.SEED_BRAND:
        set_("propagation.seed.brand", _ask("Seed brand:", a.propagation.seed.brand))

    elif step == StepId.SEED_SUBSTRATE:
        set_("propagation.seed.substrate", _ask("Substrate:", a.propagation.seed.substrate))

    elif step == StepId.SEEDLING_SUPPLIER:
        set_("propagation.seedling.supplier", _ask("Seedling supplier:", a.propagation.seedling.supplier))

    elif step == StepId.LOCATION:
        set_("location.plot", _ask("Plot / location:", a.location.plot))

    elif step == StepId.MATERIALS:
        set_("materials.status", _choose("Materials:", options.MATERIALS_STATUSES, a.materials.status))
        if controller.answers.materials.status == "purchased":
            for item in _toggle_items("Items you have (e.g. 1,3):", options.MATERIAL_ITEMS, a.materials.items):
                toggle("materials.items", item)

    elif step == StepId.FERTILIZER:
        set_("fertilizer.kind", _choose("Planting fertilizer:", options.FERTILIZER_KINDS, a.fertilizer.kind))
        if controller.answers.fertilizer.kind == "already_owned":
            set_("fertilizer.description", _ask("Which one?", a.fertilizer.description))

    elif step == StepId.REVIEW:
        _show_review(controller)
        raw = _ask("Press Enter to confirm, or type a step to edit:")
        return raw or None

    return None


# =============================================================================
# Commands
# =============================================================================


@app.command()
def wizard(
    user: str = typer.Option(None, "--user", "-u", help="User id (defaults to DEV_USER_ID)"),
) -> None:
    """Walk through the planting wizard in the console."""
    from onboarding.answers import InvalidUpdateError
    from rami.config import settings
    from rami.sessions import create_controller

    _configure_logging(settings.log_level)
    user_id = user or settings.dev_user_id

    console.print(
        Panel.fit(
            "[bold green]Rami[/bold green]\n"
            "Register a planting area step by step.\n\n"
            "[dim]Type 'back' to go to the previous step, 'quit' to stop (your draft is kept).[/dim]",
            title="Welcome",
            border_style="green",
        )
    )

    controller = create_controller(user_id)
    if controller.drafts is not None and controller.answers.crop:
        console.print(f"[dim]Resuming your draft ({controller.answers.crop}).[/dim]")

    try:
        while not controller.completed:
            console.print(f"\n[bold]{controller.progress}[/bold] [dim]{controller.current_step.value}[/dim]")
            try:
                target = _ask_step(controller)
            except _Back:
                if not controller.retreat():
                    console.print("[dim]Already at the first step.[/dim]")
                continue
            except InvalidUpdateError as e:
                console.print(f"[red]{e}[/red]")
                continue

            if target:
                if not controller.jump(target):
                    console.print(f"[yellow]Can't edit '{target}' from here.[/yellow]")
                continue

            if not controller.advance():
                console.print(f"[red]{controller.error.message}[/red]")

        record = controller.record
        console.print(
            Panel.fit(
                f"[bold]{record.name}[/bold]\n"
                f"Crop: {record.crop or '—'}\n"
                f"Area: {record.area_hectares if record.area_hectares is not None else '—'} ha\n"
                f"[dim]Record {record.id}[/dim]",
                title="Area registered",
                border_style="green",
            )
        )

    except (_Quit, KeyboardInterrupt):
        console.print("\n[dim]Draft saved. Run 'rami wizard' again to continue. 👋[/dim]")

    finally:
        if controller.drafts is not None:
            controller.drafts.close()
        if controller.session_logger is not None:
            controller.session_logger.close()


@draft_app.command("show")
def draft_show(
    user: str = typer.Option(None, "--user", "-u", help="User id (defaults to DEV_USER_ID)"),
) -> None:
    """Print the saved draft for a user."""
    from rami.config import settings
    from rami.sessions import open_drafts

    drafts = open_drafts(user or settings.dev_user_id)
    answers = drafts.load()
    if answers is None:
        console.print(f"[dim]No draft for {drafts.key}[/dim]")
        return
    console.print_json(answers.to_json())


@draft_app.command("clear")
def draft_clear(
    user: str = typer.Option(None, "--user", "-u", help="User id (defaults to DEV_USER_ID)"),
) -> None:
    """Delete the saved draft for a user."""
    from rami.config import settings
    from rami.sessions import open_drafts

    drafts = open_drafts(user or settings.dev_user_id)
    drafts.clear()
    drafts.close()
    if drafts.memory_only:
        console.print(f"[red]❌ Could not clear draft: {drafts.last_failure}[/red]")
        raise typer.Exit(1)
    console.print(f"✅ Cleared draft {drafts.key}")


@app.command()
def health() -> None:
    """Check configuration and the draft backend."""
    from rami.config import get_settings

    console.print("\n[bold]Rami Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("✅ Configuration loaded")
        console.print(f"   Environment: {settings.rami_env}")
        console.print(f"   Log level: {settings.log_level}")
        console.print(f"   Draft backend: {settings.draft_backend}")

        if settings.draft_backend == "supabase":
            if settings.supabase_url and settings.supabase_url.startswith("https://"):
                console.print("✅ Supabase URL configured")
            else:
                console.print("❌ Supabase URL missing or invalid")
                raise typer.Exit(1)
            if not settings.supabase_service_role_key:
                console.print("❌ Supabase service role key missing")
                raise typer.Exit(1)
        elif settings.draft_backend == "file":
            console.print(f"✅ Drafts stored in {settings.draft_dir}")
        else:
            console.print("ℹ️  Drafts kept in memory only")

        if settings.session_log_enabled:
            console.print(f"✅ Session logs in {settings.session_log_dir}")
        else:
            console.print("ℹ️  Session logging disabled")

        console.print("\n[green]All checks passed![/green]")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"\n[red]❌ Configuration error: {e}[/red]")
        console.print("[dim]Check your .env file.[/dim]")
        raise typer.Exit(1)


@app.command()
def serve(
    port: int = typer.Option(8000, "--port", "-p", help="Port to run on"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload for development"),
) -> None:
    """Start the wizard API server."""
    import os

    import uvicorn

    actual_port = int(os.environ.get("PORT", port))

    console.print("\n[bold green]Rami API[/bold green]")
    console.print(f"Starting server on http://localhost:{actual_port}")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    uvicorn.run(
        "rami.web.app:app",
        host="0.0.0.0",
        port=actual_port,
        reload=reload,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from rami import __version__

    console.print(f"Rami version {__version__}")


if __name__ == "__main__":
    app()

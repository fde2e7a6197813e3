#!/usr/bin/env python3
"""
Broadway Lottery Bot - Main Entry Point

Usage:
    python main.py broadway-direct | luckyseat | telecharge | all
    python main.py discover
    python main.py configure [telecharge|luckyseat|broadway-direct|both]
    python main.py check-shows saved-lottery-page.html
"""
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from broadway_lottery.common.config import BrowserConfig, Config, ConfigError, ShowsConfig, load_config
from broadway_lottery.common.models import LotteryResult, ShowConfig
from broadway_lottery.common.shows import (
    compare_show_names,
    extract_listing_titles,
    filter_shows,
    load_shows,
    merge_discovered,
    parse_enabled_answer,
    parse_filter,
    parse_ticket_answer,
    partition_enabled,
    save_shows,
)

console = Console()
logger = logging.getLogger(__name__)

SITES = {
    "broadway_direct": "Broadway Direct",
    "luckyseat": "Lucky Seat",
    "telecharge": "Telecharge",
}


def setup_logging(level: str = "INFO", log_file: str = None):
    """Configure logging"""
    handlers = [RichHandler(console=console, rich_tracebacks=True)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(message)s",
        handlers=handlers,
        force=True,
    )


@click.group()
@click.option("--config", "-c", default=None, help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx, config, verbose):
    """
    Broadway Lottery Bot

    Automatically enter the Broadway Direct, Lucky Seat and Telecharge
    ticket lotteries.
    """
    ctx.ensure_object(dict)
    ctx.obj["config"] = None
    ctx.obj["config_error"] = None

    try:
        cfg = load_config(config)
        ctx.obj["config"] = cfg
        setup_logging(
            level="DEBUG" if verbose else cfg.logging.level,
            log_file=cfg.logging.file,
        )
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Create a config file from config/config.example.yaml")
        sys.exit(1)
    except ConfigError as e:
        # show-list commands work without a user profile
        ctx.obj["config_error"] = str(e)
        setup_logging(level="DEBUG" if verbose else "INFO")
    except Exception as e:
        console.print(f"[red]Error loading config: {e}[/red]")
        sys.exit(1)


def _require_config(ctx) -> Config:
    cfg = ctx.obj.get("config")
    if cfg is None:
        console.print(f"[red]{ctx.obj.get('config_error') or 'No configuration loaded'}[/red]")
        sys.exit(1)
    return cfg


def _shows_paths(ctx) -> ShowsConfig:
    cfg = ctx.obj.get("config")
    return cfg.shows if cfg else ShowsConfig()


def _select_shows(cfg: Config, site: str) -> Optional[List[ShowConfig]]:
    """Load a site's show list and apply the SHOWS filter"""
    path = getattr(cfg.shows, site)
    shows = load_shows(path)
    if not shows:
        console.print(f"[yellow]No shows configured in {path}[/yellow]")
        return None

    terms = parse_filter(cfg.shows.filter)
    selected = filter_shows(shows, terms)
    if terms and not selected:
        console.print(f"[yellow]⚠️  No shows match filter: {', '.join(terms)}[/yellow]")
        console.print("Available shows:")
        for show in shows:
            console.print(f"  - {show.name}")
        return None
    if terms:
        console.print(f"🔍 Filtering to {len(selected)} show(s): {', '.join(terms)}")

    _, disabled = partition_enabled(selected, cfg.user.number_of_tickets)
    if disabled:
        names = ", ".join(show.name for show in disabled)
        console.print(f"[dim]Skipping {len(disabled)} disabled show(s): {names}[/dim]")
    return selected


def _report(site_name: str, result: LotteryResult, entries):
    style = "green" if result.success else "red"
    icon = "🎉" if result.success else "❌"
    console.print(Panel(
        f"[bold]{icon} {site_name}: {result.reason.value}[/bold]\n\n{result.message}",
        style=style,
    ))

    if entries:
        table = Table(title=f"{site_name} entries")
        table.add_column("Show")
        table.add_column("Result")
        table.add_column("Message")
        for entry in entries:
            table.add_row(
                entry.show,
                "[green]✓[/green]" if entry.success else "[red]✗[/red]",
                entry.message,
            )
        console.print(table)


def _bot_class(site: str):
    from broadway_lottery.browser import BroadwayDirectBot, LuckySeatBot, TelechargeBot

    return {
        "broadway_direct": BroadwayDirectBot,
        "luckyseat": LuckySeatBot,
        "telecharge": TelechargeBot,
    }[site]


async def _run_bot(cfg: Config, site: str, shows: List[ShowConfig]) -> LotteryResult:
    bot = _bot_class(site)(cfg)
    console.print(Panel(f"🎭 Entering {SITES[site]} lotteries", style="blue"))

    async with bot:
        result = await bot.run(shows)
        _report(bot.site_name, result, bot.results)
        await bot.hold_open()
    return result


def _run_site(cfg: Config, site: str) -> Optional[LotteryResult]:
    shows = _select_shows(cfg, site)
    if shows is None:
        return None

    try:
        return asyncio.run(_run_bot(cfg, site, shows))
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled[/yellow]")
    except Exception as e:
        # browser launch or teardown failures land here, outside bot.run
        logger.exception(f"{SITES[site]} run failed")
        console.print(f"[red]{SITES[site]} failed: {e}[/red]")
        return LotteryResult.error(e)
    return None


@cli.command("broadway-direct")
@click.pass_context
def broadway_direct(ctx):
    """Enter Broadway Direct lotteries"""
    _run_site(_require_config(ctx), "broadway_direct")


@cli.command()
@click.pass_context
def luckyseat(ctx):
    """Enter Lucky Seat lotteries"""
    _run_site(_require_config(ctx), "luckyseat")


@cli.command()
@click.pass_context
def telecharge(ctx):
    """Enter Telecharge lotteries"""
    _run_site(_require_config(ctx), "telecharge")


@cli.command("all")
@click.pass_context
def run_all(ctx):
    """Enter every site's lotteries in turn"""
    cfg = _require_config(ctx)

    summary = Table(title="Lottery Summary")
    summary.add_column("Site")
    summary.add_column("Reason")
    summary.add_column("Message")

    for site, site_name in SITES.items():
        if site != "broadway_direct" and getattr(cfg, site) is None:
            console.print(f"[yellow]Skipping {site_name}: no credentials configured[/yellow]")
            summary.add_row(site_name, "skipped", "No credentials configured")
            continue

        result = _run_site(cfg, site)
        if result is None:
            summary.add_row(site_name, "skipped", "-")
        else:
            summary.add_row(site_name, result.reason.value, result.message)

    console.print(summary)


@cli.command()
@click.pass_context
def discover(ctx):
    """Find Broadway Direct lotteries on bwayrush.com and save them"""
    from broadway_lottery.browser import ShowDiscoveryBot

    cfg = ctx.obj.get("config")
    path = _shows_paths(ctx).broadway_direct
    settings = (
        cfg.browser.model_copy(update={"headless": True}) if cfg else BrowserConfig(headless=True)
    )

    async def run():
        console.print(Panel("🔍 Discovering Broadway Direct shows", style="blue"))
        async with ShowDiscoveryBot(settings) as bot:
            return await bot.discover()

    discovered = asyncio.run(run())
    if not discovered:
        console.print("[yellow]No shows with Broadway Direct lotteries found[/yellow]")
        return

    existing = load_shows(path)
    known = {show.name for show in existing}
    merged = merge_discovered(discovered, existing)
    save_shows(path, merged)

    enabled = sum(1 for show in merged if show.enabled is not False)
    new = [show.name for show in merged if show.name not in known]

    table = Table(show_header=False, title="Discovery Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value")
    table.add_row("Total shows", str(len(merged)))
    table.add_row("Enabled", str(enabled))
    table.add_row("Disabled", str(len(merged) - enabled))
    table.add_row("New", ", ".join(new) if new else "0")
    table.add_row("Saved to", str(path))
    console.print(table)


def _configure_tickets(path: str, label: str) -> Optional[List[ShowConfig]]:
    shows = load_shows(path)
    if not shows:
        console.print(f"[yellow]⚠️  No {label} shows found in {path}[/yellow]")
        return None

    console.print(Panel(
        f"🎭 {label} Lottery Show Configuration\n\n"
        "Set num_tickets for each show:\n"
        "  0 = skip this show, 1 or 2 = tickets to request, Enter = keep current",
        style="blue",
    ))

    updated = []
    for index, show in enumerate(shows, start=1):
        current = show.num_tickets if show.num_tickets is not None else 2
        status = f"✓ ({current} ticket(s))" if current > 0 else "✗ (disabled)"
        console.print(f"\n[{index}/{len(shows)}] {show.name} - {status}")
        answer = click.prompt("Number of tickets", default="", show_default=False)
        tickets = parse_ticket_answer(answer, current)
        console.print(f"   {tickets} ticket(s)")
        updated.append(show.model_copy(update={"num_tickets": tickets}))

    enabled = sum(1 for show in updated if show.num_tickets)
    console.print(
        f"\n📊 {label} Summary: {len(updated)} shows, "
        f"{enabled} enabled, {len(updated) - enabled} disabled"
    )
    return updated


def _configure_enabled(path: str, label: str) -> Optional[List[ShowConfig]]:
    shows = load_shows(path)
    if not shows:
        console.print(f"[yellow]⚠️  No {label} shows found in {path}[/yellow]")
        return None

    console.print(Panel(
        f"🎭 {label} Lottery Show Configuration\n\n"
        "y = enter this show's lottery, n = skip it, Enter = keep current",
        style="blue",
    ))

    updated = []
    for index, show in enumerate(shows, start=1):
        current = show.enabled is not False
        status = "✓ (enabled)" if current else "✗ (disabled)"
        console.print(f"\n[{index}/{len(shows)}] {show.name} - {status}")
        answer = click.prompt("Enter this show? (y/n)", default="", show_default=False)
        enabled = parse_enabled_answer(answer, current)
        console.print("   ✓ Enabled" if enabled else "   ✗ Disabled")
        updated.append(show.model_copy(update={"enabled": enabled}))

    enabled_count = sum(1 for show in updated if show.enabled)
    console.print(
        f"\n📊 {label} Summary: {len(updated)} shows, "
        f"{enabled_count} enabled, {len(updated) - enabled_count} disabled"
    )
    return updated


@cli.command()
@click.argument(
    "lottery",
    type=click.Choice(["telecharge", "luckyseat", "broadway-direct", "both"]),
    default="both",
)
@click.pass_context
def configure(ctx, lottery):
    """Interactively choose which shows to enter"""
    paths = _shows_paths(ctx)

    pending = []
    if lottery in ("telecharge", "both"):
        pending.append((paths.telecharge, _configure_tickets(paths.telecharge, "Telecharge")))
    if lottery == "luckyseat":
        pending.append((paths.luckyseat, _configure_tickets(paths.luckyseat, "Lucky Seat")))
    if lottery in ("broadway-direct", "both"):
        pending.append(
            (paths.broadway_direct, _configure_enabled(paths.broadway_direct, "Broadway Direct"))
        )

    pending = [(path, shows) for path, shows in pending if shows]
    if not pending:
        return

    if not click.confirm("\nSave these changes?", default=True):
        console.print("[yellow]Changes discarded[/yellow]")
        return

    for path, shows in pending:
        save_shows(path, shows)
        console.print(f"[green]✅ Saved configuration to {path}[/green]")


@cli.command("check-shows")
@click.argument("html_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def check_shows(ctx, html_file):
    """Compare a saved Telecharge lottery page with the Telecharge show list"""
    listed = extract_listing_titles(Path(html_file).read_text(encoding="utf-8"))
    configured = [show.name for show in load_shows(_shows_paths(ctx).telecharge)]
    missing, extra = compare_show_names(listed, configured)

    console.print(f"📄 Found {len(listed)} show(s) on the lottery page")
    console.print(f"📋 {len(configured)} show(s) configured\n")

    if missing:
        console.print(f"[yellow]❌ Missing from configuration ({len(missing)}):[/yellow]")
        for name in missing:
            console.print(f"   - {name}")
    if extra:
        console.print(f"[yellow]⚠️  Configured but not on the page ({len(extra)}):[/yellow]")
        for name in extra:
            console.print(f"   - {name}")
    if not missing and not extra:
        console.print("[green]✅ Show list is up to date[/green]")

    configured_set = set(configured)
    table = Table(title="Shows on lottery page")
    table.add_column("Show")
    table.add_column("Configured")
    for name in listed:
        table.add_row(name, "✓" if name in configured_set else "✗")
    console.print(table)


@cli.command()
@click.pass_context
def info(ctx):
    """Show current configuration"""
    cfg = _require_config(ctx)

    console.print(Panel("📋 Current Configuration", style="blue"))

    table = Table(show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    user = cfg.user
    table.add_row("Name", f"{user.first_name} {user.last_name}")
    table.add_row("Email", user.email)
    table.add_row("Zip", user.zip)
    table.add_row("Tickets", user.number_of_tickets)
    table.add_row("Country", user.country_of_residence)
    for site in ("luckyseat", "telecharge"):
        creds = getattr(cfg, site)
        table.add_row(
            f"{SITES[site]} Login",
            f"{creds.email} / {'*' * 8}" if creds else "Not configured",
        )
    table.add_row("CAPTCHA API Key", "Set" if cfg.captcha.api_key else "Not set")
    table.add_row("Headless Mode", str(cfg.browser.headless))
    table.add_row("Keep Browser Open", str(cfg.browser.keep_open))
    table.add_row("Show Filter", cfg.shows.filter or "None")
    for site, site_name in SITES.items():
        table.add_row(f"{site_name} Shows", getattr(cfg.shows, site))

    console.print(table)


if __name__ == "__main__":
    cli()

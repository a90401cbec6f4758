"""
Gavel CLI - Command Line Interface for the auction marketplace

Main entry point for all CLI commands. The CLI is the presentation
collaborator: it resolves the marketplace, calls one operation and
prints the result.
"""

import asyncio
import functools
from pathlib import Path

import click

from gavel.core.config import load_config
from gavel.core.errors import MarketError
from gavel.core.market import Marketplace
from gavel.core.models import Auction
from gavel.utils.formatting import format_price, time_remaining
from gavel.utils.logger import setup_logging


def _market(ctx) -> Marketplace:
    if "market" not in ctx.obj:
        ctx.obj["market"] = Marketplace.open(ctx.obj["config"])
    return ctx.obj["market"]


def market_command(func):
    """Turn marketplace errors into a clean message and exit code 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except MarketError as e:
            raise click.ClickException(str(e)) from e
    return wrapper


def _require_admin(market: Marketplace):
    user = market.current_user()
    if user is None or not user.is_admin:
        raise click.ClickException("Administrator login required")


def _describe(auction: Auction) -> str:
    status = "Active" if auction.is_active else "Ended"
    return (
        f"  [{auction.id}] {auction.title}\n"
        f"      {status} | current: {format_price(auction.current_price)} "
        f"| bids: {len(auction.bids)} | {time_remaining(auction.end_date)}"
    )


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default=None, help="Data directory")
@click.option("--env-file", default=None, help="Load settings from a .env file")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, data_dir, env_file):
    """Gavel - auction marketplace"""
    import logging

    level = logging.DEBUG if debug else logging.WARNING
    config = load_config(env_file, data_dir=Path(data_dir).expanduser() if data_dir else None)
    config.ensure_dirs()
    setup_logging(level=level, log_dir=str(config.log_dir), log_to_file=True)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# =============================================================================
# Account Commands
# =============================================================================


@cli.command("register")
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True, help="Account password")
@click.pass_context
@market_command
def register(ctx, email, password):
    """Create an account and log in"""
    user = _market(ctx).register(email, password)
    click.echo(f"✓ Account created! Welcome aboard, {user.email}")


@cli.command("login")
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True, help="Account password")
@click.pass_context
@market_command
def login(ctx, email, password):
    """Log in"""
    user = _market(ctx).login(email, password)
    click.echo(f"✓ Logged in as {user.email} ({user.role.name.lower()})")


@cli.command("logout")
@click.pass_context
def logout(ctx):
    """Log out"""
    _market(ctx).logout()
    click.echo("Logged out.")


@cli.command("whoami")
@click.pass_context
@market_command
def whoami(ctx):
    """Show the current user and their bidding dashboard"""
    market = _market(ctx)
    user = market.current_user()
    if user is None:
        click.echo("Not logged in.")
        return

    stats = market.my_stats()
    highest = format_price(stats.highest_bid) if stats.highest_bid is not None else "-"
    click.echo(f"{user.email} ({user.role.name.lower()})")
    click.echo(f"  Bids placed: {stats.total_bids}")
    click.echo(f"  Active auctions: {stats.active_auctions}")
    click.echo(f"  Highest bid: {highest}")


# =============================================================================
# Auction Commands
# =============================================================================


@cli.command("list")
@click.option("--status", type=click.Choice(["all", "active", "closed"]), default="all")
@click.option("--query", default=None, help="Search title and description")
@click.pass_context
def list_auctions(ctx, status, query):
    """List auctions, newest first"""
    auctions = _market(ctx).list_auctions(status=status, query=query)
    if not auctions:
        click.echo("No auctions found.")
        return
    for auction in auctions:
        click.echo(_describe(auction))


@cli.command("show")
@click.argument("auction_id", type=int)
@click.pass_context
def show(ctx, auction_id):
    """Show one auction"""
    auction = _market(ctx).get_auction(auction_id)
    if auction is None:
        raise click.ClickException("Auction not found")

    click.echo(_describe(auction))
    if auction.description:
        click.echo(f"      {auction.description}")
    click.echo(f"      starting price: {format_price(auction.starting_price)}")
    if auction.highest_bidder:
        click.echo(f"      highest bidder: {auction.highest_bidder}")


@cli.command("create")
@click.option("--title", required=True)
@click.option("--description", default="")
@click.option("--image", default=None)
@click.option("--start", "start_date", default=None, help="Start time (ISO 8601)")
@click.option("--end", "end_date", default=None, help="End time (ISO 8601)")
@click.option("--price", "starting_price", required=True, help="Starting price")
@click.pass_context
@market_command
def create(ctx, title, description, image, start_date, end_date, starting_price):
    """Create an auction (administrators)"""
    market = _market(ctx)
    _require_admin(market)
    auction = market.create_auction({
        "title": title,
        "description": description,
        "image": image,
        "start_date": start_date,
        "end_date": end_date,
        "starting_price": starting_price,
    })
    click.echo(f"✓ Auction created: [{auction.id}] {auction.title}")


@cli.command("bid")
@click.argument("auction_id", type=int)
@click.argument("amount")
@click.pass_context
@market_command
def bid(ctx, auction_id, amount):
    """Place a bid as the current user"""
    placed = _market(ctx).place_bid(auction_id, amount)
    click.echo(f"✓ Bid placed successfully! ({format_price(placed.amount)})")


@cli.command("end")
@click.argument("auction_id", type=int)
@click.pass_context
def end(ctx, auction_id):
    """End an auction now (administrators)"""
    market = _market(ctx)
    _require_admin(market)
    if not market.end_auction(auction_id):
        raise click.ClickException("Failed to end auction")
    click.echo("✓ Auction ended successfully!")


@cli.command("history")
@click.argument("auction_id", type=int)
@click.pass_context
@market_command
def history(ctx, auction_id):
    """Show bids on an auction, highest first"""
    bids = _market(ctx).bid_history(auction_id)
    if not bids:
        click.echo("No bids placed yet")
        return
    for i, b in enumerate(bids, start=1):
        click.echo(f"  {i}. {b.by} - {format_price(b.amount)} @ {b.placed_at.astimezone():%Y-%m-%d %H:%M:%S}")


@cli.command("seed-demo")
@click.pass_context
def seed_demo(ctx):
    """Create demo auctions (administrators)"""
    market = _market(ctx)
    _require_admin(market)
    for auction in market.seed_demo():
        click.echo(f"✓ [{auction.id}] {auction.title}")


@cli.command("stats")
@click.pass_context
def stats(ctx):
    """Show marketplace statistics"""
    click.echo("Gavel Marketplace Statistics")
    click.echo("-" * 40)
    for key, value in _market(ctx).engine.stats().items():
        click.echo(f"  {key.capitalize()}: {value}")


# =============================================================================
# Sweeper Commands
# =============================================================================


@cli.command("sweep")
@click.option("--once", is_flag=True, help="Run a single tick and exit")
@click.option("--duration", default=None, type=float, help="Stop after N seconds")
@click.pass_context
def sweep(ctx, once, duration):
    """Close expired auctions, once or continuously"""
    market = _market(ctx)

    if once:
        closed = market.sweeper.run_once()
        click.echo(f"Closed {len(closed)} auction(s).")
        return

    def report(closed):
        if closed:
            click.echo(f"  Closed: {', '.join(map(str, closed))}")

    market.sweeper.add_listener(report)

    async def run_sweeper():
        await market.start()
        try:
            if duration is None:
                while True:
                    await asyncio.sleep(3600)
            else:
                await asyncio.sleep(duration)
        finally:
            await market.stop()

    click.echo(f"Sweeper running every {market.sweeper.interval}s. Press Ctrl+C to stop.")
    try:
        asyncio.run(run_sweeper())
    except KeyboardInterrupt:
        click.echo("\nSweeper stopped.")


if __name__ == "__main__":
    cli()

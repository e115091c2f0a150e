import asyncio
import json
import logging

import click

from .database import async_session_factory, init_db
from .services.legacy_service import LegacyImporter, LegacyImportSummary


async def import_gamedata(gamedata: dict | None) -> LegacyImportSummary:
    await init_db()
    async with async_session_factory() as session:
        return await LegacyImporter(session).run(gamedata)


@click.command("geoscore-seed")
@click.argument("gamedata", type=click.File("r"), required=False)
def seed_command(gamedata):
    """Imports the old single-document game data and prints the claim codes."""
    logging.basicConfig(level=logging.INFO)
    payload = json.load(gamedata) if gamedata else None
    summary = asyncio.run(import_gamedata(payload))

    click.echo(
        f"Created {summary.users_created} legacy users, imported {summary.scores_imported} scores "
        f"({summary.skipped_entries} skipped)."
    )
    for legacy_id, code in sorted(summary.claim_codes.items()):
        click.echo(f"  {legacy_id}: {code}")


if __name__ == "__main__":
    seed_command()

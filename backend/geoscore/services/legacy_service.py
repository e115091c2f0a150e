"""One-time import of the single-document game data used before accounts existed.

The old document looks like::

    {"days": {"2024-01-06": {"james": {"rounds": [4000, 3500, 5000], "submitted": true},
                             "tyler": null, "david": {...}, "revealed": false}}}
"""
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Mapping

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..config import get_settings
from ..enums import UserType
from ..game.calendar import parse_date_key
from ..game.scoring import validate_rounds
from ..models import ClaimCode, DailyScore, Group, GroupMember, User
from .friend_service import FriendService

logger = logging.getLogger(__name__)
settings = get_settings()

CLAIM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CLAIM_CODE_LENGTH = 6


@dataclass(frozen=True)
class LegacyPlayer:
    key: str
    user_id: str
    username: str
    display_name: str


LEGACY_PLAYERS = (
    LegacyPlayer(key="james", user_id="legacy_james", username="jimbo", display_name="James"),
    LegacyPlayer(key="tyler", user_id="legacy_tyler", username="tbone", display_name="Tyler"),
    LegacyPlayer(key="david", user_id="legacy_david", username="thewizard", display_name="David"),
)


@dataclass
class LegacyImportSummary:
    users_created: int = 0
    scores_imported: int = 0
    skipped_entries: int = 0
    claim_codes: dict[str, str] = field(default_factory=dict)


def generate_claim_code() -> str:
    return "".join(random.choices(CLAIM_CODE_ALPHABET, k=CLAIM_CODE_LENGTH))


class LegacyImporter:
    def __init__(self, session: AsyncSession, players: tuple[LegacyPlayer, ...] = LEGACY_PLAYERS) -> None:
        self.session = session
        self.players = players
        self.active: list[LegacyPlayer] = list(players)

    async def run(self, gamedata: Mapping[str, Any] | None) -> LegacyImportSummary:
        summary = LegacyImportSummary()
        await self._ensure_users(summary)
        self.active = await self._unclaimed_players()
        await self._ensure_group()
        await self._import_days((gamedata or {}).get("days") or {}, summary)
        await self._ensure_friendships()
        await self._ensure_claim_codes(summary)
        await self.session.commit()
        logger.info(
            "Legacy import finished: %s users, %s scores, %s skipped",
            summary.users_created,
            summary.scores_imported,
            summary.skipped_entries,
        )
        return summary

    async def _ensure_users(self, summary: LegacyImportSummary) -> None:
        for player in self.players:
            if await self.session.get(User, player.user_id):
                continue
            self.session.add(
                User(
                    id=player.user_id,
                    username=player.username,
                    display_name=player.display_name,
                    user_type=UserType.LEGACY,
                )
            )
            summary.users_created += 1
        await self.session.flush()

    async def _unclaimed_players(self) -> list[LegacyPlayer]:
        # claimed players already live on under their new accounts
        active: list[LegacyPlayer] = []
        for player in self.players:
            user = await self.session.get(User, player.user_id)
            if user is not None and not user.claimed:
                active.append(player)
        return active

    async def _ensure_group(self) -> None:
        group_id = settings.og_group_id
        if await self.session.get(Group, group_id) is None:
            self.session.add(
                Group(
                    id=group_id,
                    name=settings.og_group_name,
                    created_by=self.players[0].user_id,
                    is_original=True,
                )
            )
            await self.session.flush()
        for player in self.active:
            if await self.session.get(GroupMember, (group_id, player.user_id)) is None:
                self.session.add(GroupMember(group_id=group_id, user_id=player.user_id, is_admin=True))
        await self.session.flush()

    async def _import_days(self, days: Mapping[str, Any], summary: LegacyImportSummary) -> None:
        for date_key, day in sorted(days.items()):
            try:
                parse_date_key(date_key)
            except ValueError:
                logger.warning("Skipping malformed legacy date %r", date_key)
                summary.skipped_entries += 1
                continue
            for player in self.active:
                entry = (day or {}).get(player.key)
                if not entry or not entry.get("submitted"):
                    continue
                try:
                    rounds = validate_rounds(entry.get("rounds"))
                except ValueError:
                    logger.warning("Skipping invalid legacy rounds for %s on %s", player.key, date_key)
                    summary.skipped_entries += 1
                    continue
                existing = (
                    await self.session.execute(
                        select(DailyScore).where(
                            DailyScore.user_id == player.user_id,
                            DailyScore.date == date_key,
                        )
                    )
                ).scalar_one_or_none()
                if existing:
                    continue
                self.session.add(
                    DailyScore(
                        user_id=player.user_id,
                        date=date_key,
                        round_one=rounds[0],
                        round_two=rounds[1],
                        round_three=rounds[2],
                    )
                )
                summary.scores_imported += 1
        await self.session.flush()

    async def _ensure_friendships(self) -> None:
        friends = FriendService(self.session)
        for index, player in enumerate(self.active):
            for other in self.active[index + 1 :]:
                await friends.add_friendship(player.user_id, other.user_id, commit=False)
        await self.session.flush()

    async def _ensure_claim_codes(self, summary: LegacyImportSummary) -> None:
        for player in self.players:
            existing = (
                await self.session.execute(select(ClaimCode).where(ClaimCode.legacy_id == player.user_id))
            ).scalars().first()
            if existing:
                summary.claim_codes[player.user_id] = existing.code
                continue
            code = generate_claim_code()
            while await self.session.get(ClaimCode, code):
                code = generate_claim_code()
            self.session.add(ClaimCode(code=code, legacy_id=player.user_id, legacy_username=player.key))
            summary.claim_codes[player.user_id] = code
        await self.session.flush()

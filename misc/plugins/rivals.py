from __future__ import annotations

import math

from controller.context import Context
from controller.events import MessageReceived
from controller.plugin import CommandPlugin
from misc.discord_gates import owns_or_admin

RATINGS_KEY = "rivals_ratings"
OWNERS_KEY = "rivals_owners"

# Ratings are damage percentages; this much difference is worth one stock.
STOCK_VALUE = 150
# Ratings further apart than this are not updated.
MAX_DELTA = 300
# Total rating swing for an evenly rated match.
K_FACTOR = 10.0
# Logistic scale of the expected-score curve.
D_SCALE = 200.0


def expected_score(rating: int, opponent: int) -> float:
    return 1.0 / (1.0 + 10 ** ((opponent - rating) / D_SCALE))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def updated_ratings(winner: int, loser: int) -> tuple[int, int]:
    change = K_FACTOR * (1.0 - expected_score(winner, loser))
    return _round_half_up(winner + change), max(0, _round_half_up(loser - change))


def handicap(diff: int) -> tuple[int, int]:
    """Split a rating difference into (stocks, extra damage %)."""
    return divmod(abs(int(diff)), STOCK_VALUE)


class RivalsPlugin(CommandPlugin):
    """
    Player ratings and handicaps for Rivals of Aether style matches.

    A Discord user may register several players. The registering user owns the
    player; only that user or a bot owner may delete it or report it losing.
    """

    name = "rivals"
    command = "rivals"

    def usage(self, ctx: Context) -> str | None:
        return (
            f"{ctx.command_prefix}rivals <subcommand> -- manage rivals ratings\n"
            "| Subcommands:\n"
            "| create <initial_rating> [player_name] - create a player\n"
            "| delete <player_name> - delete a player\n"
            "| list - list all players\n"
            "| preview <player1> <player2> - show ratings and starting handicap\n"
            "| report <player1> beat <player2> - report a match result (you must own the loser)"
        )

    async def run(self, event: MessageReceived, ctx: Context, args: str) -> None:
        parts = args.split()
        if not parts:
            await self.reply(event, ctx, "Please provide a subcommand. See help for usage.")
            return

        sub, rest = parts[0].lower(), parts[1:]
        if sub == "create":
            text = await self.create(event, ctx, rest)
        elif sub == "delete":
            text = await self.delete(event, ctx, rest)
        elif sub == "list":
            text = await self.list_players(ctx)
        elif sub == "preview":
            text = await self.preview(ctx, rest)
        elif sub == "report":
            text = await self.report(event, ctx, rest)
        else:
            text = "Unknown subcommand."
        await self.reply(event, ctx, text)

    async def create(self, event: MessageReceived, ctx: Context, args: list[str]) -> str:
        if not args:
            return "Usage: create <initial_rating> [player_name]"
        try:
            rating = int(args[0])
        except ValueError:
            return "Invalid initial rating: must be an integer"
        if rating < 0:
            return "Invalid initial rating: must not be negative"

        player = args[1] if len(args) >= 2 else event.author.display_name
        async with ctx.pstate.transaction() as data:
            ratings = data.setdefault(RATINGS_KEY, {})
            if player in ratings:
                return f"Player `{player}` already exists."
            ratings[player] = rating
            data.setdefault(OWNERS_KEY, {})[player] = event.author.id
        return f"Player `{player}` created with initial rating {rating}%."

    async def delete(self, event: MessageReceived, ctx: Context, args: list[str]) -> str:
        if not args:
            return "Usage: delete <player_name>"
        player = args[0]
        async with ctx.pstate.transaction() as data:
            ratings = data.setdefault(RATINGS_KEY, {})
            owners = data.setdefault(OWNERS_KEY, {})
            if player not in ratings:
                return f"Player `{player}` not found."
            owns_or_admin(ctx.config.bot_owners, event.author.id, owners.get(player), f"delete player {player}")
            ratings.pop(player, None)
            owners.pop(player, None)
        return f"Player `{player}` has been deleted."

    async def list_players(self, ctx: Context) -> str:
        ratings = await ctx.pstate.get(RATINGS_KEY, {}) or {}
        owners = await ctx.pstate.get(OWNERS_KEY, {}) or {}
        if not ratings:
            return "No players registered yet."
        lines = ["Registered players:"]
        for player, rating in sorted(ratings.items(), key=lambda kv: (-kv[1], kv[0])):
            owner = owners.get(player)
            owner_text = f"<@{owner}>" if owner is not None else "unknown"
            lines.append(f"• `{player}`: {rating}% (owner: {owner_text})")
        return "\n".join(lines)

    async def preview(self, ctx: Context, args: list[str]) -> str:
        if len(args) < 2:
            return "Usage: preview <player1> <player2>"
        p1, p2 = args[0], args[1]
        ratings = await ctx.pstate.get(RATINGS_KEY, {}) or {}
        for player in (p1, p2):
            if player not in ratings:
                return f"Player `{player}` not found."
        r1, r2 = ratings[p1], ratings[p2]
        if r1 == r2:
            return f"Both `{p1}` and `{p2}` have equal ratings ({r1}%). No handicap."

        higher = p1 if r1 > r2 else p2
        stocks, remainder = handicap(r1 - r2)
        return (
            f"Player ratings:\n• `{p1}`: {r1}%\n• `{p2}`: {r2}%\n"
            f"Handicap: `{higher}` should start with {stocks} stock(s) and {remainder}% extra damage."
        )

    async def report(self, event: MessageReceived, ctx: Context, args: list[str]) -> str:
        if len(args) < 3 or args[1].lower() != "beat":
            return "Usage: report <player1> beat <player2>"
        winner, loser = args[0], args[2]
        if winner == loser:
            return "Winner and loser cannot be the same player."

        async with ctx.pstate.transaction() as data:
            ratings = data.setdefault(RATINGS_KEY, {})
            owners = data.setdefault(OWNERS_KEY, {})
            for player in (winner, loser):
                if player not in ratings:
                    return f"Player `{player}` not found."
            owns_or_admin(ctx.config.bot_owners, event.author.id, owners.get(loser), f"report a loss for {loser}")

            old_w, old_l = ratings[winner], ratings[loser]
            if abs(old_w - old_l) > MAX_DELTA:
                return "Player ratings are too far apart to update."
            new_w, new_l = updated_ratings(old_w, old_l)
            ratings[winner] = new_w
            ratings[loser] = new_l

        print(f"[Rivals] {winner} beat {loser}: {old_w}->{new_w}, {old_l}->{new_l}")
        return (
            f"Match reported:\n• Winner `{winner}`: {old_w}% → {new_w}%\n"
            f"• Loser `{loser}`: {old_l}% → {new_l}%"
        )

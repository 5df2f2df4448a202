from __future__ import annotations

from controller.context import Context
from controller.events import Event
from controller.events import MessageReceived
from controller.events import VoiceStateUpdated
from controller.plugin import CommandPlugin

FOLLOWERS_KEY = "vc_notify_followers"


class VcNotifyPlugin(CommandPlugin):
    """
    Voice channel activity notifications.

    `vc-notify follow|unfollow` manages a persistent follower list. When someone
    becomes the only person in a non-AFK voice channel, every other follower
    gets a DM, at most once per throttle window. Voice events are never
    claimed, so other plugins still see them.
    """

    name = "vc-notify"
    command = "vc-notify"

    def usage(self, ctx: Context) -> str | None:
        return f"{ctx.command_prefix}vc-notify <follow/unfollow> - voice channel activity notifications"

    async def handle(self, event: Event, ctx: Context) -> bool:
        if isinstance(event, VoiceStateUpdated):
            await self.notify_followers(event, ctx)
            return False
        return await super().handle(event, ctx)

    async def run(self, event: MessageReceived, ctx: Context, args: str) -> None:
        action = args.split()[0].lower() if args.split() else ""
        user_id = event.author.id

        if action not in ("follow", "unfollow"):
            await self.reply(event, ctx, f"Invalid command.  See `{ctx.command_prefix}help`")
            return

        async with ctx.pstate.transaction() as data:
            followers: list[int] = data.setdefault(FOLLOWERS_KEY, [])
            following = user_id in followers
            if action == "follow" and not following:
                followers.append(user_id)
            elif action == "unfollow" and following:
                followers.remove(user_id)

        if action == "follow":
            text = (
                "You are already subscribed to voice channel activity notifications"
                if following
                else "You have successfully subscribed to voice channel activity notifications"
            )
        else:
            text = (
                "You have successfully unsubscribed from voice channel activity notifications"
                if following
                else "You are not subscribed to voice channel activity notifications"
            )
        await self.reply(event, ctx, text)

    async def notify_followers(self, event: VoiceStateUpdated, ctx: Context) -> list[int]:
        if not event.became_available:
            return []
        # Someone else was already around.
        if event.voice_user_count > 1:
            return []

        followers = await ctx.pstate.get(FOLLOWERS_KEY, []) or []
        text = (
            f"{event.user_name} joined VC channel <#{event.after_channel_id}> in {event.guild_name}\n"
            f"\n"
            f"You can opt out of these notifications by replying `{ctx.command_prefix}vc-notify unfollow`\n"
        )

        notified: list[int] = []
        now = ctx.throttle.now()
        for follower_id in followers:
            follower_id = int(follower_id)
            if follower_id == event.user_id:
                continue
            if not await ctx.throttle.should_notify(follower_id, now=now):
                continue
            if await ctx.gateway.dm(follower_id, text):
                notified.append(follower_id)
            else:
                # Undelivered DMs do not use up the window.
                await ctx.throttle.release(follower_id, now)
        if notified:
            print(f"[VC] notified {len(notified)} follower(s) that {event.user_name} joined in {event.guild_name}")
        return notified

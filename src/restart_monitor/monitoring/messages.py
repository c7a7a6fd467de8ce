"""Player-visible chat messages, using Minecraft section-sign formatting."""


def format_time_remaining(seconds: int) -> str:
    """Render a wait as ``Xm Ys``, or ``Ns`` below one minute."""
    seconds = max(0, int(seconds))
    minutes, remainder = divmod(seconds, 60)
    if minutes > 0:
        return f"{minutes}m {remainder}s"
    return f"{seconds}s"


def vote_tally(tally: int, quorum: int, percentage: int, online: int) -> str:
    return (
        f"§3§l[VOTE]§r Restart votes: §e§l{tally}/{quorum}§r needed "
        f"({percentage}% of {online} players). Type §a!restart§r to vote"
    )


def vote_blocked(remaining: int) -> str:
    return (
        f"§c§l[VOTE]§r Restart blocked - wait {format_time_remaining(remaining)} "
        "(server restarted recently)"
    )


def vote_passed(tally: int, quorum: int) -> str:
    return f"§a§l[VOTE]§r Vote passed (§e{tally}/{quorum}§r)! §c§lServer restarting...§r"


def final_countdown(seconds: int) -> str:
    return f"§c§l{seconds}...§r"


def vote_countdown(seconds: int) -> str:
    if seconds <= 5:
        return final_countdown(seconds)
    return f"§c§l{seconds} seconds...§r"


def performance_countdown(seconds: int, reading: float) -> str:
    if seconds <= 5:
        return final_countdown(seconds)
    if seconds >= 180:
        return (
            f"§c§l[AUTO-RESTART]§r TPS critically low ({reading:.2f}). "
            f"Auto-restart in §e§l{seconds // 60} minutes§r"
        )
    if seconds >= 60:
        unit = "minute" if seconds // 60 == 1 else "minutes"
        return f"§c§l[AUTO-RESTART]§r Restarting in §e§l{seconds // 60} {unit}§r"
    return f"§c§l[AUTO-RESTART]§r §e§l{seconds} seconds§r..."

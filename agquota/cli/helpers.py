"""CLI helper utilities for agquota."""

from datetime import datetime

from rich import box
from rich.table import Table
from rich_toolkit import RichToolkit, RichToolkitTheme
from rich_toolkit.styles import TaggedStyle

from agquota.models.quota import AccountInfo, ModelQuota, StatusLevel


STATUS_STYLES = {
    StatusLevel.GREEN: "green",
    StatusLevel.YELLOW: "yellow",
    StatusLevel.RED: "red",
}


def get_rich_toolkit() -> RichToolkit:
    theme = RichToolkitTheme(
        style=TaggedStyle(tag_width=11),
        theme={
            # Core tags
            "tag.title": "white on #3b5bdb",
            "tag": "white on #364fc7",
            "placeholder": "grey85",
            "text": "white",
            "selected": "#364fc7",
            "result": "grey85",
            "progress": "on #364fc7",
            # Status tags
            "error": "bold red",
            "success": "bold green",
            "warning": "bold yellow",
            "info": "blue",
            # CLI specific tags
            "version": "cyan",
            "server": "magenta",
            "cloud": "bright_blue",
            "account": "green",
            "config": "cyan",
            "debug": "dim white",
        },
    )

    return RichToolkit(theme=theme)


def bold(text: str) -> str:
    return f"[bold]{text}[/bold]"


def dim(text: str) -> str:
    return f"[dim]{text}[/dim]"


def format_timestamp(value: datetime | None) -> str:
    if value is None:
        return "never"
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def quota_table(
    quotas: list[ModelQuota], title: str, now: datetime | None = None
) -> Table:
    """Table of models with remaining percentage and reset countdown."""
    table = Table(title=title, box=box.ROUNDED, show_header=True)
    table.add_column("", width=2)
    table.add_column("Model", style="cyan")
    table.add_column("Remaining", justify="right")
    table.add_column("Resets in", justify="right", style="dim")
    table.add_column("Key", style="dim")

    for quota in quotas:
        style = STATUS_STYLES[quota.status_level]
        label = quota.display_label
        if quota.is_new:
            label = f"{label} [bold magenta]NEW[/bold magenta]"
        table.add_row(
            quota.status_emoji,
            label,
            f"[{style}]{int(quota.remaining_percentage)}%[/{style}]",
            quota.formatted_reset_time(now),
            quota.model_key,
        )

    return table


def account_lines(account: AccountInfo) -> list[str]:
    lines = [f"{bold('User:')} {account.user_name}"]
    if account.user_email:
        lines.append(f"{bold('Email:')} {account.user_email}")
    lines.append(f"{bold('Tier:')} {account.tier_name} ({account.plan_name})")
    lines.append(
        f"{bold('Credits:')} {account.prompt_credits} prompt, "
        f"{account.flow_credits} flow"
    )
    return lines

"""Rich list view of policies with their rendered summaries."""

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from policycraft.models import Effect, Lookups, Policy, PolicyStatus
from policycraft.renderer import SHORT_SUMMARY_LENGTH, condition_count, render_short

EFFECT_COLORS = {
    Effect.ALLOW: "green",
    Effect.DENY: "bold red",
}

STATUS_DOTS = {
    PolicyStatus.ACTIVE: "[green]●[/green]",
    PolicyStatus.DRAFT: "[yellow]●[/yellow]",
    PolicyStatus.INACTIVE: "[dim]●[/dim]",
}


class PolicyListing:
    """Table of policies for the terminal.

    Attributes:
        policies: Policies to list, in display order.
        lookups: Reference data used to render summaries.
        summary_length: Maximum length of each summary cell.
    """

    def __init__(
        self,
        policies: list[Policy],
        lookups: Lookups | None = None,
        summary_length: int = SHORT_SUMMARY_LENGTH,
    ) -> None:
        self.policies = policies
        self.lookups = lookups or Lookups()
        self.summary_length = summary_length

    def __rich__(self) -> Panel:
        """Allow Rich to use this object directly as a renderable."""
        return self.render()

    def rows(self) -> list[tuple[str, str, str, int, str]]:
        """Plain row data: name, effect, status, conditions, summary."""
        return [
            (
                p.name,
                p.effect.value,
                p.status.value,
                condition_count(p),
                render_short(p, self.lookups, self.summary_length),
            )
            for p in self.policies
        ]

    def render(self) -> Panel:
        """Build the policies table wrapped in a panel."""
        if not self.policies:
            return Panel(
                Text.from_markup("  [dim]No policies.[/dim]"),
                title="[bold]Policies[/bold]",
                border_style="dim",
            )

        table = Table(
            show_header=True, header_style="bold", expand=True, padding=(0, 1)
        )
        table.add_column("NAME", width=24)
        table.add_column("EFFECT", width=8)
        table.add_column("STATUS", width=12)
        table.add_column("CONDITIONS", width=10, justify="right")
        table.add_column("SUMMARY", ratio=1)

        for policy, (name, effect, status, conditions, summary) in zip(
            self.policies, self.rows()
        ):
            color = EFFECT_COLORS.get(policy.effect, "white")
            dot = STATUS_DOTS.get(policy.status, "●")
            table.add_row(
                Text(name),
                Text.from_markup(f"[{color}]{effect}[/{color}]"),
                Text.from_markup(f"{dot} {status}"),
                str(conditions),
                Text(summary),
            )

        return Panel(
            table,
            title=f"[bold]Policies[/bold] ({len(self.policies)})",
            border_style="blue",
        )

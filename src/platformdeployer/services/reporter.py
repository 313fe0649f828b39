"""Console presentation of deployment results."""

from typing import Dict, Iterable, Mapping

from rich.table import Table

from platformdeployer.models import LayerResult, PipelineResult, TenantProvisionResult

MASK = "********"


class ConsoleReporter:
    """Renders pipeline events and results with a rich console."""

    def __init__(self, console):
        self.console = console

    def pipeline_started(self, metadata: Mapping[str, object]):
        table = Table(title="Platform deployment", show_header=False)
        table.add_column("Field", style="bold")
        table.add_column("Value")
        for key, value in metadata.items():
            if value:
                table.add_row(str(key), str(value))
        self.console.print(table)

    def layer_started(self, layer: str, stack_name: str):
        self.console.print(f"[bold blue]Layer {layer}[/bold blue]: deploying stack {stack_name}")

    def layer_skipped(self, layer: str, reason: str):
        self.console.print(f"[yellow]Layer {layer} skipped:[/yellow] {reason}")

    def layer_finished(self, result: LayerResult):
        if result.succeeded:
            self.console.print(
                f"[green]Stack {result.stack_name} deployed[/green] "
                f"({len(result.outputs)} outputs)"
            )
            self._print_outputs(result.outputs)
        else:
            self.console.print(f"[bold red]Stack {result.stack_name} failed[/bold red]")

    def pipeline_finished(self, result: PipelineResult):
        table = Table(title=f"Run {result.run_id} ({result.effective_environment})")
        table.add_column("Layer")
        table.add_column("Stack")
        table.add_column("Status")
        for layer in result.layers:
            table.add_row(layer.layer, layer.stack_name or "-", _styled_status(layer.status))
        self.console.print(table)

        if result.succeeded:
            self.console.print("[bold green]Deployment successful.[/bold green]")
        else:
            self.console.print(f"[bold red]Deployment failed:[/bold red] {result.error}")

    def plan(self, entries: Iterable[Dict[str, object]]):
        for entry in entries:
            table = Table(title=f"{entry['layer']}: {entry['stack']}")
            table.add_column("Key")
            table.add_column("Value")
            secret_keys = entry.get("secret_keys") or ()
            for key, value in dict(entry.get("config") or {}).items():
                table.add_row(key, MASK if key in secret_keys else str(value))
            for key in entry.get("upstream_keys") or ():
                table.add_row(f"upstream:{key}", f"<{entry['upstream_layer']} output>")
            self.console.print(table)

    def tenant_provisioned(self, result: TenantProvisionResult):
        self.console.print(f"[bold green]{result.summary}[/bold green]")
        self._print_outputs(result.outputs)

    def _print_outputs(self, outputs):
        for key, value in outputs.items():
            shown = MASK if outputs.is_secret(key) else str(value)[:100]
            self.console.print(f"  [dim]{key}[/dim]: {shown}")


def _styled_status(status: str) -> str:
    colors = {"success": "green", "failed": "red", "skipped": "yellow"}
    color = colors.get(status, "white")
    return f"[{color}]{status}[/{color}]"

"""CLI interface for the model aggregator.

This module provides a Typer-based command-line front-end that drives the
ExecutionOrchestrator the same way an interactive page would: load the
catalog, pick a mode and models, type a prompt, execute.
"""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from model_aggregator.client import AggregatorClient, ExecutionMode, ModelResult
from model_aggregator.client.models import MultiModelResponse
from model_aggregator.orchestrator import ExecutionOrchestrator, OrchestratorState

app = typer.Typer(help="AI Model Aggregator - run one prompt against one or many models")
console = Console()


def _fail(message: str) -> None:
    console.print(f"[red]Error: {escape(message)}[/red]")
    raise typer.Exit(1)


def _render_model_result(result: ModelResult) -> Panel:
    """Render one model's output as a panel."""
    subtitle = f"{result.latency_ms:.0f} ms" if result.latency_ms is not None else None
    name = escape(result.model or "model")
    if result.ok:
        return Panel(
            Markdown(result.response or ""),
            title=f"[bold green]{name}[/bold green]",
            subtitle=subtitle,
        )
    detail = result.error or f"Model returned status {result.status!r}"
    return Panel(
        f"[red]{escape(detail)}[/red]",
        title=f"[bold red]{name}[/bold red]",
        subtitle=subtitle,
    )


def _render_state(state: OrchestratorState) -> None:
    result = state.result
    if result is None:
        return

    if isinstance(result, MultiModelResponse):
        console.print(
            f"\n[bold blue]Multi-Model Results[/bold blue] "
            f"[dim]({len(result.succeeded)} succeeded, {len(result.failed)} failed)[/dim]"
        )
        for model_result in result.responses:
            console.print(_render_model_result(model_result))
    else:
        console.print("\n[bold blue]Single Model Result[/bold blue]")
        console.print(_render_model_result(result))

    if state.last_trace_id:
        console.print(f"\n[dim]Trace ID: {state.last_trace_id}[/dim]")


@app.command(name="models")
def models_command(
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Backend base URL (defaults to AGGREGATOR_API_BASE_URL)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON instead of a table"),
) -> None:
    """List the models available from the backend catalog.

    Examples:
        aggregator models
        aggregator models --base-url http://localhost:3000 --json
    """
    orchestrator = ExecutionOrchestrator(AggregatorClient(base_url=base_url))
    state = asyncio.run(orchestrator.load_catalog())
    if state.error:
        _fail(state.error)

    if json_output:
        console.print_json(data=[m.model_dump(mode="json") for m in state.catalog])
        return

    if not state.catalog:
        console.print("[yellow]No models available.[/yellow]")
        return

    table = Table(title=f"Available Models ({len(state.catalog)})")
    table.add_column("ID", style="cyan", overflow="fold")
    table.add_column("Name", style="green")
    table.add_column("Provider", style="blue")
    table.add_column("Capabilities", style="magenta")
    for model in state.catalog:
        table.add_row(
            model.id,
            model.display_name,
            model.provider or "",
            ", ".join(model.capabilities),
        )
    console.print(table)


async def _execute(
    client: AggregatorClient,
    mode: ExecutionMode,
    model_ids: list[str],
    prompt: str,
    image_url: str,
    audio_url: str,
) -> OrchestratorState:
    """Drive one full cycle: catalog, mode, selection, prompt, execute.

    Returns:
        The final orchestrator state. Catalog and selection problems are
        reported through state.error without dispatching anything.
    """
    orchestrator = ExecutionOrchestrator(client)

    state = await orchestrator.load_catalog()
    if state.error:
        return state

    known = {model.id for model in state.catalog}
    unknown = [model_id for model_id in model_ids if model_id not in known]
    if unknown:
        _fail(f"Unknown model(s): {', '.join(unknown)}. Run 'aggregator models' to list them.")

    orchestrator.set_mode(mode)
    orchestrator.set_selection(model_ids)
    orchestrator.set_prompt(text=prompt, image_url=image_url, audio_url=audio_url)

    for capability, lacking in orchestrator.attachment_warnings().items():
        console.print(
            f"[yellow]Warning: {', '.join(lacking)} may not support {capability} input.[/yellow]"
        )

    return await orchestrator.execute()


@app.command(name="run")
def run_command(
    prompt: str = typer.Argument(..., help="Prompt to send"),
    model: Optional[list[str]] = typer.Option(
        None, "--model", "-m", help="Model ID to run (repeat for multi mode)"
    ),
    multi: bool = typer.Option(False, "--multi", help="Run against every selected model"),
    image_url: str = typer.Option("", "--image-url", help="Optional image reference URL"),
    audio_url: str = typer.Option("", "--audio-url", help="Optional audio reference URL"),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Backend base URL (defaults to AGGREGATOR_API_BASE_URL)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Print the raw result as JSON"),
) -> None:
    """Execute a prompt against one model, or several with --multi.

    Examples:
        aggregator run "What is Python?" -m gpt-4o
        aggregator run "Describe this" -m gpt-4o -m claude-3-5-sonnet --multi --image-url https://...
    """
    model_ids = model or []
    mode = ExecutionMode.MULTI if multi else ExecutionMode.SINGLE
    if mode is ExecutionMode.SINGLE and len(model_ids) > 1:
        _fail("Single mode takes one --model; pass --multi to run several.")

    client = AggregatorClient(base_url=base_url)
    state = asyncio.run(_execute(client, mode, model_ids, prompt, image_url, audio_url))

    if state.error:
        _fail(state.error)

    if json_output and state.result is not None:
        console.print_json(state.result.model_dump_json())
        return

    _render_state(state)


if __name__ == "__main__":
    app()

"""
adapters.cli.main - CLI adapter for the workspace assistant.

Mirrors src/adapters/rest/ but for terminal use. Uses the same
ServiceFactory and AgentSession as the WebSocket API so the iteration
loop behaves identically.

Commands
--------
  chat       Interactive session (exit / status / memory, anything else is a task)
  run        Run one task and exit
  tree       Print the workspace file tree

With no command and CLI_PROMPT set in the environment, the prompt is run
as a single task (used when another process drives the CLI).

Usage
-----
  python src/adapters/cli/main.py chat
  python src/adapters/cli/main.py run "create notes.txt containing hello"
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path

# ── Ensure src/ is on the path ──
_SRC = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(_SRC))

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.tree import Tree

from agent.session import AgentSession
from domain.exceptions import ConfigurationError
from domain.models import EventKind, SessionEvent, TaskStatus
from factory import ServiceFactory
from infrastructure.config import Settings

__version__ = "1.0.0"

console = Console()
app = typer.Typer(
    help="Workspace assistant: an analyst and an executor agent working on your files",
    add_completion=False,
)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _load_settings() -> Settings:
    """Return validated settings or exit with a user-friendly error."""
    try:
        config = Settings.from_env()
    except ConfigurationError as exc:
        console.print(f"[bold red]Configuration error:[/bold red] {exc}")
        raise typer.Exit(code=1)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return config


def _make_factory() -> ServiceFactory:
    factory = ServiceFactory(_load_settings())
    with console.status("[bold cyan]Preparing agents…", spinner="dots"):
        factory.initialize()
    return factory


async def print_event(event: SessionEvent) -> None:
    """EventSink that renders events to the terminal."""
    if event.kind == EventKind.INVESTIGATION:
        console.print(Panel(Markdown(event.content), title="Analyst", border_style="magenta"))
    elif event.kind == EventKind.TOOL_EXECUTION:
        console.print(f"  [dim]🔧 {event.tool}:[/dim] {(event.result or '')[:200]}")
    elif event.kind == EventKind.ERROR:
        console.print(f"[bold red]❌ {event.content}[/bold red]")
    elif len(event.content) > 80 or "\n" in event.content:
        console.print(Panel(Markdown(event.content), title="Executor", border_style="green"))
    else:
        console.print(f"[cyan]{event.content}[/cyan]")


def _print_outcome(status: TaskStatus, iterations: int) -> None:
    style = {
        TaskStatus.COMPLETED: "green",
        TaskStatus.NEEDS_CLARIFICATION: "yellow",
        TaskStatus.MAX_ITERATIONS: "yellow",
    }.get(status, "red")
    console.print(
        f"[{style}]🏁 {status.value.replace('_', ' ')} "
        f"({iterations} iteration(s))[/{style}]"
    )


async def _run_once(session: AgentSession, prompt: str) -> None:
    reply = await session.handle(prompt, print_event)
    if reply.outcome is not None:
        _print_outcome(reply.outcome.status, reply.outcome.iterations)
    elif reply.text:
        console.print(reply.text)


def _add_nodes(parent: Tree, nodes: list[dict]) -> None:
    for node in nodes:
        if node["type"] == "directory":
            branch = parent.add(f"📁 [bold]{node['name']}[/bold]")
            _add_nodes(branch, node.get("children", []))
        else:
            parent.add(f"📄 {node['name']}")


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"devpair v{__version__}")
        raise typer.Exit()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command()
def chat() -> None:
    """Start an interactive session."""
    factory = _make_factory()

    async def _run() -> None:
        session = factory.create_session()
        config = factory.config
        console.print(Panel(
            f"[bold]Analyst + Executor[/bold] on [bold]{config.workspace_root}[/bold]\n"
            f"Model: {config.llm_provider}/{config.llm_model}, "
            f"max {config.max_iterations} iterations per task\n"
            "Commands: [bold]exit[/bold], [bold]status[/bold], [bold]memory[/bold]",
            border_style="cyan",
        ))

        while True:
            try:
                user_input = await asyncio.to_thread(Prompt.ask, "\n[bold cyan]You[/bold cyan]")
            except (KeyboardInterrupt, EOFError):
                console.print("\n[dim]Goodbye![/dim]")
                break

            if not user_input.strip():
                continue

            reply = await session.handle(user_input, print_event)
            if reply.should_exit:
                console.print(f"[dim]{reply.text}[/dim]")
                break
            if reply.outcome is not None:
                _print_outcome(reply.outcome.status, reply.outcome.iterations)
            else:
                console.print(Panel(reply.text, border_style="blue"))

    asyncio.run(_run())


@app.command()
def run(
    prompt: str = typer.Argument(..., help="The task for the agents."),
) -> None:
    """Run a single task and exit."""
    factory = _make_factory()
    asyncio.run(_run_once(factory.create_session(), prompt))


@app.command()
def tree() -> None:
    """Print the workspace file tree."""
    config = _load_settings()
    factory = ServiceFactory(config)
    root = Tree(f"📁 [bold]{config.workspace_root}[/bold]")
    _add_nodes(root, factory.create_file_tree_service().get_tree())
    console.print(root)


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------

@app.callback(invoke_without_command=True)
def _callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Workspace assistant CLI"""
    if ctx.invoked_subcommand is not None:
        return
    prompt = os.getenv("CLI_PROMPT", "").strip()
    if not prompt:
        console.print(ctx.get_help())
        raise typer.Exit()
    factory = _make_factory()
    asyncio.run(_run_once(factory.create_session(), prompt))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()

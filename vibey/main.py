#!/usr/bin/env python3
"""
Application Starter for Vibey
=============================

Thin terminal front end that drives the agent core:
1. Loads settings and configures logging
2. Wires provider, tools, token budget and orchestrator
3. Runs a prompt loop and renders progress events

Commands: /reset, /tokens, /exit. ``@path`` attaches a file as context.
Ctrl-C cancels the request in progress.
"""

import asyncio
import logging
import re
import signal
import sys
from pathlib import Path
from typing import Any, Dict, List, Tuple

from prompt_toolkit import PromptSession
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel

from vibey.agent.context.token_manager import TokenManager
from vibey.agent.core.orchestrator import AgentOrchestrator
from vibey.agent.structs import ContextItem
from vibey.agent.task_manager import TaskManager
from vibey.config.settings import Settings, load_settings
from vibey.exceptions.base import VibeyError
from vibey.protocol.bus import EventBus
from vibey.providers.factory import create_provider
from vibey.tools.defaults import register_default_tools
from vibey.tools.registry import ToolRegistry
from vibey.utils.logger import EventLogger, setup_logging

logger = logging.getLogger("Application")

CONTEXT_REF = re.compile(r"(?<!\S)@(\S+)")


def split_context_refs(text: str) -> Tuple[str, List[ContextItem]]:
    """Pull ``@path`` tokens out of the input as ContextItems."""
    items = [
        ContextItem(name=Path(ref).name, path=ref) for ref in CONTEXT_REF.findall(text)
    ]
    message = CONTEXT_REF.sub("", text).strip()
    return message or text.strip(), items


class Application:
    """Main application container."""

    def __init__(self, settings: Settings, console: Console = None):
        self.settings = settings
        self.console = console or Console()
        self.bus = EventBus()
        self.running = False

        self.registry = ToolRegistry()
        self.task_manager = TaskManager()
        register_default_tools(self.registry, settings, self.task_manager)

        self.provider = create_provider(settings)
        self.token_manager = TokenManager.from_settings(settings)
        self.agent = AgentOrchestrator(
            settings,
            self.provider,
            self.registry,
            self.token_manager,
            task_manager=self.task_manager,
            bus=self.bus,
        )
        self._session = PromptSession(multiline=False)

    async def start(self) -> None:
        await EventLogger(self.bus).start()
        if not await self.provider.validate_connection():
            self.console.print(
                f"[yellow]Warning:[/yellow] cannot reach the {self.settings.llm_provider} "
                "server. Requests will fail until it is available."
            )

    async def run(self) -> None:
        """Main REPL loop."""
        self.running = True
        self.console.print(
            Panel.fit(
                f"Vibey · {self.settings.model_name} via {self.settings.llm_provider}\n"
                f"Workspace: {self.settings.workspace}\n"
                "Commands: /reset /tokens /exit · attach files with @path",
                title="vibey",
            )
        )

        while self.running:
            try:
                with patch_stdout():
                    user_text = await self._session.prompt_async("vibey> ")
            except (EOFError, KeyboardInterrupt):
                break

            user_text = user_text.strip()
            if not user_text:
                continue
            if user_text.startswith("/"):
                self.handle_command(user_text)
                continue

            await self.ask(user_text)

    def handle_command(self, command: str) -> None:
        name = command.split()[0].lower()
        if name in ("/exit", "/quit"):
            self.running = False
        elif name == "/reset":
            self.agent.reset_context()
            self.console.print("[green]Context reset.[/green]")
        elif name == "/tokens":
            usage = self.token_manager.cumulative_usage
            self.console.print(
                f"Session tokens: prompt={usage.prompt_tokens} "
                f"completion={usage.completion_tokens} total={usage.total_tokens}"
            )
            self.console.print(
                self.token_manager.create_context_usage_meter(
                    self.agent.context_manager.get_master_context_size()
                )
            )
        else:
            self.console.print(f"[red]Unknown command:[/red] {name}")

    async def ask(self, user_text: str) -> str:
        message, items = split_context_refs(user_text)

        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, self.agent.cancel)
        except NotImplementedError:
            pass  # Windows event loops have no signal handlers

        try:
            answer = await self.agent.chat(message, items, on_update=self.render_event)
        finally:
            try:
                loop.remove_signal_handler(signal.SIGINT)
            except NotImplementedError:
                pass

        self.console.print(Markdown(answer))
        return answer

    def render_event(self, event: Dict[str, Any]) -> None:
        kind = event.get("type")
        if kind == "thinking":
            self.console.print(f"[dim]… {event.get('message')}[/dim]")
        elif kind == "thought":
            self.console.print(f"[italic cyan]💭 {event.get('content')}[/italic cyan]")
        elif kind == "tool_start":
            self.console.print(f"[blue]🔧 {event.get('tool')}[/blue] {event.get('parameters')}")
        elif kind == "tool_end":
            mark = "[green]✓[/green]" if event.get("success") else "[red]✗[/red]"
            detail = str(event.get("result") if event.get("success") else event.get("error") or "")
            summary = detail.splitlines()[0] if detail.strip() else ""
            self.console.print(f"{mark} {event.get('tool')} {summary}")
        elif kind == "warning":
            self.console.print(f"[yellow]⚠ {event.get('message')}[/yellow]")
        elif kind == "error":
            self.console.print(f"[red]✗ {event.get('message')}[/red]")


async def main() -> None:
    """Main entry point."""
    settings = load_settings()
    setup_logging(settings.log_level)

    app = Application(settings)
    await app.start()
    await app.run()


def run() -> None:
    try:
        asyncio.run(main())
    except VibeyError as e:
        print(f"❌ {e.message}\n   {e.user_hint}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n[Vibey] Interrupted by user")
        sys.exit(0)


if __name__ == "__main__":
    run()

import argparse
import json
import logging
import sys
import threading
from datetime import datetime, timezone

from dotenv import load_dotenv

from common.events import AssistantDeltaEvent, AssistantMessageEvent, ErrorEvent
from kickoff.config import OrchestratorConfig
from kickoff.errors import ConfigError
from kickoff.generation import LiteLLMGeneration, ScriptedGeneration
from kickoff.models import CompletionResult, MessageKind, Role
from kickoff.orchestrator import ProjectCreationOrchestrator
from kickoff.storage import save_project
from kickoff.suggestions import TOTAL_STEPS

logger = logging.getLogger(__name__)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        payload = {
            "ts": ts,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(verbose: bool = False, quiet: bool = False, log_format: str = "text") -> None:
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_format == "json":
        handlers[0].setFormatter(JsonFormatter())
        logging.basicConfig(level=level, handlers=handlers)
    else:
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=handlers,
        )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kickoff", description="Kickoff - conversational project creation")
    subparsers = parser.add_subparsers(dest="command", required=True)

    chat = subparsers.add_parser("chat", help="Create a project through a guided conversation")
    chat.add_argument(
        "--model",
        default=None,
        help="Model to use (supports aliases: sonnet, opus, haiku, flash, deepseek)",
    )
    chat.add_argument("--offline", action="store_true", help="Use canned replies instead of a model")
    chat.add_argument("--data-dir", default=None, help="Where generated projects are saved")
    chat.add_argument("--no-delay", action="store_true", help="Report completion without the pause")
    chat.add_argument("--max-retries", type=int, default=None, help="Failures allowed per step")
    chat.add_argument("-v", "--verbose", action="store_true")
    chat.add_argument("-q", "--quiet", action="store_true")
    chat.add_argument("--log-format", default="text", choices=["text", "json"])
    return parser


def _print_suggestions(suggestions: list[str]) -> None:
    for i, suggestion in enumerate(suggestions, start=1):
        print(f"  {i}) {suggestion}")


def _resolve_input(line: str, suggestions: list[str]) -> str:
    if line.isdigit() and 1 <= int(line) <= len(suggestions):
        return suggestions[int(line) - 1]
    return line


def _cmd_chat(args) -> int:
    setup_logging(args.verbose, args.quiet, args.log_format)

    try:
        config = OrchestratorConfig.from_env(
            model=args.model,
            data_dir=args.data_dir,
            completion_delay_s=0.0 if args.no_delay else None,
            max_retries_per_step=args.max_retries,
        )
        config.validate()
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    capability = ScriptedGeneration() if args.offline else LiteLLMGeneration(config)
    done = threading.Event()
    results: list[CompletionResult] = []

    def on_complete(result: CompletionResult) -> None:
        results.append(result)
        done.set()

    def on_event(event) -> None:
        if isinstance(event, AssistantDeltaEvent):
            print(event.text, end="", flush=True)
        elif isinstance(event, AssistantMessageEvent):
            print()
        elif isinstance(event, ErrorEvent):
            logger.debug("Generation error at step %s: %s", event.step, event.message)

    orchestrator = ProjectCreationOrchestrator(
        capability,
        config=config,
        on_event=on_event,
        on_complete=on_complete,
    )
    welcome = orchestrator.transcript[0]
    print(f"🤖 Kickoff started (model: {orchestrator.synthesizer.model})")
    print("Commands: /cancel, /quit; type a number to pick a suggestion")
    print()
    print(welcome.content)
    _print_suggestions(welcome.suggestions)

    suggestions = list(welcome.suggestions)
    while orchestrator.result is None:
        step = min(orchestrator.current_step, TOTAL_STEPS)
        try:
            line = input(f"\n[{step}/{TOTAL_STEPS} {orchestrator.step_title}] > ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            orchestrator.cancel()
            break

        if line in ("/quit", "/exit", "/cancel"):
            orchestrator.cancel()
            break
        if not orchestrator.submit_turn(_resolve_input(line, suggestions)):
            continue

        last = orchestrator.transcript[-1]
        if last.role == Role.SYSTEM and last.kind == MessageKind.FAILURE:
            print(f"⚠️  {last.content}")
            continue
        if last.kind == MessageKind.SUMMARY:
            print()
            print(last.content)
        suggestions = list(last.suggestions)
        _print_suggestions(suggestions)

    done.wait(timeout=config.completion_delay_s + 5.0)
    result = results[0] if results else orchestrator.result
    if result is None or not result.ok:
        reason = result.failure if result is not None else None
        if reason is not None and reason.kind != "cancelled":
            print(f"Error: project creation failed at step {reason.step}: {reason.message}", file=sys.stderr)
            return 1
        print("Cancelled.")
        return 0

    path = save_project(config.data_dir, result.project)
    print(f"\n✅ Saved {result.project.name} ({len(result.project.tasks)} tasks) to {path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = _build_parser().parse_args(sys.argv[1:] if argv is None else argv)
    if args.command == "chat":
        return _cmd_chat(args)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())

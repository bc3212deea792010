from __future__ import annotations
import argparse
import asyncio
import sys
from pathlib import Path
import logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
ROOT = Path(__file__).parent
sys.path.append(str(ROOT / "src"))
from contextos_panel import (  # type: ignore  # noqa: E402
    CredentialStore,
    HistoryController,
    PanelConfig,
    Phase,
    PromptLifecycleController,
    StateStore,
    compose_state,
)
from contextos_panel.docx_utils import DocxExportError, composite_to_docx_bytes  # type: ignore  # noqa: E402
def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Enhance a prompt with ContextOS contexts")
    parser.add_argument("prompt", nargs="?", help="Prompt text; read from stdin when omitted")
    parser.add_argument("--schema", "-s", action="append", default=[], dest="schemas", help="Context id to attach (repeatable)")
    parser.add_argument("--api-key", help="API key; stored locally for later runs")
    parser.add_argument("--answer", "-a", action="append", default=[], dest="answers", help="Answer to a follow-up question, in order")
    parser.add_argument("--all-extracts", action="store_true", help="Append every file-context extract to the result")
    parser.add_argument("--list-schemas", action="store_true", help="List the published contexts and exit")
    parser.add_argument("--history", nargs="?", const="", metavar="SEARCH", help="List completed prompts and exit")
    parser.add_argument("--output", "-o", type=Path, help="Optional path to write the enhanced prompt")
    parser.add_argument("--docx-output", type=Path, help="Optional path to write the enhanced prompt as a Word document")
    return parser.parse_args(argv)
def _collect_answers(store: StateStore, answers: list) -> None:
    for index, qa in enumerate(store.state.questions):
        if index < len(answers):
            answer = answers[index]
        elif sys.stdin.isatty():
            answer = input(f"{qa.question}\n> ")
        else:
            answer = ""
        store.set_answer(index, answer)
async def run(args: argparse.Namespace, config: PanelConfig) -> str:
    store = StateStore.from_credentials(CredentialStore(config.credentials_path))
    if args.api_key:
        store.connect(args.api_key)
    if not store.state.is_authenticated:
        raise SystemExit("No API key configured. Pass --api-key or save one from the web panel.")
    lifecycle = PromptLifecycleController(
        store,
        config.client_for,
        poll_interval=config.poll_interval,
        max_attempts=config.max_poll_attempts,
    )
    if args.history is not None:
        history = HistoryController(store, config.client_for, lifecycle)
        store.set_history_search(args.history)
        if not await history.load():
            raise SystemExit(store.state.error or "Could not load prompt history")
        return "\n".join(f"{p.id}\t{p.created_at}\t{p.original_prompt}" for p in store.state.prompt_history)
    if not await lifecycle.load_schemas():
        raise SystemExit(store.state.error or "Could not load contexts")
    if args.list_schemas:
        return "\n".join(
            f"{schema.id}\t{schema.name}\t{schema.company_name}" for schema in store.state.schemas
        )
    text = args.prompt if args.prompt is not None else sys.stdin.read()
    store.set_prompt_text(text)
    for schema_id in args.schemas:
        store.add_schema(schema_id)
    task = await lifecycle.submit()
    if task is None:
        raise SystemExit(store.state.error or "Prompt was not submitted")
    phase = await task
    if phase == Phase.AWAITING_ANSWERS:
        _collect_answers(store, args.answers)
        if any(qa.answer.strip() for qa in store.state.questions):
            task = await lifecycle.submit_answers()
            if task is None:
                raise SystemExit(store.state.error or "Answers were not submitted")
            phase = await task
        else:
            store.skip_questions()
            phase = store.state.phase
    if phase != Phase.COMPLETED:
        raise SystemExit(store.state.error or f"Prompt finished as {phase.value if phase else 'cancelled'}")
    if args.all_extracts:
        for extract in list(store.state.file_contexts):
            store.toggle_extract(extract.id)
    return compose_state(store.state)
def main() -> None:
    args = parse_args()
    config = PanelConfig.from_env()
    result = asyncio.run(run(args, config))
    if args.output:
        args.output.write_text(result, encoding="utf-8")
    if args.docx_output:
        try:
            args.docx_output.write_bytes(composite_to_docx_bytes(result))
        except DocxExportError as exc:
            raise SystemExit(str(exc))
    if not args.output and not args.docx_output:
        print(result)
if __name__ == "__main__":
    main()

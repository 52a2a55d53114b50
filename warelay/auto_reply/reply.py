"""Build the reply for one inbound message.

Text replies are rendered straight from config. Command replies resolve the
conversation session, render the argv, wait for their turn on the command
queue, run with a timeout and turn whatever happened into reply text.
"""

import inspect
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from warelay.auto_reply.claude import is_claude_command, parse_claude_json, prepare_claude_argv
from warelay.auto_reply.templating import MsgContext, apply_template
from warelay.auto_reply.transcription import transcribe_inbound_audio
from warelay.config.schema import CommandReplyConfig, Config, TextReplyConfig, load_config
from warelay.media.parse import split_media_from_output
from warelay.process import exec as process_exec
from warelay.process.command_queue import CommandQueue, get_command_queue
from warelay.process.exec import CommandResult
from warelay.session.manager import SessionManager, SessionState
from warelay.utils import normalize_e164

logger = logging.getLogger(__name__)

CommandRunner = Callable[..., Awaitable[CommandResult]]

NO_OUTPUT_TEXT = "(command produced no output)"
PARTIAL_OUTPUT_LIMIT = 800
STDERR_EXCERPT_LIMIT = 800
MEDIA_REPLY_HINT = (
    "To send an image back, add a line like: MEDIA:https://example.com/image.jpg "
    "(no spaces). Keep the caption in the text body."
)


@dataclass
class ReplyResult:
    """What to send back: text, plus an optional attachment URL or path."""

    text: str
    media_url: str | None = None


@dataclass
class ReplyHooks:
    """Callbacks the transport can pass in."""

    on_reply_start: Callable[[], Any] | None = None  # e.g. typing indicator


def is_sender_allowed(ctx: MsgContext, allow_from: list[str]) -> bool:
    """An empty allowlist allows everyone; entries are compared as E.164."""
    if not allow_from:
        return True
    sender = normalize_e164(ctx.sender)
    return any(sender == normalize_e164(allowed) for allowed in allow_from)


def media_note(ctx: MsgContext) -> str | None:
    """Describe an inbound attachment for the command prompt."""
    if not ctx.media_path:
        return None
    note = f"[media attached: {ctx.media_path}"
    if ctx.media_type:
        note += f" ({ctx.media_type})"
    if ctx.media_url:
        note += f" | {ctx.media_url}"
    return note + "]"


def format_timeout_reply(timeout_seconds: int, partial_stdout: str = "") -> str:
    text = f"Command timed out after {timeout_seconds}s. Try a shorter prompt or split the request."
    if partial_stdout.strip():
        snippet = partial_stdout[:PARTIAL_OUTPUT_LIMIT]
        text += f"\n\nPartial output before timeout:\n{snippet}..."
    return text


def format_exit_reply(result: CommandResult) -> str:
    text = f"Command exited with code {result.code}."
    stderr = result.stderr.strip()
    if stderr:
        text += f"\n\n{stderr[:STDERR_EXCERPT_LIMIT]}"
    return text


async def _notify_reply_start(hooks: ReplyHooks | None) -> None:
    if hooks is None or hooks.on_reply_start is None:
        return
    try:
        outcome = hooks.on_reply_start()
        if inspect.isawaitable(outcome):
            await outcome
    except Exception:
        logger.exception("on_reply_start hook failed")


def build_text_reply(ctx: MsgContext, body: str, config: TextReplyConfig) -> ReplyResult:
    values = {**ctx.template_values(), "BodyStripped": body}
    prefix = apply_template(config.body_prefix, values) if config.body_prefix else ""
    values["Body"] = f"{prefix}{body}"
    return ReplyResult(text=apply_template(config.text, values), media_url=config.media_url)


def build_command_argv(
    ctx: MsgContext,
    body: str,
    config: CommandReplyConfig,
    transcript: str | None = None,
    session: SessionManager | None = None,
    state: SessionState | None = None,
) -> list[str]:
    """Render the command argv for this turn.

    ``state`` is the already-resolved session for ``session``; without one the
    turn is treated as sessionless.
    """
    include_system = state.include_system if state else True
    base_body = state.body if state else body

    values: dict[str, Any] = {**ctx.template_values(), "BodyStripped": base_body}
    if state:
        values.update(state.template_values())

    prefix = apply_template(config.body_prefix, values) if config.body_prefix and include_system else ""
    prompt = f"{prefix}{base_body}"

    if state and state.include_intro and config.session and config.session.session_intro:
        intro = apply_template(config.session.session_intro, values)
        prompt = f"{intro}\n\n{prompt}"

    note = media_note(ctx)
    if note:
        prompt = "\n".join([note, MEDIA_REPLY_HINT, prompt]).strip()

    if transcript:
        prompt = f"{prompt}\n\nTranscript:\n{transcript}"

    values["Body"] = prompt
    argv = apply_template(config.command, values)

    if config.template and include_system:
        argv = [argv[0], apply_template(config.template, values), *argv[1:]]

    # Prompt is still last here; session args may land after it.
    if is_claude_command(argv):
        argv = prepare_claude_argv(argv, config.claude_output_format, config.cwd)

    if session and state:
        argv = session.apply_session_args(argv, state)

    return argv


def extract_reply_text(result: CommandResult, config: CommandReplyConfig, argv: list[str]) -> str:
    """Turn successful command output into reply text."""
    stdout = result.stdout
    if not stdout.strip():
        if result.code:
            return format_exit_reply(result)
        return NO_OUTPUT_TEXT

    parsed = None
    output_format = config.claude_output_format
    if output_format in ("json", "stream-json") or is_claude_command(argv):
        parsed = parse_claude_json(stdout, stream=output_format == "stream-json")

    text = (parsed if parsed is not None else stdout).strip()
    return text or NO_OUTPUT_TEXT


async def run_command_reply(
    argv: list[str],
    config: CommandReplyConfig,
    command_runner: CommandRunner | None = None,
    queue: CommandQueue | None = None,
) -> ReplyResult:
    """Queue the command, run it and classify the outcome."""
    runner = command_runner or process_exec.run_command_with_timeout
    queue = queue or get_command_queue()
    logger.debug("Queueing command: %s", argv)

    async def task() -> CommandResult:
        started = time.monotonic()
        result = await runner(argv, config.timeout_seconds, cwd=config.cwd)
        logger.info("Command %s finished in %.1fs", argv[0], time.monotonic() - started)
        return result

    try:
        result = await queue.enqueue(task)
    except Exception as e:
        logger.exception("Command %s failed", argv[0])
        return ReplyResult(text=f"Command failed: {e}")

    if result.killed:
        return ReplyResult(text=format_timeout_reply(config.timeout_seconds, result.stdout))

    if result.code:
        logger.warning("Command %s exited with code %s", argv[0], result.code)

    text = extract_reply_text(result, config, argv)
    split = split_media_from_output(text)
    return ReplyResult(text=split.text, media_url=split.media_url or config.media_url)


async def get_reply_from_config(
    ctx: MsgContext,
    hooks: ReplyHooks | None = None,
    config: Config | None = None,
    command_runner: CommandRunner | None = None,
    queue: CommandQueue | None = None,
) -> ReplyResult | None:
    """Compute the auto-reply for one inbound message.

    Returns ``None`` when no reply is configured or the sender is not allowed.
    Execution problems come back as reply text rather than exceptions.
    """
    config = config if config is not None else load_config()
    reply_config = config.reply
    if reply_config is None:
        return None

    if not is_sender_allowed(ctx, config.inbound.allow_from):
        logger.info("Skipping auto-reply: %s not in allowFrom", ctx.sender)
        return None

    await _notify_reply_start(hooks)

    transcript = await transcribe_inbound_audio(ctx, config.inbound.transcribe_audio)
    body = transcript if transcript is not None else ctx.body

    if isinstance(reply_config, TextReplyConfig):
        return build_text_reply(ctx, body, reply_config)

    session = SessionManager(reply_config.session) if reply_config.session else None
    try:
        state = session.resolve(ctx, body) if session else None
    except OSError as e:
        logger.exception("Could not update session store")
        return ReplyResult(text=f"Command failed: could not update session store ({e})")

    argv = build_command_argv(ctx, body, reply_config, transcript, session, state)
    return await run_command_reply(argv, reply_config, command_runner, queue)

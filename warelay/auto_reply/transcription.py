"""Turn inbound voice notes into text before replying."""

import logging

from warelay.auto_reply.templating import MsgContext, apply_template
from warelay.config.schema import TranscribeAudioConfig
from warelay.process import exec as process_exec

logger = logging.getLogger(__name__)


def is_audio(ctx: MsgContext) -> bool:
    return bool(ctx.media_type) and ctx.media_type.startswith("audio/")


async def transcribe_inbound_audio(
    ctx: MsgContext,
    config: TranscribeAudioConfig | None,
) -> str | None:
    """Run the transcription command for an audio message.

    Returns the trimmed transcript, or ``None`` when transcription is not
    configured, the message is not audio, the command fails or it prints
    nothing. Failures are logged and never raised.
    """
    if config is None or not is_audio(ctx):
        return None

    argv = apply_template(config.command, ctx.template_values())
    try:
        result = await process_exec.run_exec(argv, timeout=config.timeout_seconds)
    except process_exec.CommandError as e:
        logger.warning("Audio transcription failed for %s: %s", ctx.media_path, e)
        return None

    transcript = result.stdout.strip()
    if not transcript:
        logger.info("Audio transcription for %s produced no text", ctx.media_path)
        return None
    return transcript

"""Auto-reply pipeline.

The entry point is ``warelay.auto_reply.reply.get_reply_from_config``.
"""

from warelay.auto_reply.templating import MsgContext, apply_template

__all__ = ["MsgContext", "apply_template"]

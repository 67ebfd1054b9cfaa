"""Prompter backed by tool arguments and MCP elicitation."""

import logging
from typing import Any

from fastmcp import Context
from mcp.shared.exceptions import McpError

logger = logging.getLogger(__name__)


class ContextPrompter:
    """Answers registry prompts for one tool call.

    Values passed as tool arguments win. Anything missing is asked of the
    client through ``ctx.elicit``; a client without elicitation support,
    or one that declines, counts as a declined prompt.
    """

    def __init__(
        self,
        ctx: Context | None,
        username: str | None = None,
        password: str | None = None,
        passphrase: str | None = None,
        approve_host_key: bool | None = None,
    ) -> None:
        self.ctx = ctx
        self.username = username
        self.password = password
        self.passphrase = passphrase
        self.approve_host_key = approve_host_key

    async def _elicit(self, prompt: str, response_type: Any) -> Any:
        if self.ctx is None:
            return None
        try:
            result = await self.ctx.elicit(prompt, response_type=response_type)
        except (McpError, RuntimeError, ValueError) as e:
            logger.debug("Elicitation unavailable (%s): %s", type(e).__name__, e)
            return None
        if getattr(result, "action", None) != "accept":
            logger.info("Prompt declined: %s", prompt)
            return None
        return getattr(result, "data", None)

    async def ask_text(self, prompt: str, default: str | None = None) -> str | None:
        if self.username:
            return self.username
        value = await self._elicit(prompt, str)
        if value is None:
            return default
        return str(value).strip() or default

    async def ask_secret(self, prompt: str, kind: str = "password") -> str | None:
        preset = self.passphrase if kind == "passphrase" else self.password
        if preset:
            return preset
        value = await self._elicit(prompt, str)
        return str(value) if value else None

    async def confirm(self, prompt: str) -> bool:
        if self.approve_host_key is not None:
            return self.approve_host_key
        value = await self._elicit(prompt, bool)
        return value is True

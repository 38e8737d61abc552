"""Claude Agent SDK wrapper used by the in-process analyzer."""

import logging
from typing import Callable, Optional

from claude_agent_sdk import (
    query,
    ClaudeAgentOptions,
    ResultMessage,
    AssistantMessage,
)

from config.settings import Settings, get_settings
from tools.llm_client import parse_json_response
from config.exceptions import LLMError, LLMResponseParseError

logger = logging.getLogger(__name__)

ContentCallback = Callable[[str, str], None]


class AgentSDKClient:
    """Thin wrapper around claude_agent_sdk.query().

    Text blocks are surfaced as they arrive through ``on_content(chunk, full)``
    where ``full`` is everything received so far, which is what the streaming
    notification channel carries.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.total_calls = 0

    async def stream_chat(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
        on_content: Optional[ContentCallback] = None,
    ) -> str:
        """Send a request and return the text result.

        Args:
            system_prompt: System message guiding the model's behavior.
            user_prompt: User message content.
            model: Model name override. Defaults to the analysis model.
            on_content: Called with (chunk, cumulative_text) per text block.

        Returns:
            The model's text response.

        Raises:
            LLMError: If the query fails.
        """
        model = model or self.settings.llm_model_analysis
        self.total_calls += 1

        logger.debug("AgentSDK call: model=%s", model)

        full_content = ""
        result_text = ""
        try:
            # The generator must be exhausted: leaving the loop early breaks
            # the anyio cancel scope that query() opens internally.
            async for message in query(
                prompt=user_prompt,
                options=ClaudeAgentOptions(
                    system_prompt=system_prompt,
                    model=model,
                    max_turns=1,
                ),
            ):
                if isinstance(message, ResultMessage):
                    result_text = message.result or ""
                    logger.debug(
                        "AgentSDK result: %d chars, cost=$%s",
                        len(result_text),
                        message.total_cost_usd,
                    )
                elif isinstance(message, AssistantMessage):
                    for block in message.content:
                        text = getattr(block, "text", None)
                        if not text:
                            continue
                        full_content += text
                        if on_content:
                            on_content(text, full_content)
        except Exception as e:
            raise LLMError(f"Agent SDK query failed: {e}") from e

        result_text = result_text or full_content
        if not result_text:
            logger.warning("AgentSDK returned no content")
        return result_text

    async def chat_json(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
        on_content: Optional[ContentCallback] = None,
    ) -> dict:
        """Send a request and parse the response as a JSON object.

        Raises:
            LLMResponseParseError: If response cannot be parsed as JSON.
        """
        text = await self.stream_chat(system_prompt, user_prompt, model, on_content)
        try:
            return parse_json_response(text)
        except ValueError as e:
            raise LLMResponseParseError(str(e), raw_response=text) from e

    def get_usage_summary(self) -> dict:
        """Return call count statistics."""
        return {"total_calls": self.total_calls}

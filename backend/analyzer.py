"""Default chapter analyzer backed by the Claude Agent SDK."""

import logging
from typing import Awaitable, Callable, Optional, Protocol

from config.settings import Settings, get_settings
from models.chapter import Chapter
from tools.agent_sdk_client import AgentSDKClient

logger = logging.getLogger(__name__)

ContentCallback = Callable[[str, str], None]

_SYSTEM_PROMPT = "你是一位专业的文学分析助手。请严格按照用户要求返回 JSON 格式，不要添加任何额外文本。"


class ChapterAnalyzer(Protocol):
    def __call__(
        self, chapter: Chapter, dimensions: list[str], on_content: ContentCallback,
    ) -> Awaitable[dict]:
        ...


class SdkChapterAnalyzer:
    """Sends a chapter to the model and parses the JSON object it returns.

    Streamed text is forwarded to ``on_content`` as it arrives.
    """

    def __init__(self, client: Optional[AgentSDKClient] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.client = client or AgentSDKClient(self.settings)

    def build_prompt(self, chapter: Chapter, dimensions: list[str]) -> str:
        keys = ", ".join(dimensions)
        return (
            f"请分析以下章节《{chapter.title}》，返回一个 JSON 对象，"
            f"只包含这些键：{keys}。\n\n{chapter.content}"
        )

    async def __call__(self, chapter: Chapter, dimensions: list[str], on_content: ContentCallback) -> dict:
        logger.debug("Analyzing chapter %s on %d dimensions", chapter.id, len(dimensions))
        return await self.client.chat_json(
            _SYSTEM_PROMPT,
            self.build_prompt(chapter, dimensions),
            on_content=on_content,
        )

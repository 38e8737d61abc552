"""Tools package: Agent SDK client, JSON parsing and text utilities."""

from tools.agent_sdk_client import AgentSDKClient
from tools.llm_client import parse_json_response
from tools.text_utils import estimate_tokens, truncate_for_log

__all__ = [
    "AgentSDKClient",
    "parse_json_response",
    "estimate_tokens",
    "truncate_for_log",
]

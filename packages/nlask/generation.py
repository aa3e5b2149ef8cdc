"""OpenRouter client that turns a request into candidate shell commands."""

import logging
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import requests
from pydantic import BaseModel, Field, ValidationError

from .config import DEFAULT_BASE_URL, DEFAULT_MODEL, DEFAULT_REQUEST_TIMEOUT, DEFAULT_SHELL
from .exceptions import AuthMissingError, EmptyReplyError, NetworkError, ProviderError

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """
You are a command-line assistant specialized in {os_name} {shell_name} scripting, helping users both with commands and general assistance.

**Instructions:**
- Analyze if the user is requesting an action/command or making a statement/asking a question
- For ACTION REQUESTS: Generate the appropriate terminal commands
  - Return **only the command**, unless explicitly asked to explain
  - Use **safe practices** (avoid dangerous commands like `rm -rf /`)
  - If multiple commands are needed, return them in sequence, one per line
  - Explanations go **before** commands, prefixed with `# `
- For STATEMENTS/QUESTIONS: Respond conversationally
  - Prefix every line of your response with `# ` to indicate it's not a command
  - Be helpful, concise, and friendly
- Assume the user is using **{os_name}** **{shell_name}** unless they specify otherwise
- The current working directory is: {cwd}
- Do not use any code blocks (```) in your response

**Examples:**
User: How do I kill a process running on port 5234?
Response:
  lsof -i :5234
  kill $(lsof -t -i :5234)

User: this is a great tool
Response:
  # Thank you! I'm glad you're finding it helpful.

User: what did we just do?
Response:
  # We just [explain the previous actions based on context].

**User request:** {query}
"""


# ============================================================================
# Response schema
# ============================================================================

class ChatMessage(BaseModel):
    """Assistant message in a chat completion."""
    content: Optional[str] = Field(default=None, description="Text of the reply")


class ChatChoice(BaseModel):
    """One completion choice."""
    message: ChatMessage


class ChatCompletionResponse(BaseModel):
    """Body of a successful chat completion response."""
    choices: list[ChatChoice] = Field(default_factory=list)


@dataclass
class GenerationReply:
    """What the model proposed for one turn."""
    conversational_text: Optional[str] = None
    commands: list[str] = field(default_factory=list)
    # Explanation lines keyed by the index of the command they precede;
    # notes after the last command use len(commands)
    explanations: dict[int, list[str]] = field(default_factory=dict)

    def explanation_for(self, index: int) -> Optional[str]:
        notes = self.explanations.get(index)
        return "\n".join(notes) if notes else None


def parse_reply(content: str) -> GenerationReply:
    """Split model output into conversational text and candidate commands.

    Lines starting with ``#`` are conversation; every other non-empty line
    (code fences excluded) is a command, in order.
    """
    notes: list[str] = []
    commands: list[str] = []
    explanations: dict[int, list[str]] = {}
    for raw in content.splitlines():
        line = raw.strip()
        if not line or line.startswith("```") or line.endswith("```"):
            continue
        if line.startswith("#"):
            note = line.lstrip("#").strip()
            if note:
                notes.append(note)
                explanations.setdefault(len(commands), []).append(note)
        else:
            commands.append(line)
    return GenerationReply(
        conversational_text="\n".join(notes) if notes else None,
        commands=commands,
        explanations=explanations,
    )


def _os_name() -> str:
    system = platform.system()
    return {"Darwin": "MacOS"}.get(system, system or "Unix")


class OpenRouterGenerator:
    """Generation adapter backed by the OpenRouter chat completions API."""

    def __init__(
        self,
        api_key: str | None,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        shell: str = DEFAULT_SHELL,
    ):
        """Initialize the generator.

        Args:
            api_key: OpenRouter API key. Checked on every call, not here.
            model: Model identifier sent with each request.
            base_url: API base URL.
            timeout: Request timeout in seconds.
            shell: Shell the commands will run in (named in the prompt).
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.shell_name = Path(shell).name or "sh"

    def build_messages(self, prompt: str, context: str, cwd: str | None = None) -> list[dict]:
        """Chat messages for one request: context as system, request as user."""
        messages = []
        if context:
            messages.append({"role": "system", "content": context})
        messages.append({
            "role": "user",
            "content": PROMPT_TEMPLATE.format(
                os_name=_os_name(),
                shell_name=self.shell_name,
                cwd=cwd or "unknown",
                query=prompt,
            ),
        })
        return messages

    def generate(self, prompt: str, context: str = "", cwd: str | None = None) -> GenerationReply:
        """Ask the model for commands.

        Args:
            prompt: The user's request.
            context: Rendered session context (may be empty).
            cwd: Current working directory, shown to the model.

        Returns:
            GenerationReply with at least one command or some conversational text.

        Raises:
            AuthMissingError: If no API key is configured.
            NetworkError: If the API cannot be reached.
            ProviderError: If the API answers with an error status.
            EmptyReplyError: If the reply is empty or cannot be parsed.
        """
        if not self.api_key:
            raise AuthMissingError()

        try:
            response = requests.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.model,
                    "messages": self.build_messages(prompt, context, cwd),
                },
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"Request to {self.base_url} failed: {e}")
            raise NetworkError(f"Network error: {e}")

        if not response.ok:
            logger.warning(f"OpenRouter returned {response.status_code}")
            raise ProviderError(f"API error {response.status_code}: {response.text}", status_code=response.status_code)

        try:
            body = ChatCompletionResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise EmptyReplyError(f"Invalid API response: {e}")

        if not body.choices:
            raise EmptyReplyError("No command returned from the model.")

        content = (body.choices[0].message.content or "").strip()
        reply = parse_reply(content)
        if not reply.commands and not reply.conversational_text:
            raise EmptyReplyError()

        logger.info(f"Model {self.model} proposed {len(reply.commands)} command(s)")
        return reply

"""Base agent interface for JSON-returning model calls."""

import json
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import structlog

from resumetailor.exceptions import ResumeTailorError, ValidationError

if TYPE_CHECKING:
    from resumetailor.gateway import CompletionGateway

logger = structlog.get_logger(__name__)

# Constants
DEFAULT_TEMPERATURE = 0.2
MAX_RESPONSE_PREVIEW_LENGTH = 500

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_TRAILING_COMMA = re.compile(r",\s*([}\]])")

ResultT = TypeVar("ResultT")


class BaseAgent(ABC, Generic[ResultT]):
    """
    Prompt -> gateway -> JSON -> typed result, with a safe fallback.

    Subclasses build the prompt, turn the decoded JSON into their result
    model, and say what to return when anything along the way fails. ``run``
    never raises for model or parse problems; the fallback is returned and
    the failure is logged.
    """

    def __init__(self, gateway: "CompletionGateway", model: str | None = None, temperature: float = DEFAULT_TEMPERATURE):
        """
        Initialize agent.

        Args:
            gateway: Completion gateway used for every model call
            model: Model name or alias (gateway default if None)
            temperature: Sampling temperature
        """
        self.gateway = gateway
        self.model = model
        self.temperature = temperature
        self.logger = logger.bind(
            agent=self.__class__.__name__,
            model=model,
            temperature=temperature,
        )

    @abstractmethod
    def build_prompt(self, *args: Any) -> str:
        """Build the prompt for this call."""
        pass

    @abstractmethod
    def parse_response(self, data: dict) -> ResultT:
        """Turn decoded JSON into the result model."""
        pass

    @abstractmethod
    def fallback(self, reason: str, *args: Any) -> ResultT:
        """Result to use when the call or parsing fails."""
        pass

    def run(self, *args: Any) -> ResultT:
        """Execute the call; returns ``fallback`` on any model or parse failure."""
        prompt = self.build_prompt(*args)
        try:
            response = self.gateway.generate(prompt, self.model, self.temperature)
            data = self._parse_json_with_repair(self._extract_json(response), context=self.__class__.__name__)
            if not isinstance(data, dict):
                raise ValidationError(f"Expected a JSON object, got {type(data).__name__}")
            result = self.parse_response(data)
        except (ResumeTailorError, ValueError, TypeError, KeyError) as e:
            self.logger.warning("agent_fallback", error=str(e), error_type=type(e).__name__)
            return self.fallback(str(e), *args)

        self.logger.info("agent_completed")
        return result

    def _extract_json(self, text: str) -> str:
        """
        Extract the JSON payload from a model response.

        Handles markdown code fences and prose around the object.
        """
        text = text.strip()
        fenced = _FENCED_BLOCK.search(text)
        if fenced:
            text = fenced.group(1).strip()

        start = text.find("{")
        end = text.rfind("}")
        if start != -1 and end > start:
            return text[start:end + 1]
        if start != -1:
            # Truncated response; let _repair_json close it
            return text[start:]
        return text

    def _repair_json(self, json_text: str) -> str:
        """
        Best-effort repair of truncated or sloppy JSON.

        Closes an unterminated string, drops trailing commas, and appends
        missing closing brackets/braces in nesting order.
        """
        repaired = json_text.strip()

        in_string = False
        escaped = False
        stack: list[str] = []
        for char in repaired:
            if escaped:
                escaped = False
                continue
            if char == "\\":
                escaped = True
            elif char == '"':
                in_string = not in_string
            elif not in_string and char in "{[":
                stack.append("}" if char == "{" else "]")
            elif not in_string and char in "}]" and stack:
                stack.pop()

        if in_string:
            repaired += '"'
        repaired = re.sub(r",\s*$", "", repaired)
        repaired = re.sub(r':\s*$', ": null", repaired)
        repaired += "".join(reversed(stack))
        return _TRAILING_COMMA.sub(r"\1", repaired)

    def _parse_json_with_repair(self, json_text: str, context: str = "response") -> Any:
        """
        Parse JSON with automatic repair attempt on failure.

        Raises:
            ValidationError: If JSON cannot be parsed even after repair attempt
        """
        try:
            return json.loads(json_text)
        except json.JSONDecodeError as e:
            self.logger.warning(
                "json_parse_failed_attempting_repair",
                context=context,
                error=str(e),
                json_preview=json_text[:MAX_RESPONSE_PREVIEW_LENGTH],
            )
            repaired = self._repair_json(json_text)
            try:
                return json.loads(repaired)
            except json.JSONDecodeError as e2:
                raise ValidationError(
                    f"Invalid JSON response from {context}: {e}. "
                    f"Preview: {json_text[:MAX_RESPONSE_PREVIEW_LENGTH]}"
                ) from e2

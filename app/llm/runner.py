"""
LLM Runner: renders prompt templates, calls the provider, and turns the reply
into a validated pydantic object.

Anything short of a schema-valid object (provider error, empty reply, bad JSON,
schema mismatch) raises DelegateUnavailable. Callers decide whether that is
fatal or replaced by a static fallback.
"""
import hashlib
import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar
from collections.abc import Iterator

from pydantic import BaseModel, ValidationError as SchemaError
from sqlalchemy.orm import Session

from app.core.errors import DelegateUnavailable
from app.db.models.ai_run import AiRun
from app.llm.provider import LLMProvider
from app.llm.openai_provider import OpenAIProvider
from app.llm.router import (
    get_model_for_feature,
    get_temperature_for_feature,
    get_max_tokens_for_feature,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

PROMPTS_DIR = Path(__file__).parent / "prompts"
SYSTEM_PROMPT = (
    "You are Pathwise, a JSON-only career coaching agent. "
    "Reply with a single JSON value that follows the requested schema. No prose, no markdown."
)

_OPENING_FENCE_RE = re.compile(r"^\s*```(?:json|JSON)?\s*")
_CLOSING_FENCE_RE = re.compile(r"\s*```\s*$")
_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


def strip_code_fences(text: str) -> str:
    """Remove a ```json ... ``` wrapper around the whole reply; fences inside values are kept."""
    text = _OPENING_FENCE_RE.sub("", text or "", count=1)
    return _CLOSING_FENCE_RE.sub("", text, count=1).strip()


def parse_json_payload(text: str) -> Any:
    """
    Parse a delegate reply as JSON.

    Raises:
        DelegateUnavailable: if the reply is empty or not JSON
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise DelegateUnavailable("LLM returned an empty response")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    # Some models wrap the payload in a sentence; take the outermost object/array
    match = re.search(r"(\{.*\}|\[.*\])", cleaned, re.DOTALL)
    if match:
        try:
            return json.loads(match.group(1))
        except json.JSONDecodeError:
            pass
    logger.warning(f"Failed to parse JSON from LLM response: {cleaned[:100]}")
    raise DelegateUnavailable("LLM response was not valid JSON")


class LLMRunner:
    """Orchestrates prompt rendering, LLM calls, output validation and run logging."""

    def __init__(
        self,
        provider: Optional[LLMProvider] = None,
        session_factory: Optional[Callable[[], Session]] = None,
    ):
        self.provider = provider
        self.session_factory = session_factory
        if not self.provider:
            try:
                self.provider = OpenAIProvider()
            except ValueError:
                logger.warning("OpenAI provider not available - LLM features disabled")
                self.provider = None

    @property
    def available(self) -> bool:
        return self.provider is not None

    def _load_prompt_template(self, feature: str, version: str = "v1") -> str:
        """Load prompt template from file."""
        prompt_path = PROMPTS_DIR / f"{feature}_{version}.md"
        if not prompt_path.exists():
            raise FileNotFoundError(f"Prompt template not found: {prompt_path}")
        return prompt_path.read_text(encoding="utf-8")

    def render_prompt(self, feature: str, context: Dict[str, Any], version: str = "v1") -> str:
        """Substitute {placeholders}; braces that are not context keys stay as written."""
        prompt = self._load_prompt_template(feature, version)

        # One pass, so placeholders inside substituted values are left alone
        def substitute(match: re.Match) -> str:
            key = match.group(1)
            if key not in context:
                return match.group(0)
            value = context[key]
            if isinstance(value, (dict, list)):
                return json.dumps(value, indent=2)
            return "" if value is None else str(value)

        return _PLACEHOLDER_RE.sub(substitute, prompt)

    def _build_messages(self, prompt: str, schema: Optional[Type[BaseModel]] = None) -> List[Dict[str, str]]:
        system = SYSTEM_PROMPT
        if schema is not None:
            schema_json = json.dumps(schema.model_json_schema(), indent=2)
            system += "\nThe JSON must match this schema:\n" + schema_json
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ]

    def _compute_input_hash(self, feature: str, context: Dict[str, Any]) -> str:
        """Compute hash of input for deduplication."""
        input_str = f"{feature}:{json.dumps(context, sort_keys=True, default=str)}"
        return hashlib.md5(input_str.encode()).hexdigest()

    def _record_run(self, **fields) -> None:
        """Write an ai_runs row in its own session so request rollbacks keep it."""
        if self.session_factory is None:
            return
        db = self.session_factory()
        try:
            db.add(AiRun(completed_at=datetime.utcnow(), **fields))
            db.commit()
        except Exception as e:
            db.rollback()
            logger.warning(f"Could not record AI run for feature={fields.get('feature')}: {e}")
        finally:
            db.close()

    def run(
        self,
        feature: str,
        context: Dict[str, Any],
        schema: Type[T],
        user_id: Optional[str] = None,
        prompt_version: str = "v1",
    ) -> T:
        """
        Run one prompt-and-parse call.

        Args:
            feature: Feature name, selects the prompt file and model settings
            context: Values substituted into the prompt template
            schema: Pydantic model the JSON reply must validate against
            user_id: Optional user id for the run log
            prompt_version: Prompt version (default "v1")

        Returns:
            Validated schema instance

        Raises:
            DelegateUnavailable: provider missing/failed, or reply did not validate
        """
        if not self.provider:
            raise DelegateUnavailable("LLM provider not available", feature=feature)

        model = get_model_for_feature(feature)
        prompt = self.render_prompt(feature, context, prompt_version)
        messages = self._build_messages(prompt, schema)
        run_fields = dict(
            user_id=user_id,
            feature=feature,
            input_hash=self._compute_input_hash(feature, context),
            prompt_version=prompt_version,
            model=model,
        )

        try:
            response = self.provider.chat(
                messages=messages,
                model=model,
                temperature=get_temperature_for_feature(feature),
                max_tokens=get_max_tokens_for_feature(feature),
                json_mode=True,
            )
        except Exception as e:
            logger.error(f"LLM call failed: feature={feature}: {e}", exc_info=True)
            self._record_run(status="failed", error_message=str(e), **run_fields)
            raise DelegateUnavailable("LLM call failed", feature=feature) from e

        run_fields.update(
            tokens_in=response.tokens_in,
            tokens_out=response.tokens_out,
            cost_estimate=response.cost_estimate,
        )

        try:
            result = schema.model_validate(parse_json_payload(response.content))
        except DelegateUnavailable as e:
            self._record_run(status="failed", error_message=e.message, **run_fields)
            e.feature = feature
            raise
        except SchemaError as e:
            logger.warning(f"LLM output failed schema validation: feature={feature}: {e}")
            self._record_run(status="failed", error_message=str(e)[:2000], **run_fields)
            raise DelegateUnavailable("LLM output failed schema validation", feature=feature) from e

        self._record_run(status="completed", **run_fields)
        logger.info(
            f"LLM run completed: feature={feature}, user_id={user_id}, "
            f"tokens={response.tokens_in + response.tokens_out}"
        )
        return result

    def stream(
        self,
        feature: str,
        context: Dict[str, Any],
        history: Optional[List[Dict[str, str]]] = None,
        prompt_version: str = "v1",
    ) -> Iterator[str]:
        """Stream free text for a prompt (no JSON parsing)."""
        if not self.provider:
            raise DelegateUnavailable("LLM provider not available", feature=feature)

        messages = [{"role": "system", "content": self.render_prompt(feature, context, prompt_version)}]
        messages.extend(history or [])
        try:
            yield from self.provider.stream(
                messages=messages,
                model=get_model_for_feature(feature),
                temperature=get_temperature_for_feature(feature),
                max_tokens=get_max_tokens_for_feature(feature),
            )
        except Exception as e:
            logger.error(f"LLM stream failed: feature={feature}: {e}", exc_info=True)
            raise DelegateUnavailable("LLM stream failed", feature=feature) from e

"""
Writer agent: generates platform-ready content drafts through an injected
content generator, steered by settings, constraints and gap analysis.
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from ..models.core import (
    PILLARS,
    AgentContext,
    AgentId,
    ContentGapAnalysis,
    DraftItem,
    PreflightResult,
    WriterInput,
    WriterOutput,
)
from ..tools.claude_client import ClaudeClient, ContentGenerator
from ..utils.validation import resolve_content_type, validate_content
from .base import AgentCallbacks, AgentDefinition
from .prompts import WRITER_SYSTEM_PROMPT, GapDirective, WriterBrief, build_writer_user_prompt

STEP_PREPARE = "prepare-brief"
STEP_GENERATE = "generate-content"
STEP_VALIDATE = "validate-output"

DEFAULT_COUNT = 21
MISSING_KEY_REASON = "Claude API key is required. Add it in Settings."

# Generator output uses camelCase keys
_FIELD_ALIASES = {
    "contentType": "content_type",
    "estimatedDuration": "estimated_duration",
}


def build_gap_directives(gap_analysis: Optional[ContentGapAnalysis]) -> List[GapDirective]:
    """High and medium priority gaps become mandatory minimums."""
    if gap_analysis is None:
        return []
    return [
        GapDirective(
            type=gap.type,
            value=gap.value,
            minimum_posts=max(1, gap.recommended_count - gap.current_count),
        )
        for gap in gap_analysis.gaps
        if gap.priority in ("high", "medium")
    ]


def coerce_draft(raw: Dict[str, Any]) -> DraftItem:
    """
    Turn one generated item into a DraftItem.

    Raises:
        ValidationError: If the item cannot be represented, e.g. an unknown platform
    """
    data = {_FIELD_ALIASES.get(key, key): value for key, value in raw.items()}
    if isinstance(data.get("platform"), str):
        data["platform"] = data["platform"].strip().lower()
    item = DraftItem.model_validate(data)
    item.content_type = resolve_content_type(item.platform, data.get("content_type"))
    return item


def build_summary(items: List[DraftItem]) -> str:
    counts: Dict[str, int] = {}
    for item in items:
        counts[item.platform] = counts.get(item.platform, 0) + 1
    breakdown = ", ".join(f"{platform}: {count}" for platform, count in counts.items())
    return f"Generated {len(items)} content items. Platform breakdown: {breakdown or 'none'}."


class WriterAgent(AgentDefinition):
    """Prepares a brief, generates drafts and validates them against platform limits."""

    id = AgentId.WRITER
    name = "Mildred"
    description = "Generates viral educational content items using AI, guided by gap analysis."
    icon = "pen-tool"
    color = "text-purple-500"

    def __init__(self, content_generator: Optional[ContentGenerator] = None):
        super().__init__()
        self.content_generator = content_generator

    def can_run(self, context: AgentContext) -> PreflightResult:
        if not context.settings.claude_api_key:
            return PreflightResult.deny(MISSING_KEY_REASON)
        return PreflightResult.allow()

    def _generator_for(self, context: AgentContext) -> ContentGenerator:
        if self.content_generator is not None:
            return self.content_generator
        return ClaudeClient(api_key=context.settings.claude_api_key)

    def prepare_brief(self, writer_input: WriterInput, context: AgentContext) -> WriterBrief:
        constraints = writer_input.constraints
        settings = context.settings

        def pick(requested: Optional[List[str]], fallback: List[str]) -> List[str]:
            return list(requested) if requested else list(fallback)

        return WriterBrief(
            subjects=pick(constraints and constraints.subjects, settings.subjects),
            exam_levels=pick(constraints and constraints.levels, settings.levels),
            platforms=pick(constraints and constraints.platforms, settings.platforms),
            pillars=pick(constraints and constraints.pillars, list(PILLARS)),
            gap_directives=build_gap_directives(writer_input.gap_analysis or context.gap_analysis),
            count=writer_input.count or settings.batch_size or DEFAULT_COUNT,
        )

    def validate_drafts(self, items: List[DraftItem]) -> List[str]:
        warnings = []
        for index, item in enumerate(items):
            valid, item_warnings = validate_content(item)
            if not valid:
                warnings.append(f'Item {index} ({item.platform}, "{item.hook[:30]}..."): {"; ".join(item_warnings)}')
        return warnings

    async def execute(self, input: Any, context: AgentContext, callbacks: AgentCallbacks) -> WriterOutput:
        writer_input = input if isinstance(input, WriterInput) else WriterInput.model_validate(input or {})
        content_items: List[DraftItem] = []
        current_step = STEP_PREPARE

        try:
            callbacks.on_step_start(STEP_PREPARE, "Preparing content generation brief")
            brief = self.prepare_brief(writer_input, context)
            callbacks.on_step_complete(STEP_PREPARE, {
                "subjects": brief.subjects,
                "platforms": brief.platforms,
                "count": brief.count,
                "gap_directive_count": len(brief.gap_directives),
            })

            if callbacks.should_cancel():
                return WriterOutput(content_items=[], summary="Cancelled.")

            current_step = STEP_GENERATE
            callbacks.on_step_start(STEP_GENERATE, "Generating content with AI")
            result = await self._generator_for(context)(
                WRITER_SYSTEM_PROMPT, build_writer_user_prompt(brief)
            )
            content_items, dropped = self._coerce_items(result.get("contentItems") or [])
            callbacks.on_step_complete(STEP_GENERATE, {
                "item_count": len(content_items),
                "dropped_count": dropped,
            })

            if callbacks.should_cancel():
                return WriterOutput(content_items=content_items, summary="Cancelled.")

            current_step = STEP_VALIDATE
            callbacks.on_step_start(STEP_VALIDATE, "Validating content against platform rules")
            warnings = self.validate_drafts(content_items)
            callbacks.on_step_complete(STEP_VALIDATE, {
                "total_items": len(content_items),
                "items_with_warnings": len(warnings),
                "warnings": warnings,
            })
        except Exception as e:
            self.logger.error("Writer step failed", step_id=current_step, error=str(e))
            callbacks.on_step_error(current_step, str(e))

        return WriterOutput(content_items=content_items, summary=build_summary(content_items))

    def _coerce_items(self, raw_items: List[Any]) -> Tuple[List[DraftItem], int]:
        items, dropped = [], 0
        for raw in raw_items:
            if not isinstance(raw, dict):
                dropped += 1
                continue
            try:
                items.append(coerce_draft(raw))
            except ValidationError as e:
                dropped += 1
                self.logger.warning("Dropping unusable generated item", error_count=e.error_count())
        return items, dropped

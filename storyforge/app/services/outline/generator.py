"""Outline generation with structural validation and one corrective retry.

Flow:
    requesting -> validating -> accepted
                             -> retrying -> validating_retry -> accepted
                                                             -> accepted_degraded
    any provider failure -> failed (exception propagates)

At most two provider calls are made per request. Transport failures are
never retried here.
"""

from typing import List, Optional

from storyforge.app.core.config import Settings, settings as default_settings
from storyforge.app.core.logging import get_logger
from storyforge.app.providers.base import BaseProvider
from storyforge.app.services.outline.models import (
    OutlineCheck,
    OutlineRequest,
    OutlineResult,
    OutlineState,
)
from storyforge.app.services.outline.validation import check_outline
from storyforge.app.services.prompts import build_outline_prompt, build_strict_outline_prompt

logger = get_logger(__name__)


class OutlineGenerator:
    """Generates a novel outline and checks its arc/chapter structure."""

    def __init__(self, provider: BaseProvider, settings: Optional[Settings] = None):
        self.provider = provider
        self.settings = settings or default_settings

    async def _request(self, prompt: str, temperature: float) -> str:
        return await self.provider.generate_text(
            prompt,
            temperature=temperature,
            max_output_tokens=self.settings.outline_max_output_tokens,
        )

    @staticmethod
    def _log_check(check: OutlineCheck, attempt: int) -> None:
        expectation = check.expectation
        logger.info(
            f"Outline attempt {attempt}: requested {expectation.expected_sections} arcs x "
            f"{expectation.expected_items_per_section} chapters = {expectation.expected_items}, "
            f"got {check.section_count} arcs, {check.item_count} chapters"
        )
        if not check.sections_match:
            logger.warning(
                f"Arc count mismatch: expected {expectation.expected_sections}, "
                f"got {check.section_count}"
            )
        if not check.items_match:
            logger.warning(
                f"Chapter count mismatch: expected {expectation.expected_items}, "
                f"got {check.item_count}"
            )

    async def generate(self, request: OutlineRequest) -> OutlineResult:
        """Run the workflow for ``request``.

        Returns:
            OutlineResult in state ``accepted`` or ``accepted_degraded``

        Raises:
            Whatever the provider raises, unchanged
        """
        transitions: List[OutlineState] = [OutlineState.REQUESTING]

        try:
            original = await self._request(
                build_outline_prompt(request), self.settings.outline_temperature
            )
        except Exception:
            transitions.append(OutlineState.FAILED)
            logger.exception("Outline generation failed")
            raise

        transitions.append(OutlineState.VALIDATING)
        original_check = check_outline(original, request.expectation)
        self._log_check(original_check, attempt=1)

        if original_check.matched:
            transitions.append(OutlineState.ACCEPTED)
            return OutlineResult(
                outline=original,
                state=OutlineState.ACCEPTED,
                attempts=1,
                check=original_check,
                transitions=transitions,
            )

        transitions.append(OutlineState.RETRYING)
        logger.info("Regenerating outline with stricter prompt")
        try:
            retry = await self._request(
                build_strict_outline_prompt(request), self.settings.outline_retry_temperature
            )
        except Exception:
            transitions.append(OutlineState.FAILED)
            logger.exception("Outline regeneration failed")
            raise

        transitions.append(OutlineState.VALIDATING_RETRY)
        retry_check = check_outline(retry, request.expectation)
        self._log_check(retry_check, attempt=2)

        if retry_check.matched:
            logger.info("Outline regeneration matched the requested structure")
            transitions.append(OutlineState.ACCEPTED)
            return OutlineResult(
                outline=retry,
                state=OutlineState.ACCEPTED,
                attempts=2,
                check=retry_check,
                transitions=transitions,
            )

        # Neither attempt matched; keep whichever is closer, the first on a tie.
        if retry_check.distance < original_check.distance:
            outline, check = retry, retry_check
        else:
            outline, check = original, original_check
        logger.warning(
            f"Accepting outline with mismatched structure "
            f"({check.section_count} arcs, {check.item_count} chapters)"
        )
        transitions.append(OutlineState.ACCEPTED_DEGRADED)
        return OutlineResult(
            outline=outline,
            state=OutlineState.ACCEPTED_DEGRADED,
            attempts=2,
            check=check,
            transitions=transitions,
        )
